# reclassifier/classifier/scorer.py
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from reclassifier.classifier.keywords import extract_keywords, normalize_text
from reclassifier.classifier.vocabulary import (
    BATHROOM_CUE,
    DOMAIN_PAIRS,
    FIXTURE_USES,
    HANDLE_PAIRS,
    IMPORTANT_KEYWORDS,
)
from reclassifier.data_models import Product, ResolvedCategory


# Веса эвристик
DOMAIN_MATCH_BONUS = 10
DOMAIN_MISMATCH_PENALTY = 15
HANDLE_MATCH_BONUS = 8
HANDLE_MISMATCH_PENALTY = 12
MISPLACED_FIXTURE_PENALTY = 8

IMPORTANT_KEYWORD_WEIGHT = 3
KEYWORD_WEIGHT = 1
KEYWORD_IN_NAME_BONUS = 2
KEYWORD_IN_SLUG_BONUS = 1

HANDLE_ATTRIBUTE_BONUS = 6
DOMAIN_ATTRIBUTE_BONUS = 5
HANDLE_NAME_BONUS = 7

ROOT_LEVEL_FACTOR = 0.7
DEEP_LEVEL = 3
DEEP_LEVEL_BONUS = 2


def _domain_score(name: str, description: str, full_name: str) -> float:
    """Кухня против ванной по полному пути: +10 за свою ветку, -15 за чужую."""
    score = 0.0
    for side_a, side_b in DOMAIN_PAIRS:
        for own, other in ((side_a, side_b), (side_b, side_a)):
            if not own.matches_product(name, description):
                continue
            if own.in_label(full_name):
                score += DOMAIN_MATCH_BONUS
            elif other.in_label(full_name):
                score -= DOMAIN_MISMATCH_PENALTY
    return score


def _handle_score(name: str, description: str, category_name: str) -> float:
    """Монокомандо против бикомандо по имени категории: +8 / -12."""
    score = 0.0
    for side_a, side_b in HANDLE_PAIRS:
        for own, other in ((side_a, side_b), (side_b, side_a)):
            if not own.matches_product(name, description):
                continue
            if own.in_label(category_name):
                score += HANDLE_MATCH_BONUS
            elif other.in_label(category_name):
                score -= HANDLE_MISMATCH_PENALTY
    return score


def _fixture_score(name: str, description: str, category_name: str, full_name: str) -> float:
    score = 0.0
    for use in FIXTURE_USES:
        if use.term in name or use.term in description:
            if use.term in category_name:
                score += use.category_bonus
            elif use.penalize_misplaced and BATHROOM_CUE.in_label(full_name):
                # товар для раковины/биде/душа в чужом узле ванной ветки
                score -= MISPLACED_FIXTURE_PENALTY
    return score


def _keyword_score(
    keywords: Iterable[str], category_name: str, full_name: str, slug: str
) -> float:
    score = 0.0
    for keyword in keywords:
        if keyword in full_name:
            score += (
                IMPORTANT_KEYWORD_WEIGHT if keyword in IMPORTANT_KEYWORDS else KEYWORD_WEIGHT
            )
        if keyword in category_name:
            score += KEYWORD_IN_NAME_BONUS
        if keyword in slug:
            score += KEYWORD_IN_SLUG_BONUS
    return score


def _attribute_score(product: Product, category_name: str, full_name: str) -> float:
    """Каждый атрибут оценивается отдельно, совпадения суммируются."""
    score = 0.0
    for attr in product.attributes:
        value = normalize_text(attr.value)

        for pair in HANDLE_PAIRS:
            for cue in pair:
                if any(t in value for t in cue.text_terms) and cue.in_label(category_name):
                    score += HANDLE_ATTRIBUTE_BONUS

        for use in FIXTURE_USES:
            if use.term in value and use.term in category_name:
                score += use.attribute_bonus

        for pair in DOMAIN_PAIRS:
            for cue in pair:
                if any(t in value for t in cue.category_terms) and cue.in_label(full_name):
                    score += DOMAIN_ATTRIBUTE_BONUS
    return score


def _direct_name_score(name: str, category_name: str) -> float:
    """
    Повторная проверка подтипа и назначения прямо по названию товара.
    Сигналы намеренно учитываются второй раз поверх _handle_score/_fixture_score.
    """
    score = 0.0
    for pair in HANDLE_PAIRS:
        for cue in pair:
            if any(t in name for t in cue.text_terms) and cue.in_label(category_name):
                score += HANDLE_NAME_BONUS

    for use in FIXTURE_USES:
        if use.term in name and use.term in category_name:
            score += use.name_bonus
    return score


def score_category(
    product: Product,
    category: ResolvedCategory,
    keywords: Optional[Sequence[str]] = None,
) -> float:
    """
    Сходство товара и одной категории по сумме эвристик.

    Без раннего выхода: категория оценивается полностью, даже если
    промежуточная сумма сильно отрицательная. Результат может быть < 0.
    """
    if keywords is None:
        keywords = extract_keywords(product)

    name = normalize_text(product.name)
    description = normalize_text(product.description)
    category_name = category.name.lower()
    full_name = (category.full_name or category.name).lower()
    slug = category.slug.lower()

    score = 0.0
    score += _domain_score(name, description, full_name)
    score += _handle_score(name, description, category_name)
    score += _fixture_score(name, description, category_name, full_name)
    score += _keyword_score(keywords, category_name, full_name, slug)
    score += _attribute_score(product, category_name, full_name)
    score += _direct_name_score(name, category_name)

    # общие корневые категории не должны выигрывать у конкретных
    if category.level == 0 and score > 0:
        score = score * ROOT_LEVEL_FACTOR

    if category.level >= DEEP_LEVEL:
        score += DEEP_LEVEL_BONUS

    return score
