# reclassifier/classifier/semantic_rules.py
"""
Семантические правила: упорядоченный список дедукций по фиксированным фразам.

Каждое правило: чистая функция (product, categories, score) -> CategoryMatch | None.
Срабатывает первое правило, вернувшее кандидата; порядок списка и есть приоритет.
Если текстовый признак есть, но подходящей категории в снимке нет, правило
возвращает None и проверяется следующее.

Отдельная таблица категорий по id правилам не нужна: каждая ResolvedCategory
уже несёт full_name и full_path из снимка дерева. Третий аргумент: фиксированный
балл, который получает сработавшее правило.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

from reclassifier.classifier.keywords import semantic_text
from reclassifier.classifier.vocabulary import (
    BATHROOM,
    BIDET,
    COUNTERTOP_PHRASES,
    KITCHEN,
    SHOWER,
    SINGLE_HANDLE,
    TWO_HANDLE_CUE,
    TWO_HANDLE_PHRASES,
    WASHBASIN,
)
from reclassifier.data_models import CategoryMatch, Product, ResolvedCategory


SemanticRule = Callable[[Product, Sequence[ResolvedCategory], float], Optional[CategoryMatch]]

REASON_BIDET = "Semantic deduction: bidet always goes in bathroom"
REASON_COUNTERTOP = "Semantic deduction: kitchen countertop uses single-handle"
REASON_WASHBASIN = "Semantic deduction: washbasin goes in bathroom"
REASON_SHOWER = "Semantic deduction: shower goes in bathroom"
REASON_KITCHEN = "Semantic deduction: kitchen uses single-handle"


def _full_name(category: ResolvedCategory) -> str:
    return category.full_name.lower()


def _is_two_handle(category: ResolvedCategory) -> bool:
    return TWO_HANDLE_CUE.in_label(_full_name(category))


def _is_single_handle(category: ResolvedCategory) -> bool:
    return SINGLE_HANDLE in _full_name(category)


def _wants_two_handle(text: str) -> bool:
    return any(p in text for p in TWO_HANDLE_PHRASES)


def _bathroom_fixtures(
    categories: Sequence[ResolvedCategory], term: str
) -> list:
    """Категории, в имени которых есть term, внутри ветки "baño"."""
    return [
        cat for cat in categories
        if term in cat.name.lower() and BATHROOM in _full_name(cat)
    ]


def _kitchen_single_handle(
    categories: Sequence[ResolvedCategory],
) -> Optional[ResolvedCategory]:
    for cat in categories:
        full_name = _full_name(cat)
        if KITCHEN in full_name and SINGLE_HANDLE in full_name:
            return cat
    return None


def _pick_by_handle(
    candidates: Sequence[ResolvedCategory], text: str
) -> ResolvedCategory:
    """
    Выбор подтипа для раковины и душа: по фразе в тексте товара,
    без фразы или без совпадения берётся первый кандидат.
    """
    if _wants_two_handle(text):
        predicate = _is_two_handle
    elif SINGLE_HANDLE in text:
        predicate = _is_single_handle
    else:
        return candidates[0]

    for cat in candidates:
        if predicate(cat):
            return cat
    return candidates[0]


def bidet_rule(
    product: Product, categories: Sequence[ResolvedCategory], score: float
) -> Optional[CategoryMatch]:
    text = semantic_text(product)
    if BIDET not in text:
        return None

    candidates = _bathroom_fixtures(categories, BIDET)
    if not candidates:
        return None

    target: Optional[ResolvedCategory] = None
    if _wants_two_handle(text):
        target = next((c for c in candidates if _is_two_handle(c)), None)
    elif SINGLE_HANDLE in text:
        target = next((c for c in candidates if _is_single_handle(c)), None)

    # без явного подтипа биде обычно двухвентильное
    if target is None:
        target = next((c for c in candidates if _is_two_handle(c)), candidates[0])

    return CategoryMatch(category=target, score=score, reason=REASON_BIDET, rule="bidet")


def countertop_rule(
    product: Product, categories: Sequence[ResolvedCategory], score: float
) -> Optional[CategoryMatch]:
    text = semantic_text(product)
    if not any(p in text for p in COUNTERTOP_PHRASES):
        return None

    target = _kitchen_single_handle(categories)
    if target is None:
        return None
    return CategoryMatch(category=target, score=score, reason=REASON_COUNTERTOP, rule="countertop")


def washbasin_rule(
    product: Product, categories: Sequence[ResolvedCategory], score: float
) -> Optional[CategoryMatch]:
    text = semantic_text(product)
    if WASHBASIN not in text or KITCHEN in text:
        return None

    candidates = _bathroom_fixtures(categories, WASHBASIN)
    if not candidates:
        return None
    return CategoryMatch(
        category=_pick_by_handle(candidates, text),
        score=score,
        reason=REASON_WASHBASIN,
        rule="washbasin",
    )


def shower_rule(
    product: Product, categories: Sequence[ResolvedCategory], score: float
) -> Optional[CategoryMatch]:
    text = semantic_text(product)
    if SHOWER not in text or KITCHEN in text:
        return None

    candidates = _bathroom_fixtures(categories, SHOWER)
    if not candidates:
        return None
    return CategoryMatch(
        category=_pick_by_handle(candidates, text),
        score=score,
        reason=REASON_SHOWER,
        rule="shower",
    )


def kitchen_rule(
    product: Product, categories: Sequence[ResolvedCategory], score: float
) -> Optional[CategoryMatch]:
    text = semantic_text(product)
    if KITCHEN not in text or BATHROOM in text or BIDET in text:
        return None

    target = _kitchen_single_handle(categories)
    if target is None:
        return None
    return CategoryMatch(category=target, score=score, reason=REASON_KITCHEN, rule="kitchen")


SEMANTIC_RULES: Tuple[SemanticRule, ...] = (
    bidet_rule,
    countertop_rule,
    washbasin_rule,
    shower_rule,
    kitchen_rule,
)


def apply_semantic_rules(
    product: Product,
    categories: Sequence[ResolvedCategory],
    score: float,
    rules: Sequence[SemanticRule] = SEMANTIC_RULES,
) -> Optional[CategoryMatch]:
    """Первое сработавшее правило или None, если нужен скоринг."""
    for rule in rules:
        match = rule(product, categories, score)
        if match is not None:
            return match
    return None
