# reclassifier/classifier/classifier_service.py
from __future__ import annotations

import logging
from typing import Optional, Sequence

from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.classifier.keywords import extract_keywords
from reclassifier.classifier.scorer import score_category
from reclassifier.classifier.semantic_rules import SEMANTIC_RULES, SemanticRule, apply_semantic_rules
from reclassifier.config import ClassifierConfig, config
from reclassifier.data_models import ClassificationResult, Product, ResolvedCategory


logger = logging.getLogger(__name__)

REASON_KEEP_CURRENT = "no clear match, keep current category"
REASON_STRONG = "strong match"
REASON_MODERATE = "moderate match"
REASON_WEAK = "weak match"


def keep_current_category(product: Product, tree: CategoryTree) -> ClassificationResult:
    """
    Ветка "ниже порога": остаёмся в текущей категории товара с score = 0.
    Если текущая категория не находится в снимке, категории в результате нет.
    """
    current = tree.get(product.current_category)
    return ClassificationResult(
        product_id=product.id,
        suggested_category_id=current.id if current else None,
        score=0.0,
        reason=REASON_KEEP_CURRENT,
        changed=False,
        suggested_category=current,
    )


class ClassifierService:
    """
    Классификатор товара по снимку таксономии.

    Отвечает за:
    - семантические правила (первое сработавшее выигрывает);
    - скоринг всех категорий, если ни одно правило не сработало;
    - порог минимальной уверенности и текст обоснования.

    Сервис не меняет снимок и не хранит состояния между вызовами,
    поэтому classify_product можно звать из нескольких потоков.
    """

    def __init__(
        self,
        tree: CategoryTree,
        classifier_config: Optional[ClassifierConfig] = None,
        rules: Sequence[SemanticRule] = SEMANTIC_RULES,
    ) -> None:
        self._tree = tree
        self._config = classifier_config or config.classifier
        self._rules = tuple(rules)

    @property
    def tree(self) -> CategoryTree:
        return self._tree

    def classify_product(
        self,
        product: Product,
        categories: Optional[Sequence[ResolvedCategory]] = None,
    ) -> ClassificationResult:
        """
        Классифицирует один товар.

        categories: кандидаты в порядке перебора (по умолчанию весь снимок);
        при равных баллах выигрывает категория, встреченная первой.
        """
        if categories is None:
            categories = self._tree.categories

        # 1) семантическая дедукция
        match = apply_semantic_rules(
            product, categories, self._config.semantic_match_score, self._rules
        )
        if match is not None:
            logger.debug("Product %s matched rule '%s'", product.id, match.rule)
            return self._result(product, match.category, match.score, match.reason)

        # 2) скоринг всех кандидатов, строго ">": ничья остаётся за первым
        keywords = extract_keywords(product)
        best_category: Optional[ResolvedCategory] = None
        best_score = 0.0
        for category in categories:
            score = score_category(product, category, keywords)
            if best_category is None or score > best_score:
                best_category = category
                best_score = score

        # 3) порог минимальной уверенности
        if best_category is None or best_score < self._config.min_confidence:
            return keep_current_category(product, self._tree)

        return self._result(product, best_category, best_score, self._reason_for_score(best_score))

    def _reason_for_score(self, score: float) -> str:
        if score >= self._config.high_confidence:
            return REASON_STRONG
        if score >= self._config.min_confidence:
            return REASON_MODERATE
        return REASON_WEAK

    @staticmethod
    def _result(
        product: Product, category: ResolvedCategory, score: float, reason: str
    ) -> ClassificationResult:
        return ClassificationResult(
            product_id=product.id,
            suggested_category_id=category.id,
            score=score,
            reason=reason,
            changed=category.id != product.current_category,
            suggested_category=category,
        )
