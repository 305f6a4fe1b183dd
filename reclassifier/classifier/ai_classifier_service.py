# reclassifier/classifier/ai_classifier_service.py
from __future__ import annotations

import logging
from typing import Optional

from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.classifier.classifier_service import keep_current_category
from reclassifier.config import ClassifierConfig, config
from reclassifier.data_models import ClassificationResult, Product, ResolvedCategory
from reclassifier.llm_client.base import LLMClient


logger = logging.getLogger(__name__)

REASON_AI = "AI suggestion"


class AIClassifierService:
    """
    Альтернативная стратегия: категорию предлагает внешняя модель.

    Контракт тот же, что у ClassifierService: кандидат из снимка или
    "нет совпадения", после чего работает та же ветка сохранения текущей категории.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        tree: CategoryTree,
        classifier_config: Optional[ClassifierConfig] = None,
    ) -> None:
        self._llm_client = llm_client
        self._tree = tree
        self._config = classifier_config or config.classifier

    @property
    def tree(self) -> CategoryTree:
        return self._tree

    async def classify_product(self, product: Product) -> ClassificationResult:
        answer = await self._llm_client.suggest_category(product)
        category = self.resolve_suggestion(answer)

        if category is None:
            logger.info("AI returned no usable category for product %s: %r", product.id, answer)
            return keep_current_category(product, self._tree)

        return ClassificationResult(
            product_id=product.id,
            suggested_category_id=category.id,
            score=self._config.ai_match_score,
            reason=REASON_AI,
            changed=category.id != product.current_category,
            suggested_category=category,
        )

    def resolve_suggestion(self, answer: Optional[str]) -> Optional[ResolvedCategory]:
        """
        Точный ID из снимка; иначе первая категория, у которой ID совпадает
        без учёта регистра или имя/slug содержит ответ модели.
        """
        if not answer:
            return None

        exact = self._tree.get(answer)
        if exact is not None:
            return exact

        needle = answer.lower()
        for cat in self._tree.categories:
            if (
                cat.id.lower() == needle
                or needle in cat.name.lower()
                or needle in cat.slug.lower()
            ):
                return cat
        return None
