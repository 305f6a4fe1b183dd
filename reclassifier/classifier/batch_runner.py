# reclassifier/classifier/batch_runner.py
from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Union

from reclassifier.classifier.ai_classifier_service import AIClassifierService
from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.classifier.classifier_service import ClassifierService
from reclassifier.classifier.keywords import extract_keywords
from reclassifier.config import BatchConfig, ClassifierConfig, config
from reclassifier.data_models import (
    BatchReport,
    ClassificationResult,
    Product,
    ReportEntry,
)
from reclassifier.llm_client.base import LLMError, LLMRetryableError


logger = logging.getLogger(__name__)

METHOD_LOCAL = "local-intelligent-analysis"
METHOD_AI = "ai-classification"
REASON_PROCESSING_ERROR = "processing-error"
NO_CATEGORY = "No category"
PROGRESS_EVERY = 100

ProductInput = Union[Product, Mapping[str, Any]]


_PRODUCT_ATTRS = {"id": "id", "name": "name", "sku": "sku", "currentCategory": "current_category"}


def _raw_field(item: Any, key: str, alt: Optional[str] = None) -> Optional[str]:
    """Поле из записи, которая могла не превратиться в Product."""
    if isinstance(item, Product):
        value = getattr(item, _PRODUCT_ATTRS[key])
    elif isinstance(item, Mapping):
        value = item.get(key, item.get(alt) if alt else None)
    else:
        return None
    return None if value is None else str(value)


class BatchRunner:
    """
    Прогон классификатора по всему каталогу в исходном порядке.

    Делает:
    - приведение сырых записей к Product (ошибки идут в отчёт, а не наружу);
    - вызов классификатора на каждый товар с общим снимком дерева;
    - сбор записей отчёта и агрегатов по уверенности.
    """

    def __init__(
        self,
        tree: CategoryTree,
        classifier_config: Optional[ClassifierConfig] = None,
        batch_config: Optional[BatchConfig] = None,
    ) -> None:
        self._tree = tree
        self._config = classifier_config or config.classifier
        self._batch_config = batch_config or config.batch

    def run(
        self,
        products: Sequence[ProductInput],
        classifier: Optional[ClassifierService] = None,
        generated_at: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchReport:
        """
        Синхронный прогон правил + скорера.

        cancel_event останавливает выдачу новых товаров; уже готовые записи
        остаются в отчёте.
        """
        if classifier is None:
            classifier = ClassifierService(self._tree, self._config)

        report = self._new_report(METHOD_LOCAL, len(products), generated_at)
        logger.info("Starting batch classification: %s items", len(products))

        for processed, item in enumerate(products, start=1):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.warning("Batch cancelled after %s items", processed - 1)
                break

            try:
                product = self._to_product(item)
                result = classifier.classify_product(product)
                report.entries.append(self._build_entry(product, result))
            except Exception as e:
                logger.exception(
                    "Unexpected error for product %s: %s", _raw_field(item, "id", "_id"), e
                )
                report.entries.append(self._error_entry(item, e))

            if processed % PROGRESS_EVERY == 0:
                logger.info("Processed %s/%s...", processed, len(products))

        self._log_summary(report)
        return report

    async def arun(
        self,
        products: Sequence[ProductInput],
        classifier: AIClassifierService,
        generated_at: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
        batch_size: Optional[int] = None,
        delay_ms: Optional[int] = None,
    ) -> BatchReport:
        """
        Прогон асинхронной AI-стратегии пачками: внутри пачки запросы идут
        параллельно, между пачками пауза против rate limit.
        """
        batch_size = max(1, batch_size or self._batch_config.ai_batch_size)
        delay_ms = self._batch_config.ai_delay_ms if delay_ms is None else delay_ms

        report = self._new_report(METHOD_AI, len(products), generated_at)
        total_batches = (len(products) + batch_size - 1) // batch_size
        logger.info(
            "Starting AI classification: %s items, batch size %s", len(products), batch_size
        )

        for start in range(0, len(products), batch_size):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.warning("AI batch cancelled after %s items", start)
                break

            chunk = products[start:start + batch_size]
            logger.info(
                "Processing batch %s/%s (%s products)...",
                start // batch_size + 1,
                total_batches,
                len(chunk),
            )
            entries = await asyncio.gather(
                *(self._classify_async(item, classifier) for item in chunk)
            )
            report.entries.extend(entries)

            if start + batch_size < len(products) and delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)

        self._log_summary(report)
        return report

    async def _classify_async(
        self, item: ProductInput, classifier: AIClassifierService
    ) -> ReportEntry:
        product_id = _raw_field(item, "id", "_id")
        try:
            product = self._to_product(item)
            result = await classifier.classify_product(product)
            return self._build_entry(product, result)

        except LLMRetryableError as e:
            logger.warning("LLMRetryableError for product %s: %s", product_id, e)
            return self._error_entry(item, e)

        except LLMError as e:
            logger.error("LLMError for product %s: %s", product_id, e)
            return self._error_entry(item, e)

        except Exception as e:
            logger.exception("Unexpected error for product %s: %s", product_id, e)
            return self._error_entry(item, e)

    def _new_report(
        self, method: str, total: int, generated_at: Optional[datetime]
    ) -> BatchReport:
        return BatchReport(
            generated_at=generated_at or datetime.now(timezone.utc),
            method=method,
            total_products=total,
            data_quality_issues=list(self._tree.issues),
            high_confidence=self._config.high_confidence,
            min_confidence=self._config.min_confidence,
        )

    @staticmethod
    def _to_product(item: ProductInput) -> Product:
        if isinstance(item, Product):
            return item
        return Product.from_dict(item)

    def _category_name(self, category_id: Optional[str]) -> str:
        category = self._tree.get(category_id)
        return category.full_name if category else NO_CATEGORY

    def _build_entry(self, product: Product, result: ClassificationResult) -> ReportEntry:
        # без предложенной категории остаёмся там, где товар уже лежит
        suggested_id = result.suggested_category_id
        if suggested_id is None:
            suggested_id = product.current_category

        keywords = extract_keywords(product)[: self._config.audit_keywords_limit]

        return ReportEntry(
            product_id=product.id,
            product_name=product.name,
            sku=product.sku,
            current_category=product.current_category,
            current_category_name=self._category_name(product.current_category),
            suggested_category=suggested_id,
            suggested_category_name=self._category_name(suggested_id),
            score=result.score,
            reason=result.reason,
            changed=suggested_id != product.current_category,
            keywords=keywords,
        )

    def _error_entry(self, item: Any, exc: Exception) -> ReportEntry:
        current = _raw_field(item, "currentCategory", "current_category")
        return ReportEntry(
            product_id=_raw_field(item, "id", "_id"),
            product_name=_raw_field(item, "name") or "",
            sku=_raw_field(item, "sku") or "",
            current_category=current,
            current_category_name=self._category_name(current),
            suggested_category=current,
            suggested_category_name=self._category_name(current),
            score=0.0,
            reason=REASON_PROCESSING_ERROR,
            changed=False,
            keywords=[],
            error=str(exc) or exc.__class__.__name__,
        )

    @staticmethod
    def _log_summary(report: BatchReport) -> None:
        confidence = report.confidence_counts()
        logger.info("Batch classification finished.")
        logger.info("Total products: %s", report.total_products)
        logger.info("Classified: %s", report.categorized)
        logger.info("Suggested changes: %s", len(report.changes))
        logger.info("No change: %s", report.no_change)
        logger.info("Errors: %s", len(report.error_entries))
        logger.info(
            "Confidence: high=%s medium=%s low=%s",
            confidence["high"],
            confidence["medium"],
            confidence["low"],
        )
        if report.data_quality_issues:
            logger.warning("Data quality issues: %s", len(report.data_quality_issues))

        high = [e for e in report.changes if e.score >= report.high_confidence]
        for idx, entry in enumerate(high[:5], start=1):
            logger.info(
                "%s. %s (%s): %s -> %s, score %s (%s)",
                idx,
                entry.product_name,
                entry.sku,
                entry.current_category_name,
                entry.suggested_category_name,
                entry.score,
                entry.reason,
            )
