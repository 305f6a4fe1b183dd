import asyncio
import threading
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from reclassifier.classifier.ai_classifier_service import REASON_AI, AIClassifierService
from reclassifier.classifier.batch_runner import METHOD_AI, REASON_PROCESSING_ERROR, BatchRunner
from reclassifier.classifier.classifier_service import REASON_KEEP_CURRENT
from reclassifier.data_models import Product
from reclassifier.llm_client.base import LLMClient, LLMError


class DummyLLMClient(LLMClient):
    async def suggest_category_raw(self, product: Product) -> str:
        raise NotImplementedError

    async def suggest_category(self, product: Product):
        raise NotImplementedError


def _service(tree, answers):
    client = DummyLLMClient()

    def answer_for(product):
        value = answers[product.id]
        if isinstance(value, Exception):
            raise value
        return value

    client.suggest_category = AsyncMock(side_effect=answer_for)
    return AIClassifierService(llm_client=client, tree=tree), client


def test_known_id_is_accepted(tree):
    service, _ = _service(tree, {"p1": "cocina-mono"})
    product = Product(id="p1", name="Canilla", current_category="bano-mono-lav")

    result = asyncio.run(service.classify_product(product))

    assert result.suggested_category_id == "cocina-mono"
    assert result.reason == REASON_AI
    assert result.score == 5.0
    assert result.changed is True


def test_unknown_answer_keeps_current_category(tree):
    service, _ = _service(tree, {"p1": "Otros accesorios"})
    product = Product(id="p1", name="Canilla", current_category="cocina")

    result = asyncio.run(service.classify_product(product))

    assert result.suggested_category_id == "cocina"
    assert result.score == 0
    assert result.reason == REASON_KEEP_CURRENT


@pytest.mark.parametrize(
    "answer, expected",
    [
        ("BANO-BI-BIDET", "bano-bi-bidet"),
        ("ducha", "bano-mono-ducha"),
        ("bi comando", "bano-bi"),
        (None, None),
        ("", None),
    ],
)
def test_resolve_suggestion(tree, answer, expected):
    service, _ = _service(tree, {})

    category = service.resolve_suggestion(answer)

    assert (category.id if category else None) == expected


@pytest.mark.asyncio
async def test_arun_keeps_input_order_and_reports_llm_errors(tree):
    service, client = _service(
        tree,
        {
            "p1": "bano-mono-lav",
            "p2": LLMError("bad response"),
            "p3": "cocina-mono",
        },
    )
    products = [
        Product(id="p1", name="Lavatorio", current_category="bano-mono-lav"),
        Product(id="p2", name="Canilla", current_category="cocina"),
        Product(id="p3", name="Canilla cocina", current_category="cocina"),
    ]

    report = await BatchRunner(tree).arun(
        products,
        service,
        generated_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        batch_size=2,
        delay_ms=0,
    )

    assert report.method == METHOD_AI
    assert [e.product_id for e in report.entries] == ["p1", "p2", "p3"]
    assert [e.changed for e in report.entries] == [False, False, True]

    failed = report.entries[1]
    assert failed.reason == REASON_PROCESSING_ERROR
    assert failed.error == "bad response"
    assert failed.suggested_category == "cocina"
    assert client.suggest_category.await_count == 3


@pytest.mark.asyncio
async def test_arun_cancel_stops_before_next_batch(tree):
    cancel = threading.Event()
    service, client = _service(tree, {"p1": "cocina-mono", "p2": "cocina-mono"})
    original = client.suggest_category.side_effect

    def answer_and_cancel(product):
        cancel.set()
        return original(product)

    client.suggest_category.side_effect = answer_and_cancel
    products = [Product(id="p1", name="Canilla"), Product(id="p2", name="Canilla")]

    report = await BatchRunner(tree).arun(
        products, service, cancel_event=cancel, batch_size=1, delay_ms=0
    )

    assert report.cancelled is True
    assert [e.product_id for e in report.entries] == ["p1"]
