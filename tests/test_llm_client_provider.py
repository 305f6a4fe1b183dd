import json

import pytest
from pytest_httpx import HTTPXMock

from reclassifier.config import config
from reclassifier.data_models import Product
from reclassifier.llm_client.provider_client import ProviderLLMClient


URL = "https://api.openai.com/v1/chat/completions"


@pytest.fixture(autouse=True)
def set_dummy_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.mark.asyncio
async def test_suggest_category_sends_catalog_and_strips_answer(httpx_mock: HTTPXMock, tree):
    httpx_mock.add_response(method="POST", url=URL, json=_completion('  "bano-bi-bidet"\n'))

    client = ProviderLLMClient(categories=tree.categories)
    product = Product(
        id="p1",
        name="Juego para bidet dos llaves",
        sku="B-22",
        current_category="bano-mono-bidet",
    )

    answer = await client.suggest_category(product)

    assert answer == "bano-bi-bidet"

    request = httpx_mock.get_requests()[0]
    body = json.loads(request.content)
    assert request.headers["Authorization"] == "Bearer test-key"
    assert body["model"] == config.llm.model
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 50
    assert body["messages"][0]["role"] == "system"
    assert body["messages"][1]["role"] == "user"

    user_prompt = body["messages"][1]["content"]
    assert "Juego para bidet dos llaves" in user_prompt
    assert "(ID: bano-bi-bidet, Nivel: 3, Slug: bidet) (hijo de bano-bi)" in user_prompt
    # текущая категория товара передаётся по имени
    assert '"categoría_actual": "Bidet"' in user_prompt


@pytest.mark.asyncio
async def test_blank_answer_is_none(httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="POST", url=URL, json=_completion("   "))

    client = ProviderLLMClient()

    assert await client.suggest_category(Product(id="p1", name="Canilla")) is None


@pytest.mark.asyncio
async def test_raw_answer_is_returned_unchanged(httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="POST", url=URL, json=_completion("'cocina-mono'"))

    client = ProviderLLMClient()

    raw = await client.suggest_category_raw(Product(id="p1", name="Canilla"))
    assert raw == "'cocina-mono'"
