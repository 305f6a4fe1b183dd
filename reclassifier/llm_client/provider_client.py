# reclassifier/llm_client/provider_client.py
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional, Sequence

import httpx

from reclassifier.classifier.prompt_builder import PROMPT_SYSTEM_INSTRUCTIONS, PromptBuilder
from reclassifier.config import config
from reclassifier.data_models import Product, ResolvedCategory
from reclassifier.llm_client.base import LLMClient, LLMError, LLMRetryableError


class ProviderLLMClient(LLMClient):
    """
    Реализация LLMClient через HTTP API провайдера (chat/completions).
    """

    def __init__(self, categories: Sequence[ResolvedCategory] | None = None) -> None:
        self._base_url = config.llm.base_url
        self._api_key = os.getenv(config.llm.api_key_env_var, "")
        if not self._api_key:
            # Важно: не падаем молча, а даём явную ошибку конфигурации
            raise LLMError(f"Missing API key in env var {config.llm.api_key_env_var}")

        self._timeout = config.llm.timeout_seconds
        self._retry_conf = config.llm.retry
        self._prompt_builder = PromptBuilder()
        self._categories: list[ResolvedCategory] = list(categories or [])
        self._by_id = {c.id: c for c in self._categories}

    async def _post_with_retries(self, endpoint: str, json: Dict[str, Any]) -> httpx.Response:
        """
        Базовый метод отправки POST-запросов с ретраями по 5xx/429/timeout.
        """
        url = f"{self._base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        attempt = 0
        last_exc: Exception | None = None
        last_status: int | None = None

        while attempt <= self._retry_conf.max_retries:
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=json, headers=self._build_headers())

                retry_5xx = response.status_code >= 500 and self._retry_conf.retry_on_5xx
                retry_429 = response.status_code == 429 and self._retry_conf.retry_on_429
                if not (retry_5xx or retry_429):
                    return response

                last_status = response.status_code
                attempt += 1
                if attempt > self._retry_conf.max_retries:
                    break
                await self._sleep_backoff(attempt)

            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exc = exc
                if not self._retry_conf.retry_on_timeout:
                    break
                attempt += 1
                if attempt > self._retry_conf.max_retries:
                    break
                await self._sleep_backoff(attempt)

        # Ретраи не помогли
        if last_exc is not None and last_status is None:
            raise LLMRetryableError(f"Request to {url} failed after retries") from last_exc

        raise LLMRetryableError(f"Request to {url} failed with status {last_status}")

    async def _sleep_backoff(self, attempt: int) -> None:
        delay = self._retry_conf.backoff_factor * attempt
        await asyncio.sleep(delay)

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def suggest_category_raw(self, product: Product) -> str:
        current = self._by_id.get(product.current_category) if product.current_category else None
        user_prompt = self._prompt_builder.build_user_prompt(product, self._categories, current)

        payload: Dict[str, Any] = {
            "model": config.llm.model,
            "messages": [
                {"role": "system", "content": PROMPT_SYSTEM_INSTRUCTIONS},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": config.llm.temperature,
            "max_tokens": config.llm.max_tokens,
            "stream": False,
        }

        response = await self._post_with_retries(
            endpoint=config.llm.endpoint,
            json=payload,
        )

        if response.status_code >= 400:
            raise LLMError(
                f"LLM API returned HTTP {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMError("Failed to parse LLM response as JSON") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("Failed to extract content from LLM response") from exc

        if not isinstance(content, str):
            raise LLMError(f"Unexpected LLM content type: {type(content).__name__}")

        return content

    async def suggest_category(self, product: Product) -> Optional[str]:
        """
        Ответ модели без пробелов и кавычек; пустой ответ -> None.
        """
        raw = await self.suggest_category_raw(product)
        answer = raw.strip().strip("\"'`").strip()
        return answer or None
