# reclassifier/llm_client/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from reclassifier.data_models import Product


class LLMError(Exception):
    """Базовая ошибка LLM-клиента."""


class LLMRetryableError(LLMError):
    """Ошибки, при которых можно безопасно повторить запрос (5xx, 429, timeout)."""


class LLMClient(ABC):
    """
    Абстракция LLM-клиента для AI-стратегии классификации.

    Задачи:
    - принять товар;
    - сходить к модели со списком категорий;
    - вернуть ID категории, который предложила модель.
    """

    @abstractmethod
    async def suggest_category_raw(self, product: Product) -> str:
        """
        Вызов LLM и возврат «сырого» текстового ответа модели.

        Здесь должны обрабатываться:
        - ретраи;
        - таймауты;
        - маппинг HTTP/сетевых ошибок в LLMError/LLMRetryableError.
        """
        raise NotImplementedError

    @abstractmethod
    async def suggest_category(self, product: Product) -> Optional[str]:
        """
        Обёртка над suggest_category_raw: чистит ответ и возвращает кандидата
        или None. НЕ проверяет, что такая категория есть в снимке
        (это задача AIClassifierService).
        """
        raise NotImplementedError
