# reclassifier/classifier/keywords.py
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List

from reclassifier.classifier.vocabulary import ACCENTED_BIDET, BIDET
from reclassifier.data_models import Product


MIN_KEYWORD_LENGTH = 3

# пробелы, все варианты дефиса и пунктуация
_TOKEN_SPLIT_RE = re.compile(r"[\s\-‐‑‒–—−,.;:!?()\[\]{}/\\\"'«»]+")


def normalize_text(value: str) -> str:
    """
    Нижний регистр + каноническая форма "bidé" -> "bidet".

    NFC нужен, чтобы "bide" + U+0301 совпадало с составным "bidé".
    """
    if not value:
        return ""
    text = unicodedata.normalize("NFC", value).lower()
    return text.replace(ACCENTED_BIDET, BIDET)


def tokenize(text: str) -> List[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(text) if len(t) >= MIN_KEYWORD_LENGTH]


def product_texts(product: Product) -> Iterable[str]:
    yield product.name
    yield product.description
    for attr in product.attributes:
        yield attr.value


def extract_keywords(product: Product) -> List[str]:
    """
    Ключевые слова товара из названия, описания и значений атрибутов.

    Без повторов, в порядке первого появления: порядок нужен только для
    воспроизводимого аудита в отчёте, в скоринге он не важен.
    """
    keywords = {}
    for text in product_texts(product):
        for token in tokenize(normalize_text(text)):
            keywords.setdefault(token, None)
    return list(keywords)


def semantic_text(product: Product) -> str:
    """Название + описание, нормализованные, для семантических правил."""
    return f"{normalize_text(product.name)} {normalize_text(product.description)}"
