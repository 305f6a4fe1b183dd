# reclassifier/classifier/vocabulary.py
"""
Фиксированный словарь каталога сантехники (испанский).

Правила и скорер используют одни и те же термины; веса живут в scorer.py.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# Вариант с ударением переписывается в канонический до любой обработки
ACCENTED_BIDET = "bidé"
BIDET = "bidet"

KITCHEN = "cocina"
BATHROOM = "baño"
WASHBASIN = "lavatorio"
SHOWER = "ducha"
BATHTUB = "bañera"
SINGLE_HANDLE = "monocomando"

COUNTERTOP_PHRASES = ("mesada de cocina", "para mesada")

IMPORTANT_KEYWORDS = frozenset([
    "griferia", "grifería", "grifo", "llave", "monocomando", "bicomando", "bi comando",
    "caño", "caños", "tubo", "conexion", "conexión",
    "sanitario", "inodoro", "bidet", "bidé", "bañera", "ducha", "lavatorio",
    "termofusion", "termofusión", "polipropileno", "epoxi",
    "desague", "desagüe", "gas", "agua", "ventilacion", "ventilación",
    "cocina", "mesada", "baño", "bano",
])


@dataclass(frozen=True)
class Cue:
    """
    Признак одной стороны взаимоисключающей пары.

    text_terms ищутся в названии и описании товара, name_only_terms только
    в названии. category_terms: как эта сторона видна в категории.
    """
    text_terms: Tuple[str, ...]
    category_terms: Tuple[str, ...]
    name_only_terms: Tuple[str, ...] = ()

    def matches_product(self, name: str, description: str) -> bool:
        if any(t in name or t in description for t in self.text_terms):
            return True
        return any(t in name for t in self.name_only_terms)

    def in_label(self, label: str) -> bool:
        return any(t in label for t in self.category_terms)


KITCHEN_CUE = Cue(
    text_terms=("cocina", "mesada"),
    category_terms=(KITCHEN,),
)

BATHROOM_CUE = Cue(
    text_terms=("baño", "bano"),
    category_terms=(BATHROOM,),
    name_only_terms=("bidet", "lavatorio", "ducha", "bañera"),
)

SINGLE_HANDLE_CUE = Cue(
    text_terms=("monocomando",),
    category_terms=("monocomando",),
)

TWO_HANDLE_CUE = Cue(
    text_terms=("bicomando", "bi comando"),
    category_terms=("bi comando", "bicomando"),
    name_only_terms=("dos llaves",),
)

# Пары, проверяемые по полному пути категории
DOMAIN_PAIRS: Tuple[Tuple[Cue, Cue], ...] = ((KITCHEN_CUE, BATHROOM_CUE),)

# Пары, проверяемые по собственному имени категории
HANDLE_PAIRS: Tuple[Tuple[Cue, Cue], ...] = ((SINGLE_HANDLE_CUE, TWO_HANDLE_CUE),)

# Фразы в тексте товара, указывающие на двухвентильный вариант
TWO_HANDLE_PHRASES = ("dos llaves", "bi comando", "bicomando")


@dataclass(frozen=True)
class FixtureUse:
    """Назначение смесителя (раковина, биде, душ, ванна) и его веса."""
    term: str
    category_bonus: float
    attribute_bonus: float
    name_bonus: float
    penalize_misplaced: bool = True


FIXTURE_USES: Tuple[FixtureUse, ...] = (
    FixtureUse(WASHBASIN, category_bonus=10, attribute_bonus=5, name_bonus=6),
    FixtureUse(BIDET, category_bonus=10, attribute_bonus=5, name_bonus=6),
    FixtureUse(SHOWER, category_bonus=10, attribute_bonus=5, name_bonus=6),
    FixtureUse(BATHTUB, category_bonus=8, attribute_bonus=5, name_bonus=5,
               penalize_misplaced=False),
)
