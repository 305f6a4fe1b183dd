# reclassifier/data_models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple


class CatalogDataError(ValueError):
    """Сырую запись каталога нельзя превратить в доменный объект."""


def _clean_id(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _clean_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class Category:
    """
    Категория из выгрузки таксономии, как она лежит в источнике.

    name может отсутствовать: такие записи считаются битыми и в снимок дерева
    не попадают (см. CategoryTree).
    """
    id: str
    name: Optional[str]
    slug: str = ""
    parent: Optional[str] = None
    level: int = 0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Category":
        if not isinstance(raw, Mapping):
            raise CatalogDataError(f"Category record is not a mapping: {raw!r}")

        category_id = _clean_id(raw.get("id", raw.get("_id")))
        if category_id is None:
            raise CatalogDataError(f"Category record without id: {dict(raw)!r}")

        name = raw.get("name")
        try:
            level = int(raw.get("level") or 0)
        except (TypeError, ValueError):
            level = 0

        return cls(
            id=category_id,
            name=str(name) if name else None,
            slug=_clean_text(raw.get("slug")),
            parent=_clean_id(raw.get("parent")),
            level=level,
        )


@dataclass(frozen=True)
class ResolvedCategory:
    """
    Категория из снимка дерева: исходные поля + путь от корня.

    full_path всегда заканчивается собственным id категории.
    """
    id: str
    name: str
    slug: str
    parent: Optional[str]
    level: int
    full_path: Tuple[str, ...]
    full_path_names: Tuple[str, ...]
    full_name: str  # имена пути через " > "


@dataclass(frozen=True)
class ProductAttribute:
    name: str = ""
    value: str = ""


@dataclass(frozen=True)
class Product:
    """
    Товар каталога. Необязательные поля по умолчанию пустые и никогда не None.
    """
    id: str
    name: str
    description: str = ""
    sku: str = ""
    brand: str = ""
    attributes: Tuple[ProductAttribute, ...] = ()
    current_category: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Product":
        """
        Строит Product из записи экспорта (`_id`/`id`, `currentCategory`).
        Отсутствующие необязательные поля становятся пустыми строками/списком.
        """
        if not isinstance(raw, Mapping):
            raise CatalogDataError(f"Product record is not a mapping: {raw!r}")

        product_id = _clean_id(raw.get("id", raw.get("_id")))
        if product_id is None:
            raise CatalogDataError("Product record without id")

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise CatalogDataError(f"Product {product_id} has no name")

        raw_attributes = raw.get("attributes") or []
        if not isinstance(raw_attributes, (list, tuple)):
            raise CatalogDataError(f"Product {product_id}: attributes must be a list")

        attributes: List[ProductAttribute] = []
        for attr in raw_attributes:
            if not isinstance(attr, Mapping):
                raise CatalogDataError(
                    f"Product {product_id}: attribute is not a mapping: {attr!r}"
                )
            attributes.append(
                ProductAttribute(
                    name=_clean_text(attr.get("name")),
                    value=_clean_text(attr.get("value")),
                )
            )

        return cls(
            id=product_id,
            name=name,
            description=_clean_text(raw.get("description")),
            sku=_clean_text(raw.get("sku")),
            brand=_clean_text(raw.get("brand")),
            attributes=tuple(attributes),
            current_category=_clean_id(
                raw.get("currentCategory", raw.get("current_category"))
            ),
        )


@dataclass(frozen=True)
class DataQualityIssue:
    """Проблема в данных таксономии, найденная при построении снимка."""
    kind: str  # invalid-record | missing-id | missing-name | duplicate-id | missing-parent | parent-cycle
    category_id: str
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "categoryId": self.category_id, "detail": self.detail}


@dataclass(frozen=True)
class CategoryMatch:
    """Кандидат, выбранный семантическим правилом или стратегией."""
    category: ResolvedCategory
    score: float
    reason: str
    rule: str = ""


@dataclass
class ClassificationResult:
    """
    Результат классификации одного товара.

    suggested_category_id может быть None, если ни скорер, ни текущая
    категория товара не дали категорию из снимка.
    """
    product_id: str
    suggested_category_id: Optional[str]
    score: float
    reason: str
    changed: bool
    suggested_category: Optional[ResolvedCategory] = None


@dataclass
class ReportEntry:
    product_id: Optional[str]
    product_name: str
    sku: str
    current_category: Optional[str]
    current_category_name: str
    suggested_category: Optional[str]
    suggested_category_name: str
    score: float
    reason: str
    changed: bool
    keywords: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "productId": self.product_id,
            "productName": self.product_name,
            "sku": self.sku,
            "currentCategory": self.current_category,
            "currentCategoryName": self.current_category_name,
            "suggestedCategory": self.suggested_category,
            "suggestedCategoryName": self.suggested_category_name,
            "score": self.score,
            "reason": self.reason,
            "changed": self.changed,
            "keywords": list(self.keywords),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchReport:
    """
    Отчёт прогона: записи по товарам в исходном порядке + агрегаты.

    Гистограмма уверенности считается только по записям с changed=True.
    """
    generated_at: datetime
    method: str
    total_products: int
    entries: List[ReportEntry] = field(default_factory=list)
    data_quality_issues: List[DataQualityIssue] = field(default_factory=list)
    cancelled: bool = False
    high_confidence: float = 5.0
    min_confidence: float = 2.0

    @property
    def error_entries(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.error is not None]

    @property
    def categorized(self) -> int:
        return len(self.entries) - len(self.error_entries)

    @property
    def changes(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.changed]

    @property
    def no_change(self) -> int:
        return sum(1 for e in self.entries if not e.changed and e.error is None)

    def confidence_counts(self) -> Dict[str, int]:
        counts = {"high": 0, "medium": 0, "low": 0}
        for entry in self.changes:
            if entry.score >= self.high_confidence:
                counts["high"] += 1
            elif entry.score >= self.min_confidence:
                counts["medium"] += 1
            else:
                counts["low"] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "method": self.method,
            "totalProducts": self.total_products,
            "categorized": self.categorized,
            "changes": len(self.changes),
            "noChange": self.no_change,
            "errors": len(self.error_entries),
            "cancelled": self.cancelled,
            "confidence": self.confidence_counts(),
            "dataQualityIssues": [issue.to_dict() for issue in self.data_quality_issues],
            "updates": [entry.to_dict() for entry in self.entries],
        }
