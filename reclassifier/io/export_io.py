# reclassifier/io/export_io.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from reclassifier.data_models import BatchReport, CatalogDataError, Category, DataQualityIssue


logger = logging.getLogger(__name__)

PRODUCTS_PREFIX = "products-"
CATEGORIES_PREFIX = "categories-"

REVIEW_COLUMNS = [
    "productId",
    "productName",
    "sku",
    "currentCategory",
    "currentCategoryName",
    "suggestedCategory",
    "suggestedCategoryName",
    "score",
    "reason",
    "changed",
    "keywords",
    "error",
]


def find_latest_export(exports_dir: Path, prefix: str) -> Optional[Path]:
    """
    Самый свежий файл выгрузки вида `<prefix><дата>.json`.
    Дата в имени ISO, поэтому достаточно лексикографической сортировки.
    """
    candidates = sorted(
        p for p in Path(exports_dir).glob(f"{prefix}*.json") if p.is_file()
    )
    return candidates[-1] if candidates else None


def load_json_records(path: Path) -> List[Dict[str, Any]]:
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise CatalogDataError(f"{path}: expected a JSON list of records")
    return data


def parse_categories(
    records: List[Any],
) -> Tuple[List[Category], List[DataQualityIssue]]:
    """
    Разбирает записи категорий по одной: битая запись (не объект или без id)
    пропускается и попадает в список проблем, прогон продолжается.
    """
    categories: List[Category] = []
    issues: List[DataQualityIssue] = []
    for index, raw in enumerate(records):
        try:
            categories.append(Category.from_dict(raw))
        except CatalogDataError as e:
            kind = "missing-id" if isinstance(raw, Mapping) else "invalid-record"
            issues.append(DataQualityIssue(kind, "", f"record #{index}: {e}"))
            logger.warning("Skipping category record #%s: %s", index, e)
    return categories, issues


def load_catalog_snapshot(
    exports_dir: Path,
) -> Tuple[List[Category], List[Dict[str, Any]], List[DataQualityIssue]]:
    """
    Загружает последние выгрузки категорий и товаров.

    Категории разбираются по одной (см. parse_categories), проблемы разбора
    возвращаются третьим элементом для CategoryTree.build. Товары остаются
    сырыми: их разбор идёт внутри BatchRunner, чтобы битая запись не обрывала прогон.
    """
    products_file = find_latest_export(exports_dir, PRODUCTS_PREFIX)
    categories_file = find_latest_export(exports_dir, CATEGORIES_PREFIX)
    if products_file is None or categories_file is None:
        raise FileNotFoundError(
            f"No export files in {exports_dir}; run export_for_categorization first"
        )

    logger.info("Products: %s", products_file.name)
    logger.info("Categories: %s", categories_file.name)

    categories, issues = parse_categories(load_json_records(categories_file))
    products = load_json_records(products_file)

    logger.info("Loaded %s products and %s categories", len(products), len(categories))
    return categories, products, issues


def write_json_export(records: List[Dict[str, Any]], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def report_to_json(report: BatchReport) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2)


def mapping_file_name(report: BatchReport) -> str:
    kind = "ai" if report.method.startswith("ai") else "local"
    return f"category-mapping-{kind}-{report.generated_at.date().isoformat()}.json"


def write_mapping_report(report: BatchReport, exports_dir: Path) -> Path:
    """
    Сохраняет отчёт для шага применения изменений.
    """
    exports_dir = Path(exports_dir)
    exports_dir.mkdir(parents=True, exist_ok=True)
    path = exports_dir / mapping_file_name(report)
    path.write_text(report_to_json(report), encoding="utf-8")
    logger.info("Mapping saved to %s", path)
    return path


def report_to_dataframe(report: BatchReport) -> pd.DataFrame:
    """
    Плоская таблица для ручного ревью: сначала изменения, внутри по
    убыванию балла. Сортировка стабильная, исходный порядок сохраняется.
    """
    rows = []
    for entry in report.entries:
        row = entry.to_dict()
        row["keywords"] = ", ".join(row["keywords"])
        row.setdefault("error", "")
        rows.append(row)

    df = pd.DataFrame(rows, columns=REVIEW_COLUMNS)
    if df.empty:
        return df

    return df.sort_values(
        by=["changed", "score"], ascending=[False, False], kind="mergesort"
    ).reset_index(drop=True)


def write_review_csv(report: BatchReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    report_to_dataframe(report).to_csv(path, index=False, encoding="utf-8")
    logger.info("Review sheet saved to %s", path)
    return path


def export_file_stamp(now: datetime) -> str:
    return now.date().isoformat()
