# reclassifier/scripts/export_for_categorization.py
"""
Выгрузка каталога из БД в JSON-снимки для классификации.
Запуск: python -m reclassifier.scripts.export_for_categorization
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from reclassifier.config import config
from reclassifier.io.db_io import category_to_record, get_all_categories, get_all_products, get_session
from reclassifier.io.export_io import (
    CATEGORIES_PREFIX,
    PRODUCTS_PREFIX,
    export_file_stamp,
    write_json_export,
)


logger = logging.getLogger(__name__)


def export_data(exports_dir: Path) -> None:
    stamp = export_file_stamp(datetime.now(timezone.utc))

    with get_session() as session:
        categories = get_all_categories(session)
        products = get_all_products(session)

    products_file = write_json_export(products, exports_dir / f"{PRODUCTS_PREFIX}{stamp}.json")
    categories_file = write_json_export(
        [category_to_record(c) for c in categories],
        exports_dir / f"{CATEGORIES_PREFIX}{stamp}.json",
    )

    logger.info("Products: %s exported -> %s", len(products), products_file)
    logger.info("Categories: %s exported -> %s", len(categories), categories_file)


def main() -> int:
    logging.basicConfig(level=config.log_level)
    export_data(Path(config.batch.exports_dir))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
