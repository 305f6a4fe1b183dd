# reclassifier/scripts/run_batch_classification.py
"""
Пакетная переклассификация каталога правилами + скорером.
Запуск: python -m reclassifier.scripts.run_batch_classification [--source db] [--csv]
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from reclassifier.classifier.batch_runner import BatchRunner
from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.classifier.classifier_service import ClassifierService
from reclassifier.config import config
from reclassifier.data_models import CatalogDataError, Category, DataQualityIssue
from reclassifier.io.export_io import load_catalog_snapshot, write_mapping_report, write_review_csv


logger = logging.getLogger(__name__)


def load_catalog(
    source: str, exports_dir: Path
) -> Tuple[List[Category], List[Dict[str, Any]], List[DataQualityIssue]]:
    if source == "db":
        # импорт здесь: без --source db движок БД не создаётся
        from reclassifier.io.db_io import get_all_categories, get_all_products, get_session

        with get_session() as session:
            return get_all_categories(session), get_all_products(session), []

    return load_catalog_snapshot(exports_dir)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Suggest new categories for catalog products")
    parser.add_argument("--source", choices=("exports", "db"), default="exports")
    parser.add_argument("--exports-dir", default=config.batch.exports_dir)
    parser.add_argument("--csv", action="store_true", help="also write a review CSV")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=config.log_level)
    args = parse_args(argv)
    exports_dir = Path(args.exports_dir)

    try:
        categories, products, issues = load_catalog(args.source, exports_dir)
    except (FileNotFoundError, CatalogDataError, ValueError) as e:
        logger.error("%s", e)
        return 1

    # снимок дерева строится один раз на весь прогон
    tree = CategoryTree.build(categories, issues)
    runner = BatchRunner(tree)
    report = runner.run(products, classifier=ClassifierService(tree))

    mapping_file = write_mapping_report(report, exports_dir)
    if args.csv:
        write_review_csv(report, mapping_file.with_suffix(".csv"))

    logger.info("Next step: review %s and apply the accepted updates", mapping_file.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
