# reclassifier/scripts/run_ai_classification.py
"""
Пакетная классификация каталога через внешнюю модель (альтернативная стратегия).
Запуск: python -m reclassifier.scripts.run_ai_classification
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from reclassifier.classifier.ai_classifier_service import AIClassifierService
from reclassifier.classifier.batch_runner import BatchRunner
from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.config import config
from reclassifier.data_models import CatalogDataError
from reclassifier.io.export_io import load_catalog_snapshot, write_mapping_report
from reclassifier.llm_client.base import LLMError
from reclassifier.llm_client.provider_client import ProviderLLMClient


logger = logging.getLogger(__name__)


async def classify_catalog(exports_dir: Path) -> Path:
    categories, products, issues = load_catalog_snapshot(exports_dir)
    tree = CategoryTree.build(categories, issues)

    llm_client = ProviderLLMClient(categories=tree.categories)
    service = AIClassifierService(llm_client=llm_client, tree=tree)

    report = await BatchRunner(tree).arun(products, classifier=service)
    return write_mapping_report(report, exports_dir)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=config.log_level)
    parser = argparse.ArgumentParser(description="Suggest categories with an external model")
    parser.add_argument("--exports-dir", default=config.batch.exports_dir)
    args = parser.parse_args(argv)

    try:
        mapping_file = asyncio.run(classify_catalog(Path(args.exports_dir)))
    except (FileNotFoundError, CatalogDataError, ValueError, LLMError) as e:
        logger.error("%s", e)
        return 1

    logger.info("Next step: review %s and apply the accepted updates", mapping_file.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
