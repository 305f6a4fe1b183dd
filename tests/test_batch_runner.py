import json
import threading
from datetime import datetime, timezone

from reclassifier.classifier.batch_runner import (
    METHOD_LOCAL,
    NO_CATEGORY,
    REASON_PROCESSING_ERROR,
    BatchRunner,
)
from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.classifier.classifier_service import ClassifierService
from reclassifier.data_models import Category, Product


GENERATED_AT = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _catalog():
    return [
        {
            "_id": "p1",
            "name": "Grifería monocomando para mesada de cocina",
            "sku": "A1",
            "currentCategory": "bano-mono-lav",
        },
        {"_id": "p2", "name": "Lavatorio monocomando cromo", "currentCategory": "bano-mono-lav"},
        {"_id": "p3", "name": "Conector genérico XK-200", "currentCategory": "root"},
        {"_id": "p4", "sku": "X9", "currentCategory": "cocina"},
    ]


def test_report_counts_and_confidence_buckets(tree):
    report = BatchRunner(tree).run(_catalog(), generated_at=GENERATED_AT)
    data = report.to_dict()

    assert data["method"] == METHOD_LOCAL
    assert data["generatedAt"] == "2026-01-15T12:00:00+00:00"
    assert data["totalProducts"] == 4
    assert data["categorized"] == 3
    assert data["changes"] == 2
    assert data["noChange"] == 1
    assert data["errors"] == 1
    assert data["cancelled"] is False
    assert data["confidence"] == {"high": 1, "medium": 1, "low": 0}
    assert [u["productId"] for u in data["updates"]] == ["p1", "p2", "p3", "p4"]


def test_entries_carry_names_and_reasons(tree):
    report = BatchRunner(tree).run(_catalog(), generated_at=GENERATED_AT)
    kitchen, washbasin = report.entries[0], report.entries[1]

    assert kitchen.sku == "A1"
    assert kitchen.current_category_name == "Grifería > Baño > Monocomando > Lavatorio"
    assert kitchen.suggested_category == "cocina-mono"
    assert kitchen.suggested_category_name == "Grifería > Cocina > Monocomando"
    assert kitchen.score == 50
    assert kitchen.changed is True

    assert washbasin.suggested_category == "bano-mono-lav"
    assert washbasin.changed is False


def test_bad_record_becomes_error_entry(tree):
    report = BatchRunner(tree).run(_catalog(), generated_at=GENERATED_AT)
    broken = report.entries[3].to_dict()

    assert broken["productId"] == "p4"
    assert broken["reason"] == REASON_PROCESSING_ERROR
    assert broken["suggestedCategory"] == "cocina"
    assert broken["currentCategoryName"] == "Grifería > Cocina"
    assert broken["changed"] is False
    assert broken["score"] == 0
    assert "no name" in broken["error"]
    assert "error" not in report.entries[0].to_dict()


def test_keywords_are_truncated_for_audit(tree):
    product = Product(
        id="p1",
        name="uno dos tres cuatro cinco seis siete ocho nueve diez once doce",
        current_category="root",
    )

    entry = BatchRunner(tree).run([product], generated_at=GENERATED_AT).entries[0]

    assert entry.keywords == [
        "uno", "dos", "tres", "cuatro", "cinco", "seis", "siete", "ocho", "nueve", "diez",
    ]


def test_unresolved_category_is_reported_as_no_category(shallow_tree):
    product = Product(id="p1", name="Conector genérico XK-200")

    entry = BatchRunner(shallow_tree).run([product], generated_at=GENERATED_AT).entries[0]

    assert entry.current_category is None
    assert entry.suggested_category is None
    assert entry.suggested_category_name == NO_CATEGORY
    assert entry.changed is False


def test_same_input_gives_identical_report(tree):
    runner = BatchRunner(tree)

    first = runner.run(_catalog(), generated_at=GENERATED_AT).to_dict()
    second = runner.run(_catalog(), generated_at=GENERATED_AT).to_dict()

    assert json.dumps(first, ensure_ascii=False) == json.dumps(second, ensure_ascii=False)


def test_cancel_before_start(tree):
    cancel = threading.Event()
    cancel.set()

    report = BatchRunner(tree).run(_catalog(), generated_at=GENERATED_AT, cancel_event=cancel)

    assert report.cancelled is True
    assert report.entries == []
    assert report.total_products == 4


def test_cancel_mid_run_keeps_finished_entries(tree):
    cancel = threading.Event()

    class CancellingClassifier(ClassifierService):
        def classify_product(self, product, categories=None):
            result = super().classify_product(product, categories)
            cancel.set()
            return result

    report = BatchRunner(tree).run(
        _catalog(),
        classifier=CancellingClassifier(tree),
        generated_at=GENERATED_AT,
        cancel_event=cancel,
    )

    assert report.cancelled is True
    assert [e.product_id for e in report.entries] == ["p1"]
    assert report.to_dict()["cancelled"] is True


def test_data_quality_issues_are_reported():
    tree = CategoryTree.build([
        Category(id="a", name="Caños"),
        Category(id="b", name="Codos", parent="zz", level=1),
    ])

    report = BatchRunner(tree).run([], generated_at=GENERATED_AT)

    assert report.to_dict()["dataQualityIssues"] == [
        {"kind": "missing-parent", "categoryId": "b", "detail": "parent zz not found"},
    ]
