import pytest

from reclassifier.classifier.category_tree import CategoryTree, find_parent_cycles, walk_parent_path
from reclassifier.data_models import Category, DataQualityIssue


def test_full_path_ends_with_own_id_and_starts_at_root(tree):
    for cat in tree.categories:
        assert cat.full_path[-1] == cat.id
        assert tree.get(cat.full_path[0]).parent is None


def test_full_name_joins_path_names(tree):
    lav = tree.get("bano-bi-lav")

    assert lav.full_path == ("root", "bano", "bano-bi", "bano-bi-lav")
    assert lav.full_path_names == ("Grifería", "Baño", "Bi comando", "Lavatorio")
    assert lav.full_name == "Grifería > Baño > Bi comando > Lavatorio"
    assert tree.get("root").full_name == "Grifería"


def test_input_order_is_preserved(taxonomy, tree):
    assert [c.id for c in tree.categories] == [c.id for c in taxonomy]


def test_category_without_name_is_excluded_and_reported():
    tree = CategoryTree.build([
        Category(id="a", name="Caños", parent=None),
        Category(id="b", name=None, parent="a"),
        Category(id="c", name="Codos", parent="b", level=2),
    ])

    assert "b" not in tree
    assert len(tree) == 2
    # родитель выпал из снимка -> путь начинается с самого узла
    assert tree.get("c").full_path == ("c",)
    assert tree.get("c").full_name == "Codos"

    kinds = {(i.kind, i.category_id) for i in tree.issues}
    assert ("missing-name", "b") in kinds
    assert ("missing-parent", "c") in kinds


def test_duplicate_id_keeps_first_occurrence():
    tree = CategoryTree.build([
        Category(id="a", name="Primera"),
        Category(id="a", name="Segunda"),
    ])

    assert tree.get("a").name == "Primera"
    assert [i.kind for i in tree.issues] == ["duplicate-id"]


def test_self_cycle_terminates_with_truncated_path():
    tree = CategoryTree.build([Category(id="x", name="Loop", parent="x")])

    x = tree.get("x")
    assert x.full_path == ("x",)
    assert x.full_name == "Loop"
    assert [i.kind for i in tree.issues] == ["parent-cycle"]


def test_two_node_cycle_truncates_at_first_repeated_id():
    tree = CategoryTree.build([
        Category(id="a", name="A", parent="b"),
        Category(id="b", name="B", parent="a"),
        Category(id="c", name="C", parent="a"),
    ])

    assert tree.get("a").full_path == ("b", "a")
    assert tree.get("b").full_path == ("a", "b")
    assert tree.get("c").full_path == ("b", "a", "c")
    assert tree.get("c").full_name == "B > A > C"

    cycles = [i for i in tree.issues if i.kind == "parent-cycle"]
    assert len(cycles) == 1
    assert cycles[0].detail == "a -> b -> a"


def test_walk_parent_path_stops_on_unknown_parent():
    assert walk_parent_path("leaf", {"leaf": "mid", "mid": "gone"}) == ["mid", "leaf"]


def test_find_parent_cycles_ignores_tails():
    parents = {"t": "a", "a": "b", "b": "a", "r": None}

    assert find_parent_cycles(parents) == [("a", "b")]


def test_snapshot_is_read_only(tree):
    with pytest.raises(TypeError):
        tree.by_id["new"] = tree.get("root")


def test_known_issues_come_before_tree_issues():
    parse_issue = DataQualityIssue("missing-id", "", "record #0: no id")

    tree = CategoryTree.build(
        [Category(id="c", name="Codos", parent="gone", level=1)],
        [parse_issue],
    )

    assert [i.kind for i in tree.issues] == ["missing-id", "missing-parent"]
