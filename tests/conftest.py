import pytest

from reclassifier.classifier.category_tree import CategoryTree
from reclassifier.data_models import Category


def _cat(cid, name, parent, level, slug=None):
    return Category(id=cid, name=name, slug=slug or name.lower().replace(" ", "-"), parent=parent, level=level)


@pytest.fixture
def taxonomy():
    """
    Grifería
    ├── Baño
    │   ├── Monocomando > Lavatorio | Bidet | Ducha
    │   └── Bi comando  > Lavatorio | Bidet | Ducha
    └── Cocina
        └── Monocomando
    """
    return [
        _cat("root", "Grifería", None, 0, slug="griferia"),
        _cat("bano", "Baño", "root", 1, slug="bano"),
        _cat("bano-mono", "Monocomando", "bano", 2),
        _cat("bano-mono-lav", "Lavatorio", "bano-mono", 3),
        _cat("bano-mono-bidet", "Bidet", "bano-mono", 3),
        _cat("bano-mono-ducha", "Ducha", "bano-mono", 3),
        _cat("bano-bi", "Bi comando", "bano", 2),
        _cat("bano-bi-lav", "Lavatorio", "bano-bi", 3),
        _cat("bano-bi-bidet", "Bidet", "bano-bi", 3),
        _cat("bano-bi-ducha", "Ducha", "bano-bi", 3),
        _cat("cocina", "Cocina", "root", 1),
        _cat("cocina-mono", "Monocomando", "cocina", 2),
    ]


@pytest.fixture
def tree(taxonomy):
    return CategoryTree.build(taxonomy)


@pytest.fixture
def shallow_tree():
    """Таксономия без уровней >= 3: бонус за глубину не срабатывает."""
    return CategoryTree.build([
        _cat("s-root", "Grifería", None, 0, slug="griferia"),
        _cat("s-bano", "Baño", "s-root", 1, slug="bano"),
        _cat("s-bano-mono", "Monocomando", "s-bano", 2),
        _cat("s-cocina", "Cocina", "s-root", 1),
        _cat("s-cocina-mono", "Monocomando", "s-cocina", 2),
    ])
