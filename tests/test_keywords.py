from reclassifier.classifier.keywords import extract_keywords, normalize_text, semantic_text
from reclassifier.data_models import Product, ProductAttribute


def test_accented_bidet_is_rewritten_before_tokenizing():
    product = Product(id="p1", name="Grifería para BIDÉ")

    assert normalize_text("Bidé") == "bidet"
    assert "bidet" in extract_keywords(product)
    assert "bidé" not in extract_keywords(product)


def test_decomposed_accent_is_normalized():
    assert normalize_text("bide\u0301") == "bidet"


def test_short_tokens_are_dropped_and_duplicates_removed():
    product = Product(
        id="p1",
        name="Llave de paso 1/2 llave",
        description="Llave de bronce",
    )

    assert extract_keywords(product) == ["llave", "paso", "bronce"]


def test_splits_on_hyphen_variants_and_punctuation():
    product = Product(
        id="p1",
        name="Monocomando–cromo—pared",
        description="Cierre cerámico, 1/4 vuelta. Garantía",
    )

    keywords = extract_keywords(product)
    assert keywords[:3] == ["monocomando", "cromo", "pared"]
    assert "cerámico" in keywords
    assert "vuelta" in keywords
    assert "garantía" in keywords


def test_attribute_values_are_included_but_not_names():
    product = Product(
        id="p1",
        name="Grifo",
        attributes=(ProductAttribute(name="Tipo", value="Bicomando"),),
    )

    assert extract_keywords(product) == ["grifo", "bicomando"]


def test_missing_optional_fields_do_not_fail():
    product = Product(id="p1", name="Sifón")

    assert extract_keywords(product) == ["sifón"]
    assert semantic_text(product) == "sifón "
