import pytest

from classifiers import (
    classify,
    clean_price,
    find_inline_price,
    is_category_candidate,
    is_image_reference,
    is_name_candidate,
    is_price,
    is_ui_noise,
    tags_for,
)
from models import ClassificationTag


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$21.500", 21500.0),
        ("19000.00", 19000.0),
        ("10,50", 10.5),
        ("$ 1.234,50", 1234.5),
        ("1.234.567", 1234567.0),
        ("1.50", 1.5),
        ("4.9", 4.9),
        ("abc", 0.0),
        ("", 0.0),
        ("-5", 0.0),
    ],
)
def test_clean_price(raw, expected):
    assert clean_price(raw) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("$21.500", True),
        ("$ 1.234,50", True),
        ("1500", True),
        ("4.9", True),
        ("12", False),
        ("...", False),
        ("Pizza 1500", False),
        ("$abc", False),
    ],
)
def test_is_price(value, expected):
    assert is_price(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://cdn/x.jpg", True),
        ("https://cdn.example.com/x.JPEG?w=200", True),
        ("http://cdn.example.com/x.webp", True),
        ("https://pedidosya.dhmedia.io/image/pedidosya/products/1", True),
        ("https://images.rappi.com.ar/products/1", True),
        ("https://example.com/menu", False),
        ("foto.jpg", False),
        ("Pizza", False),
    ],
)
def test_is_image_reference(value, expected):
    assert is_image_reference(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Pizza", True),
        ("Ñoquis", True),
        ("Con salsa de tomate", True),
        ("P", False),
        ("x" * 121, False),
        ("https://example.com", False),
        ("data:image/png;base64,AAAA", False),
        ("$1.500", False),
        ("1234", False),
        ("sc-1a2b3c", False),
        ("12 productos", False),
        ("!!", False),
    ],
)
def test_is_name_candidate(value, expected):
    assert is_name_candidate(value) is expected


@pytest.mark.parametrize(
    "value",
    [
        "cerrar",
        "Cerrar",
        "Más vendido",
        "Términos y condiciones",
        "PedidosYa © 2024",
        "Defensa de las y los consumidores",
        "Ley Nº 24.240",
        "CUIT: 30-12345678-9",
        "4.9",
        "120 opiniones",
        "Abre a las 19:00",
        "mailto:ayuda@example.com",
        "Entrega",
    ],
)
def test_ui_noise_is_detected(value):
    assert is_ui_noise(value)


@pytest.mark.parametrize("value", ["Pizza", "Empanadas", "Con dulce de leche"])
def test_menu_text_is_not_ui_noise(value):
    assert not is_ui_noise(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Pizzas", True),
        ("empanadas", True),
        ("Ñoquis", True),
        ("1500", False),
        ("3x2", False),
        ("2 por 1", False),
        ("cerrar", False),
        ("https://x.example/a", False),
        ("P", False),
        ("x" * 51, False),
        ("¡Promo!", False),
    ],
)
def test_is_category_candidate(value, expected):
    assert is_category_candidate(value) is expected


def test_find_inline_price():
    assert find_inline_price("Muzzarella $12.500") == "$12.500"
    assert find_inline_price("Carne 1.800 $") == "1.800 $"
    assert find_inline_price("Pizza") is None


def test_classify_precedence():
    assert classify("$1.500") is ClassificationTag.PRICE
    assert classify("https://cdn/x.jpg") is ClassificationTag.IMAGE_REFERENCE
    assert classify("cerrar") is ClassificationTag.UI_NOISE
    assert classify("Pizzas") is ClassificationTag.CATEGORY_CANDIDATE
    assert classify("Salsa de tomate, muzzarella, aceitunas verdes y orégano fresco") is ClassificationTag.NAME_CANDIDATE
    assert classify("!!") is ClassificationTag.UNCLASSIFIED


def test_tags_for_reports_every_matching_tag():
    assert tags_for("Pizzas") == {ClassificationTag.CATEGORY_CANDIDATE, ClassificationTag.NAME_CANDIDATE}
    assert tags_for("4.9") == {ClassificationTag.PRICE, ClassificationTag.UI_NOISE}
    assert tags_for("!!") == {ClassificationTag.UNCLASSIFIED}


def test_clean_price_overflow_is_zero():
    assert clean_price("9" * 400) == 0.0
