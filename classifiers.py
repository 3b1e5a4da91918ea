"""
Token classifiers for scraped and recovered menu text.

Pure predicates over a single string. The rule tables below are plain data
so they can be tuned and tested without touching the predicates. Tuned for
Spanish-language menus priced in Argentine pesos ("$21.500", "$ 1.234,50").
"""

import math
import re

from models import ClassificationTag

# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

# Footer, navigation and legal phrases seen on delivery-platform pages (lower-cased)
UI_NOISE_PHRASES = frozenset(
    {
        "menú",
        "cerrar",
        "mi pedido",
        "tu pedido está vacío",
        "entrega",
        "más vendido",
        "opiniones",
        "abre a las",
        "sobre pedidosya",
        "términos y condiciones",
        "privacidad",
        "top comidas",
        "top cadenas",
        "top ciudades",
        "registra tu negocio",
        "centro de socios",
        "libro de quejas online",
        "botón de arrepentimiento",
        "pedidosya para tus colaboradores",
    }
)

# Substrings that mark copyright and legal boilerplate (lower-cased)
UI_NOISE_SUBSTRINGS = (
    "pedidosya ©",
    "defensa de",
    "ley nº",
    "cuit:",
    "notificaciones",
)

UI_NOISE_PREFIXES = ("abre a las", "mailto:")

UI_NOISE_PATTERNS = (
    re.compile(r"^\d+(\.\d+)?$"),  # bare rating, "4.9"
    re.compile(r"^\d+ opiniones$"),
)

# Badges that sit between a product's name and its price
BADGE_PHRASES = frozenset({"más vendido"})

IMAGE_HOST_MARKERS = ("pedidosya.dhmedia.io/image", "rappi")

CURRENCY_SYMBOL = "$"

_PRICE_SHAPE_RE = re.compile(r"^\$?\s*[\d.,]+$")
_DIGIT_RE = re.compile(r"\d")
_CURRENCY_STRIP_RE = re.compile(r"[$\s]")
# "21.500", "1.234.567", optionally with a ",50" decimal tail
_THOUSANDS_DOTS_RE = re.compile(r"^\d{1,3}(\.\d{3})+(,\d+)?$")
_LEADING_NUMBER_RE = re.compile(r"^(\d+(\.\d*)?|\.\d+)")
# Currency symbol on either side of the amount, as printed on menus
INLINE_PRICE_RE = re.compile(r"(\$\s?[\d.,]+)|([\d.,]+\s?\$)")

_URL_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_IMAGE_EXTENSION_RE = re.compile(r"\.(jpe?g|png|webp|gif)(?:[?#].*)?$", re.IGNORECASE)

_NUMERIC_ONLY_RE = re.compile(r"^[\d.,\s$]+$")
_ITEM_COUNT_RE = re.compile(r"^\d+ productos$")
_GENERATED_CLASS_PREFIX = "sc-"
_HAS_LETTER_RE = re.compile(r"[a-záéíóúñü]", re.IGNORECASE)
_STARTS_WITH_LETTER_RE = re.compile(r"^[A-ZÁÉÍÓÚÑÜa-záéíóúñü]")

NAME_LENGTH = (2, 120)
CATEGORY_LENGTH = (2, 50)


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


def is_price(s: str) -> bool:
    """Currency-optional number of at least 3 characters.

    Loose on purpose: bare numbers such as "1500" qualify, so plain numeric
    codes can be mistaken for prices in scraped dumps.
    """
    return len(s) >= 3 and bool(_PRICE_SHAPE_RE.match(s)) and bool(_DIGIT_RE.search(s))


def clean_price(s: str) -> float:
    """Parse an Argentine-formatted price, 0.0 when nothing numeric is found.

    "$21.500" -> 21500.0, "10,50" -> 10.5, "$ 1.234,50" -> 1234.5,
    "19000.00" -> 19000.0.
    """
    cleaned = _CURRENCY_STRIP_RE.sub("", s)
    if _THOUSANDS_DOTS_RE.match(cleaned):
        cleaned = cleaned.replace(".", "")
    cleaned = cleaned.replace(",", ".", 1)

    # Like a lenient float parse: take the longest numeric prefix
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    try:
        value = float(match.group(0))
    except ValueError:
        return 0.0
    # Absurdly long digit runs overflow to inf, which has no JSON form
    return value if math.isfinite(value) else 0.0


def find_inline_price(line: str) -> str | None:
    """Return the first "$ 1.500" / "1.500 $" substring in a line, if any."""
    match = INLINE_PRICE_RE.search(line)
    return match.group(0) if match else None


# ---------------------------------------------------------------------------
# Images, names, categories, noise
# ---------------------------------------------------------------------------


def is_image_reference(s: str) -> bool:
    if _URL_SCHEME_RE.match(s) and _IMAGE_EXTENSION_RE.search(s):
        return True
    return any(marker in s for marker in IMAGE_HOST_MARKERS)


def _is_url_like(s: str) -> bool:
    return s.startswith("http") or s.startswith("data:")


def is_name_candidate(s: str) -> bool:
    """Text that could be a product name or description."""
    lo, hi = NAME_LENGTH
    if not lo <= len(s) <= hi:
        return False
    if _is_url_like(s):
        return False
    if _NUMERIC_ONLY_RE.match(s):
        return False
    if s.startswith(_GENERATED_CLASS_PREFIX):  # styled-components class names
        return False
    if _ITEM_COUNT_RE.match(s):
        return False
    return bool(_HAS_LETTER_RE.search(s))


def is_ui_noise(s: str) -> bool:
    lower = s.lower()
    if lower in UI_NOISE_PHRASES:
        return True
    if any(sub in lower for sub in UI_NOISE_SUBSTRINGS):
        return True
    if lower.startswith(UI_NOISE_PREFIXES):
        return True
    return any(p.match(lower) for p in UI_NOISE_PATTERNS)


def is_badge(s: str) -> bool:
    return s.lower() in BADGE_PHRASES


def is_category_candidate(s: str) -> bool:
    """Short heading-like text that may introduce a run of products."""
    lo, hi = CATEGORY_LENGTH
    if not lo <= len(s) <= hi:
        return False
    if _is_url_like(s):
        return False
    if is_price(s) or is_ui_noise(s):
        return False
    if s[0].isdigit() and " " not in s:
        return False
    return bool(_STARTS_WITH_LETTER_RE.match(s))


# ---------------------------------------------------------------------------
# Tagging
# ---------------------------------------------------------------------------

# Precedence used by classify(); the first predicate that holds wins
_TAG_RULES = (
    (ClassificationTag.PRICE, is_price),
    (ClassificationTag.IMAGE_REFERENCE, is_image_reference),
    (ClassificationTag.UI_NOISE, is_ui_noise),
    (ClassificationTag.CATEGORY_CANDIDATE, is_category_candidate),
    (ClassificationTag.NAME_CANDIDATE, is_name_candidate),
)


def classify(token: str) -> ClassificationTag:
    """Primary tag of a token."""
    for tag, predicate in _TAG_RULES:
        if predicate(token):
            return tag
    return ClassificationTag.UNCLASSIFIED


def tags_for(token: str) -> frozenset[ClassificationTag]:
    """Every tag whose predicate holds for the token."""
    tags = frozenset(tag for tag, predicate in _TAG_RULES if predicate(token))
    return tags or frozenset({ClassificationTag.UNCLASSIFIED})
