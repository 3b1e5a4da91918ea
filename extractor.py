"""
Menu extractor: turns tokenized menu input into catalog items.

Three reconstruction paths, all converging on the same assembler:
  A) Clean-header mode: recognizable column headers map cells to fields
  B) Messy/scrape mode: flatten every cell into a token stream and rebuild
     items around each detected price using bounded look-around windows
  C) Recovered-text mode: one line of OCR text is the unit of context

Extraction is best-effort. Rows that cannot be resolved are dropped
silently; only input-wide failures raise.
"""

import logging
import time
from dataclasses import dataclass

from classifiers import (
    CURRENCY_SYMBOL,
    clean_price,
    find_inline_price,
    is_badge,
    is_category_candidate,
    is_image_reference,
    is_name_candidate,
    is_price,
    is_ui_noise,
)
from models import DEFAULT_CATEGORY, ColumnMap, ExtractedItem
from parser import flatten_cells, parse_delimited, split_lines

logger = logging.getLogger(__name__)

# Look-around windows for the token-stream path
NAME_LOOKBACK = 4
IMAGE_LOOKAHEAD = 2
CATEGORY_LOOKBACK = 10
MAX_CATEGORY_LENGTH = 40

# A header row is "clean" if any header is exactly one of these
HEADER_TRIGGERS = frozenset(
    {
        "nombre",
        "name",
        "producto",
        "precio",
        "price",
        "categoria",
        "categoría",
        "category",
        "imagen",
        "image",
    }
)

# Substring keywords per field; order matters, a header claims the first field it matches
FIELD_KEYWORDS = {
    "name": ("nombre", "name", "producto", "product", "titulo", "title", "plato", "item"),
    "price": ("precio", "price", "valor", "costo", "amount"),
    "description": ("descripcion", "descripción", "description", "detalle", "detail", "info"),
    "category": ("categoria", "categoría", "category", "tipo", "group", "seccion"),
    "image": ("imagen", "image", "img", "foto", "url_imagen"),
}


# ===== Errors =====


class ExtractionError(ValueError):
    """Input-wide failure; the whole call is rejected."""


class InputMissingError(ExtractionError):
    pass


class EmptyInputError(ExtractionError):
    pass


class TextRecoveryError(ExtractionError):
    """The text-recovery provider could not read the image."""


# ===== Metrics =====


@dataclass
class ExtractionMetrics:
    """Per-call counters collected during extraction."""

    mode: str = ""  # "clean", "messy" or "lines"
    rows: int = 0
    tokens: int = 0
    prices_seen: int = 0
    prices_without_name: int = 0
    category_changes: int = 0
    items_before_dedup: int = 0
    duplicates_dropped: int = 0
    items: int = 0
    elapsed: float = 0.0


# ===== Clean-header mode =====


def has_clean_headers(header_row: list[str]) -> bool:
    return any(h.lower().strip() in HEADER_TRIGGERS for h in header_row)


def build_column_map(header_row: list[str]) -> ColumnMap:
    """Map fields to columns, scanning headers left to right.

    Each header claims at most one field. Name falls back to column 0.
    """
    slots: dict[str, int] = {}
    for idx, raw in enumerate(header_row):
        header = raw.lower().strip()
        for field_name, keywords in FIELD_KEYWORDS.items():
            if field_name in slots:
                continue
            if any(k in header for k in keywords):
                slots[field_name] = idx
                break

    if "name" not in slots and header_row:
        slots["name"] = 0

    return ColumnMap(**slots)


def _cell(row: list[str], idx: int | None) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def extract_with_headers(rows: list[list[str]], metrics: ExtractionMetrics | None = None) -> list[ExtractedItem]:
    """One item per data row, fields read through the header column map."""
    if not rows:
        return []

    col = build_column_map(rows[0])
    logger.debug(f"Column map: {col}")

    items: list[ExtractedItem] = []
    for row in rows[1:]:
        name = _cell(row, col.name)
        if not name:
            continue
        # Never let a bare price or image link become a name
        if is_price(name) or is_image_reference(name):
            logger.debug(f"Skipping row with non-name value in name column: {name!r}")
            continue

        items.append(
            ExtractedItem(
                name=name,
                description=_cell(row, col.description),
                price=clean_price(_cell(row, col.price)) if col.price is not None else 0.0,
                category=_cell(row, col.category) or DEFAULT_CATEGORY,
                image_url=_cell(row, col.image) or None,
            )
        )

    if metrics is not None:
        metrics.rows = len(rows)
    return items


# ===== Messy/scrape mode =====


def _scan_name_and_description(stream: list[str], i: int) -> tuple[str, str]:
    """Look back from a price for its name and description.

    Stops before a price or image (the previous item's boundary); skips UI
    noise and badges. The last candidate found is the description, the one
    before it is the name.
    """
    found: list[str] = []
    for j in range(i - 1, max(0, i - NAME_LOOKBACK) - 1, -1):
        prev = stream[j]
        if is_price(prev) or is_image_reference(prev):
            break
        if is_ui_noise(prev) or is_badge(prev):
            continue
        if is_name_candidate(prev):
            found.insert(0, prev)

    if len(found) >= 2:
        return found[-2], found[-1]
    if found:
        return found[0], ""
    return "", ""


def _scan_image(stream: list[str], i: int) -> str | None:
    for j in range(i + 1, min(len(stream), i + 1 + IMAGE_LOOKAHEAD)):
        if is_image_reference(stream[j]):
            return stream[j]
    return None


def _scan_category(stream: list[str], i: int, exclude: tuple[str, ...]) -> str | None:
    """Closest heading-like token before a price, within the previous item's boundary."""
    for j in range(i - 1, max(0, i - CATEGORY_LOOKBACK) - 1, -1):
        prev = stream[j]
        if is_price(prev):
            break
        if (
            is_category_candidate(prev)
            and not is_ui_noise(prev)
            and len(prev) <= MAX_CATEGORY_LENGTH
            and prev not in exclude
        ):
            return prev
    return None


def reconstruct_item(
    stream: list[str], i: int, current_category: str
) -> tuple[ExtractedItem | None, str]:
    """Rebuild the item anchored on the price at stream[i].

    Returns (item or None, category to carry forward). The category only
    changes when a new heading is found near this price.
    """
    name, description = _scan_name_and_description(stream, i)
    image_url = _scan_image(stream, i)

    anchor = _scan_category(stream, i, exclude=(name, description))
    if anchor is not None:
        current_category = anchor

    if not name:
        return None, current_category

    item = ExtractedItem(
        name=name,
        description=description,
        price=clean_price(stream[i]),
        category=current_category,
        image_url=image_url,
    )
    return item, current_category


def extract_from_stream(stream: list[str], metrics: ExtractionMetrics | None = None) -> list[ExtractedItem]:
    """Walk a flattened token stream and rebuild one item per usable price."""
    if metrics is None:
        metrics = ExtractionMetrics()

    items: list[ExtractedItem] = []
    current_category = DEFAULT_CATEGORY

    for i, token in enumerate(stream):
        if not is_price(token) or clean_price(token) <= 0:
            continue
        metrics.prices_seen += 1

        item, category = reconstruct_item(stream, i, current_category)
        if category != current_category:
            metrics.category_changes += 1
            current_category = category

        if item is None:
            metrics.prices_without_name += 1
            logger.debug(f"No name found for price {token!r} at position {i}")
            continue
        items.append(item)

    metrics.tokens = len(stream)
    return items


# ===== Recovered-text mode =====


def extract_from_lines(lines: list[str], metrics: ExtractionMetrics | None = None) -> list[ExtractedItem]:
    """Rebuild items from recovered text, one line at a time.

    A heading line (not the last line) switches the current category. A line
    with an inline price becomes an item named by the rest of the line, or by
    the previous line when the rest is too short to be a name.
    """
    if metrics is None:
        metrics = ExtractionMetrics()

    items: list[ExtractedItem] = []
    current_category = DEFAULT_CATEGORY
    last = len(lines) - 1

    for i, line in enumerate(lines):
        if is_category_candidate(line) and not is_price(line) and CURRENCY_SYMBOL not in line and i < last:
            if line != current_category:
                metrics.category_changes += 1
            current_category = line
            continue

        price_text = find_inline_price(line)
        if price_text is None:
            continue
        metrics.prices_seen += 1

        name = line.replace(price_text, "", 1).strip()
        if len(name) < 3 and i > 0 and not is_price(lines[i - 1]):
            name = lines[i - 1]

        if not is_name_candidate(name):
            metrics.prices_without_name += 1
            logger.debug(f"Dropping line without a usable name: {line!r}")
            continue

        items.append(
            ExtractedItem(
                name=name,
                description="",
                price=clean_price(price_text),
                category=current_category,
                image_url=None,
            )
        )

    metrics.rows = len(lines)
    return items


# ===== Assembly =====


def deduplicate(items: list[ExtractedItem]) -> list[ExtractedItem]:
    """Keep the first item per case-insensitive name, preserving order."""
    seen: set[str] = set()
    unique: list[ExtractedItem] = []
    for item in items:
        key = item.name.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def _assemble(items: list[ExtractedItem], metrics: ExtractionMetrics, t0: float) -> list[ExtractedItem]:
    metrics.items_before_dedup = len(items)
    unique = deduplicate(items)
    metrics.items = len(unique)
    metrics.duplicates_dropped = len(items) - len(unique)
    metrics.elapsed = time.monotonic() - t0

    logger.info(
        f"Extracted {metrics.items} items ({metrics.mode} mode) | "
        f"prices: {metrics.prices_seen}, unnamed: {metrics.prices_without_name}, "
        f"duplicates dropped: {metrics.duplicates_dropped} | {metrics.elapsed:.3f}s"
    )
    return unique


# ===== Entry points =====


def extract_from_table(text: str | None, delimiter: str | None = None) -> tuple[list[ExtractedItem], ExtractionMetrics]:
    """Extract items from a delimited spreadsheet export.

    Raises InputMissingError when no content is given and EmptyInputError
    when the content has no non-empty rows.
    """
    if text is None:
        raise InputMissingError("CSV content is required")

    t0 = time.monotonic()
    metrics = ExtractionMetrics()

    rows = parse_delimited(text, delimiter)
    if not rows:
        raise EmptyInputError("El archivo CSV está vacío.")

    if has_clean_headers(rows[0]):
        metrics.mode = "clean"
        items = extract_with_headers(rows, metrics)
    else:
        metrics.mode = "messy"
        metrics.rows = len(rows)
        items = extract_from_stream(flatten_cells(rows), metrics)

    return _assemble(items, metrics, t0), metrics


def extract_from_text(text: str | None) -> tuple[list[ExtractedItem], ExtractionMetrics]:
    """Extract items from recovered (OCR) text with approximate line breaks."""
    if text is None:
        raise InputMissingError("Text content is required")

    t0 = time.monotonic()
    metrics = ExtractionMetrics(mode="lines")

    lines = split_lines(text)
    if not lines:
        raise EmptyInputError("No se pudo leer texto en la imagen.")

    items = extract_from_lines(lines, metrics)
    return _assemble(items, metrics, t0), metrics
