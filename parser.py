"""
Tokenizers for raw menu input.

Turns delimited spreadsheet exports into rows of trimmed cells, flattens
those rows into a single token stream, and splits recovered text into
non-blank lines. No classification happens here.
"""

import logging

logger = logging.getLogger(__name__)

# Delimiters considered by detect_delimiter, in tie-break order
CANDIDATE_DELIMITERS = (",", ";", "\t")
QUOTE = '"'
# Lines examined by detect_delimiter
SNIFF_LINES = 10


# ---------------------------------------------------------------------------
# Delimiter detection
# ---------------------------------------------------------------------------


def detect_delimiter(text: str) -> str:
    """Guess the field delimiter from the first few non-blank lines.

    Counts each candidate outside quoted sections, line by line. The
    candidate found on the most lines wins, then the highest total count.
    Spanish-locale exports often use ";" since "," is the decimal mark.
    Falls back to "," when nothing is found, or when the winner shows up
    on just one of several lines (a stray ";" in a title, say).
    """
    per_line: list[dict[str, int]] = []
    counts = dict.fromkeys(CANDIDATE_DELIMITERS, 0)
    in_quotes = False
    seen_content = False

    for c in text:
        if c == QUOTE:
            in_quotes = not in_quotes
            seen_content = True
            continue
        if in_quotes:
            continue
        if c in ("\n", "\r"):
            if seen_content:
                per_line.append(counts)
                if len(per_line) >= SNIFF_LINES:
                    break
                counts = dict.fromkeys(CANDIDATE_DELIMITERS, 0)
                seen_content = False
            continue
        if c in counts:
            counts[c] += 1
        if not c.isspace():
            seen_content = True

    if seen_content and len(per_line) < SNIFF_LINES:
        per_line.append(counts)
    if not per_line:
        return ","

    def score(d: str) -> tuple[int, int]:
        return sum(1 for line in per_line if line[d]), sum(line[d] for line in per_line)

    best = max(CANDIDATE_DELIMITERS, key=score)
    lines_with_best, total = score(best)
    if total == 0:
        return ","
    if lines_with_best == 1 and len(per_line) > 1:
        return ","
    return best


# ---------------------------------------------------------------------------
# Quote-aware delimited parsing
# ---------------------------------------------------------------------------


def parse_delimited(text: str, delimiter: str | None = None) -> list[list[str]]:
    """Split delimited text into rows of trimmed cells.

    Quoted fields may contain the delimiter, newlines, or doubled quotes.
    Rows made only of empty cells are never emitted. Empty input yields [].
    """
    # Spreadsheet exports often start with a BOM that would hide the first header
    text = text.lstrip("\ufeff")
    if not text:
        return []
    if delimiter is None:
        delimiter = detect_delimiter(text)

    rows: list[list[str]] = []
    row: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    def end_row() -> None:
        nonlocal row
        row.append("".join(current).strip())
        if any(cell for cell in row):
            rows.append(row)
        row = []
        current.clear()

    while i < n:
        c = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if in_quotes:
            if c == QUOTE and nxt == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            if c == QUOTE:
                in_quotes = False
            else:
                current.append(c)
            i += 1
            continue

        if c == QUOTE:
            in_quotes = True
        elif c == delimiter:
            row.append("".join(current).strip())
            current.clear()
        elif c == "\n":
            end_row()
        elif c == "\r" and nxt == "\n":
            end_row()
            i += 1  # consume the \n as well
        else:
            current.append(c)
        i += 1

    # Last row has no terminator
    end_row()

    if in_quotes:
        logger.debug("Unterminated quoted field at end of input")

    return rows


def flatten_cells(rows: list[list[str]]) -> list[str]:
    """Row-major token stream of every non-empty cell."""
    return [cell.strip() for row in rows for cell in row if cell and cell.strip()]


# ---------------------------------------------------------------------------
# Recovered text
# ---------------------------------------------------------------------------


def split_lines(text: str) -> list[str]:
    """Split recovered text into trimmed, non-blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]
