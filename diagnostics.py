"""
Diagnostic: tokenize, classify and show what each price anchors.
Prints every token of a menu file with its tags. In scraped dumps, each
price is annotated with the item (and category) rebuilt around it, for
tuning the rule tables in classifiers.py.
"""

import sys
from pathlib import Path

from classifiers import classify, clean_price, is_price, tags_for
from extractor import has_clean_headers, reconstruct_item
from models import DEFAULT_CATEGORY, ClassificationTag
from parser import flatten_cells, parse_delimited, split_lines

DATA_DIR = Path(__file__).parent / "data"


def load_tokens(filepath: Path) -> tuple[list[str], str]:
    """Return (tokens, source) where source is "header", "stream" or "lines"."""
    text = filepath.read_text(encoding="utf-8-sig")
    if filepath.suffix.lower() == ".txt":
        return split_lines(text), "lines"

    rows = parse_delimited(text)
    if rows and has_clean_headers(rows[0]):
        return [" | ".join(row) for row in rows], "header"
    return flatten_cells(rows), "stream"


def diagnose_file(filepath: Path) -> dict:
    tokens, source = load_tokens(filepath)

    report = {"file": filepath.name, "source": source, "tokens": [], "tag_counts": {}}
    current_category = DEFAULT_CATEGORY

    for i, token in enumerate(tokens):
        tag = classify(token)
        extra = sorted(t.value for t in tags_for(token) - {tag})
        note = ""

        if source == "stream" and is_price(token) and clean_price(token) > 0:
            item, current_category = reconstruct_item(tokens, i, current_category)
            note = f"-> {item.name!r} [{item.category}]" if item else "-> (no name)"

        report["tokens"].append((i, tag, extra, token, note))
        report["tag_counts"][tag] = report["tag_counts"].get(tag, 0) + 1

    return report


def main():
    if len(sys.argv) > 1:
        files = [Path(p) for p in sys.argv[1:]]
    else:
        files = sorted(p for p in DATA_DIR.glob("*") if p.suffix.lower() in (".csv", ".tsv", ".txt"))
    print(f"Diagnosing {len(files)} files (tokens, tags and price anchors)\n")

    for filepath in files:
        report = diagnose_file(filepath)

        print(f"{'=' * 70}")
        print(f"  {report['file']}  ({report['source']}, {len(report['tokens'])} tokens)")
        print(f"{'=' * 70}")

        for i, tag, extra, token, note in report["tokens"]:
            shown = token if len(token) <= 60 else token[:57] + "..."
            also = f" (+{','.join(extra)})" if extra else ""
            print(f"  {i:>5} {tag.value:<18}{also:<20} {shown!r} {note}")

        print("\n  Tag counts:")
        for tag in ClassificationTag:
            print(f"    {tag.value:<20} {report['tag_counts'].get(tag, 0)}")
        print()


if __name__ == "__main__":
    main()
