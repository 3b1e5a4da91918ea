"""
Batch menu extraction.

Runs every menu file in a data directory through the extraction engine
concurrently (asyncio.gather over worker threads), writes all items to
items.json and prints a report:
  *.csv, *.tsv            -> tabular extraction
  *.txt                   -> recovered-text extraction
  *.png, *.jpg, *.webp    -> OCR, then recovered-text extraction
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

from extractor import ExtractionMetrics, extract_from_table, extract_from_text
from models import ExtractedItem
from ocr import recover_text

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
OUTPUT_FILE = Path(__file__).parent / "items.json"

TABLE_SUFFIXES = {".csv", ".tsv"}
TEXT_SUFFIXES = {".txt"}
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp"}


def _extract_file(filepath: Path) -> tuple[list[ExtractedItem], ExtractionMetrics]:
    suffix = filepath.suffix.lower()
    if suffix in TABLE_SUFFIXES:
        text = filepath.read_text(encoding="utf-8-sig")
        return extract_from_table(text, "\t" if suffix == ".tsv" else None)
    if suffix in TEXT_SUFFIXES:
        return extract_from_text(filepath.read_text(encoding="utf-8"))
    return extract_from_text(recover_text(filepath.read_bytes()))


async def process_file(filepath: Path) -> tuple[list[ExtractedItem], ExtractionMetrics]:
    """Process a single menu file through the extraction pipeline."""
    logger.info(f"Processing {filepath.name}...")
    items, metrics = await asyncio.to_thread(_extract_file, filepath)
    logger.info(f"  Result: {len(items)} items, {metrics.duplicates_dropped} duplicates dropped ({metrics.mode} mode)")
    return items, metrics


async def process_all(data_dir: Path) -> tuple[dict[str, list[ExtractedItem]], dict[str, ExtractionMetrics], int]:
    """Process all menu files in data_dir concurrently.

    Returns (items_by_file, metrics_by_file, failure_count).
    """
    suffixes = TABLE_SUFFIXES | TEXT_SUFFIXES | IMAGE_SUFFIXES
    files = sorted(p for p in data_dir.iterdir() if p.is_file() and p.suffix.lower() in suffixes)
    logger.info(f"Found {len(files)} menu files to process")

    results = await asyncio.gather(
        *[process_file(f) for f in files],
        return_exceptions=True,
    )

    items_by_file: dict[str, list[ExtractedItem]] = {}
    metrics_by_file: dict[str, ExtractionMetrics] = {}
    failures = 0

    for filepath, result in zip(files, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to process {filepath.name}: {result}", exc_info=result)
            failures += 1
        else:
            items, metrics = result
            items_by_file[filepath.name] = items
            metrics_by_file[filepath.name] = metrics

    return items_by_file, metrics_by_file, failures


def print_report(
    items_by_file: dict[str, list[ExtractedItem]],
    metrics_by_file: dict[str, ExtractionMetrics],
    failures: int,
    wall_clock: float,
) -> None:
    """Print an extraction report."""
    n = len(metrics_by_file)
    total_files = n + failures

    print(f"\n{'='*70}")
    print("EXTRACTION REPORT")
    print(f"{'='*70}")

    print("\n── Reliability ──")
    print(f"  Files attempted:  {total_files}")
    print(f"  Succeeded:        {n}")
    print(f"  Failed:           {failures}")

    if not metrics_by_file:
        print("\n  No successful extractions to report on.")
        return

    print("\n── Per file ──")
    print(f"  {'File':<28} {'Mode':>6} {'Rows':>6} {'Prices':>7} {'Unnamed':>8} {'Dups':>5} {'Items':>6} {'Time':>8}")
    print(f"  {'-'*80}")
    for name, m in metrics_by_file.items():
        print(
            f"  {name[:28]:<28} {m.mode:>6} {m.rows:>6} {m.prices_seen:>7} "
            f"{m.prices_without_name:>8} {m.duplicates_dropped:>5} {m.items:>6} {m.elapsed:>7.3f}s"
        )

    zero = [name for name, items in items_by_file.items() if not items]
    if zero:
        print(f"\n  Needs manual entry (0 items): {zero}")

    print("\n── Categories ──")
    for name, items in items_by_file.items():
        counts: dict[str, int] = {}
        for item in items:
            counts[item.category] = counts.get(item.category, 0) + 1
        summary = ", ".join(f"{cat} ({c})" for cat, c in counts.items())
        print(f"  {name[:28]:<28} {summary or '-'}")

    total_items = sum(m.items for m in metrics_by_file.values())
    print(f"\n  Total items: {total_items}")
    print(f"  Wall clock:  {wall_clock:.2f}s")
    print(f"\n{'='*70}")


async def main() -> None:
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else DATA_DIR

    t_wall_start = time.monotonic()
    items_by_file, metrics_by_file, failures = await process_all(data_dir)
    wall_clock = time.monotonic() - t_wall_start

    output = {name: [item.model_dump() for item in items] for name, items in items_by_file.items()}
    OUTPUT_FILE.write_text(json.dumps(output, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Wrote items for {len(output)} files to {OUTPUT_FILE}")

    print_report(items_by_file, metrics_by_file, failures, wall_clock)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())
