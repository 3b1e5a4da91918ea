from pathlib import Path

import pytest

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@pytest.fixture
def clean_menu_csv() -> str:
    return (DATA_DIR / "clean_menu.csv").read_text(encoding="utf-8")


@pytest.fixture
def scrape_dump_csv() -> str:
    return (DATA_DIR / "scrape_dump.csv").read_text(encoding="utf-8")


@pytest.fixture
def ocr_menu_text() -> str:
    return (DATA_DIR / "ocr_menu.txt").read_text(encoding="utf-8")
