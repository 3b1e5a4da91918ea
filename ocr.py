"""
Text recovery for photographed or scanned menus.

Thin adapter over Tesseract: image bytes in, UTF-8 text out. Line breaks in
the output follow the printed layout only approximately.
"""

import io
import logging
import os

import pytesseract
from PIL import Image, UnidentifiedImageError

from extractor import InputMissingError, TextRecoveryError

logger = logging.getLogger(__name__)

OCR_LANGUAGE = os.environ.get("OCR_LANGUAGE", "spa")
# --psm 4: a single column of text of variable sizes, which suits most menus
OCR_CONFIG = os.environ.get("OCR_CONFIG", "--oem 1 --psm 4")

_tesseract_cmd = os.environ.get("TESSERACT_CMD")
if _tesseract_cmd:
    pytesseract.pytesseract.tesseract_cmd = _tesseract_cmd


def _load_image(image_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise TextRecoveryError("No valid image file uploaded") from e

    # Tesseract copes best with plain RGB or grayscale
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return image


def recover_text(image_bytes: bytes, lang: str = OCR_LANGUAGE) -> str:
    """Run OCR over an image and return the recognized text."""
    if not image_bytes:
        raise InputMissingError("No valid image file uploaded")

    image = _load_image(image_bytes)
    logger.info(f"Recovering text from {image.width}x{image.height} image (lang={lang})")

    try:
        text = pytesseract.image_to_string(image, lang=lang, config=OCR_CONFIG)
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
        raise TextRecoveryError(f"Text recovery failed: {e}") from e

    logger.debug(f"Recovered {len(text)} characters")
    return text
