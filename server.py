"""
FastAPI server for menu extraction.

Two request/response endpoints, both returning the same JSON envelope:
- POST /api/process-csv   → items from a delimited spreadsheet export
- POST /api/process-image → items from a photographed or scanned menu

Extraction never writes to storage; the caller bulk-inserts the items.
"""

import asyncio
import logging
import os

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from extractor import ExtractionError, InputMissingError, extract_from_table, extract_from_text
from models import ErrorResponse, ExtractionResult, ImageExtractionResult
from ocr import recover_text

logger = logging.getLogger("server")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
OCR_TIMEOUT_SECONDS = float(os.environ.get("OCR_TIMEOUT_SECONDS", "60"))
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CSVRequest(BaseModel):
    csv_content: str | None = None
    # Detected from the first lines when omitted
    delimiter: str | None = None


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Menu Extraction API",
    default_response_class=ORJSONResponse,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    max_age=86400,
)


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError) -> ORJSONResponse:
    logger.warning("Extraction rejected for %s: %s", request.url.path, exc)
    return ORJSONResponse(status_code=400, content=ErrorResponse(error=str(exc)).model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    # Malformed bodies get the same {error} envelope as every other failure
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request ({where}): {first.get('msg', 'validation error')}"
    else:
        message = "Invalid request"
    logger.warning("Request rejected for %s: %s", request.url.path, message)
    return ORJSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post(
    "/api/process-csv",
    response_model=ExtractionResult,
    responses={400: {"model": ErrorResponse}},
)
async def process_csv(body: CSVRequest):
    """Extract catalog items from raw CSV text (clean export or scraped dump)."""
    items, metrics = extract_from_table(body.csv_content, body.delimiter)
    logger.info("process-csv: %d items from %d rows (%s mode)", metrics.items, metrics.rows, metrics.mode)
    return ExtractionResult(items=items, count=len(items))


@app.post(
    "/api/process-image",
    response_model=ImageExtractionResult,
    responses={400: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def process_image(image: UploadFile | None = File(None)):
    """Recover text from a menu photo, then extract catalog items from it."""
    if image is None:
        raise InputMissingError("No valid image file uploaded")

    data = await image.read()
    if not data:
        raise InputMissingError("No valid image file uploaded")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InputMissingError(f"Image exceeds the {MAX_UPLOAD_BYTES} byte upload limit")

    try:
        text = await asyncio.wait_for(asyncio.to_thread(recover_text, data), timeout=OCR_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        # No partial text is usable once recognition is abandoned
        logger.warning("Text recovery timed out after %.0fs for %s", OCR_TIMEOUT_SECONDS, image.filename)
        return ORJSONResponse(
            status_code=504,
            content=ErrorResponse(error="Text recovery timed out").model_dump(),
        )

    logger.debug("Recovered text:\n%s", text)

    items, metrics = extract_from_text(text)
    logger.info("process-image: %d items from %d lines", metrics.items, metrics.rows)
    return ImageExtractionResult(items=items, count=len(items), text_debug=text)
