from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Category assigned when no heading has been seen yet
DEFAULT_CATEGORY = "General"


class ClassificationTag(str, Enum):
    """Label derived purely from a token's text."""

    PRICE = "Price"
    IMAGE_REFERENCE = "ImageReference"
    NAME_CANDIDATE = "NameCandidate"
    CATEGORY_CANDIDATE = "CategoryCandidate"
    UI_NOISE = "UiNoise"
    UNCLASSIFIED = "Unclassified"


@dataclass(frozen=True)
class ColumnMap:
    """Zero-based column index per logical field, None when unmapped."""

    name: int | None = None
    price: int | None = None
    description: int | None = None
    category: int | None = None
    image: int | None = None


class ExtractedItem(BaseModel):
    """A single catalog record reconstructed from a menu."""

    name: str
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    category: str = DEFAULT_CATEGORY
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name must not be empty")
        return v

    @field_validator("category")
    @classmethod
    def default_empty_category(cls, v: str) -> str:
        return v.strip() or DEFAULT_CATEGORY


class ExtractionResult(BaseModel):
    """Success envelope returned by every extraction endpoint."""

    success: bool = True
    items: list[ExtractedItem]
    count: int


class ImageExtractionResult(ExtractionResult):
    # Raw recovered text, kept for diagnosing misreads
    text_debug: str = ""


class ErrorResponse(BaseModel):
    error: str
