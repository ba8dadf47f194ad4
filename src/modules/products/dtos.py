"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Views)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for partial product updates.  Presence of
  a field is tracked through ``model_fields_set``.
- ``ImageUploadDTO``: an uploaded image (bytes + content type).
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.products.constants import (
    ALLOWED_IMAGE_TYPES,
    DESCRIPTION_MIN_LENGTH,
    GTIN_LENGTH,
    MAX_IMAGE_BYTES,
    TempUnits,
)

GTIN_PATTERN = re.compile(rf"^\d{{{GTIN_LENGTH}}}$")

# Fields copied onto the product as-is when present in a patch.
PATCHABLE_FIELDS = (
    "name",
    "description",
    "category",
    "type",
    "packaging_type",
    "temp_units",
    "min_temp",
    "max_temp",
    "storage_instructions",
    "height",
    "width",
    "depth",
    "weight",
)


def _check_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Name must not be empty.")
    return v.strip()


def _check_description(v: str) -> str:
    if len(v.strip()) < DESCRIPTION_MIN_LENGTH:
        raise ValueError(
            f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters."
        )
    return v.strip()


def _check_temp_units(v: str) -> str:
    v = v.strip().upper()
    if v and v not in TempUnits.values:
        raise ValueError("Temperature units must be 'C' or 'F'.")
    return v


def _check_dimension(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v < 0:
        raise ValueError("Dimensions cannot be negative.")
    return v


def _check_temp_range(min_temp: Optional[Decimal], max_temp: Optional[Decimal]) -> None:
    if min_temp is not None and max_temp is not None and min_temp > max_temp:
        raise ValueError("min_temp must not be greater than max_temp.")


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``gtin`` is exactly 14 digits.
    - ``name`` is non-empty.
    - ``description`` has at least 10 characters.
    - ``temp_units`` is ``C``, ``F`` or blank.
    - ``min_temp <= max_temp`` when both are supplied.
    """

    model_config = ConfigDict(frozen=True)

    gtin: str
    name: str
    description: str
    category: str = ""
    type: str = ""
    packaging_type: str = ""
    temp_units: str = ""
    min_temp: Optional[Decimal] = None
    max_temp: Optional[Decimal] = None
    storage_instructions: str = ""
    height: Optional[Decimal] = None
    width: Optional[Decimal] = None
    depth: Optional[Decimal] = None
    weight: Optional[Decimal] = None

    @field_validator("gtin")
    @classmethod
    def gtin_must_be_fourteen_digits(cls, v: str) -> str:
        v = v.strip()
        if not GTIN_PATTERN.match(v):
            raise ValueError(f"GTIN must be exactly {GTIN_LENGTH} digits.")
        return v

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("description")
    @classmethod
    def description_min_length(cls, v: str) -> str:
        return _check_description(v)

    @field_validator("temp_units")
    @classmethod
    def temp_units_must_be_known(cls, v: str) -> str:
        return _check_temp_units(v)

    @field_validator("height", "width", "depth", "weight")
    @classmethod
    def dimensions_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _check_dimension(v)

    @model_validator(mode="after")
    def temp_range_must_be_ordered(self) -> CreateProductDTO:
        _check_temp_range(self.min_temp, self.max_temp)
        return self


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    Only fields present in ``model_fields_set`` are applied; a present
    zero is a real value.  ``subscribers`` is the exception: when it is
    missing or empty the product is unpublished.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    packaging_type: Optional[str] = None
    temp_units: Optional[str] = None
    min_temp: Optional[Decimal] = None
    max_temp: Optional[Decimal] = None
    storage_instructions: Optional[str] = None
    height: Optional[Decimal] = None
    width: Optional[Decimal] = None
    depth: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    subscribers: List[int] = []
    date_inactive: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_name(v)

    @field_validator("description")
    @classmethod
    def description_min_length(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_description(v)

    @field_validator("temp_units")
    @classmethod
    def temp_units_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_temp_units(v)

    @field_validator("height", "width", "depth", "weight")
    @classmethod
    def dimensions_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _check_dimension(v)

    @field_validator("subscribers", mode="before")
    @classmethod
    def parse_subscribers(cls, v: Any) -> List[Any]:
        """Accept a list, a comma-separated string, or a list of such strings."""
        if v is None:
            return []
        items = v if isinstance(v, (list, tuple)) else [v]
        parsed: List[Any] = []
        for item in items:
            if isinstance(item, str):
                parsed.extend(part.strip() for part in item.split(",") if part.strip())
            else:
                parsed.append(item)
        return parsed

    @field_validator("date_inactive")
    @classmethod
    def date_inactive_is_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def temp_range_must_be_ordered(self) -> UpdateProductDTO:
        _check_temp_range(self.min_temp, self.max_temp)
        return self

    def changes(self) -> Dict[str, Any]:
        """Plain field changes present in this patch."""
        return {
            field: getattr(self, field)
            for field in PATCHABLE_FIELDS
            if field in self.model_fields_set
        }


class ImageUploadDTO(BaseModel):
    """Immutable DTO for an uploaded product image."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str

    @field_validator("content_type")
    @classmethod
    def content_type_must_be_allowed(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ALLOWED_IMAGE_TYPES:
            allowed = ", ".join(sorted(ALLOWED_IMAGE_TYPES))
            raise ValueError(f"Unsupported image type '{v}'. Allowed: {allowed}.")
        return v

    @field_validator("content")
    @classmethod
    def content_size_within_limit(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("Image file is empty.")
        if len(v) > MAX_IMAGE_BYTES:
            raise ValueError(f"Image exceeds {MAX_IMAGE_BYTES} bytes.")
        return v

    @property
    def extension(self) -> str:
        return ALLOWED_IMAGE_TYPES[self.content_type]

    @classmethod
    def from_upload(cls, upload: Any) -> ImageUploadDTO:
        """Build from a Django ``UploadedFile``."""
        return cls(content=upload.read(), content_type=upload.content_type or "")
