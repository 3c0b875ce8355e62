"""
Pydantic models for every artifact that flows through the camp pipeline.

Structured side (workbook → JSON dataset):
  - ParsedDate / ParsedTime  – typed views of free-text date and time cells
  - CampRecord               – one offered session, one per workbook row
  - SheetData                – records plus filter vocabularies for one sheet

Free-text side (brochure → markdown corpus):
  - CampDescription          – one heading with its description and codes

Everything serialises with camelCase keys because that is what the browsing
application reads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Typed cell values ────────────────────────────────────────────────────

class ParsedDate(_CamelModel):
    """A calendar date recognised from an ``M/D/Y`` cell."""

    iso: str
    year: int
    month: int
    day: int
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    day_name: str
    month_name: str


class ParsedTime(_CamelModel):
    """A clock time recognised from an ``H:MM AM|PM`` cell."""

    formatted: str  # "09:00"
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    minutes_since_midnight: int
    period: Literal["AM", "PM"]


class Coordinates(BaseModel):
    lat: float
    lng: float


# ── Records ──────────────────────────────────────────────────────────────

class CampRecord(_CamelModel):
    """One camp session. Unknown workbook columns are kept as extra fields."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    title: str | None = None
    category: str | None = None
    catalog_id: str | None = None
    community: str | None = None
    location: str | None = None
    fee: int | float | str | None = None
    start_date: ParsedDate | str | None = None
    end_date: ParsedDate | str | None = None
    start_time: ParsedTime | str | None = None
    end_time: ParsedTime | str | None = None
    min_age: int | str | None = None
    max_age: int | str | None = None
    date_range: str | None = None
    status: str | None = None
    duration_hours: float | None = None
    duration_days: int | None = None
    coordinates: Coordinates | None = None
    description: str | None = None


class SheetEnums(_CamelModel):
    """Sorted distinct values used as filter vocabularies by the UI."""

    categories: list[str] = Field(default_factory=list)
    communities: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    date_ranges: list[str] = Field(default_factory=list)


class SheetMetadata(_CamelModel):
    total_camps: int
    enums: SheetEnums
    generated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class SheetData(_CamelModel):
    camps: list[CampRecord] = Field(default_factory=list)
    metadata: SheetMetadata


# ── Free-text corpus ─────────────────────────────────────────────────────

class CampDescription(BaseModel):
    """One heading of the extracted markdown corpus."""

    name: str
    description: str
    codes: list[str] = Field(default_factory=list)


class MatchMethod(str, Enum):
    CODE = "code"
    NAME = "name"
    NORMALIZED_NAME = "normalized_name"
    FUZZY = "fuzzy"


# ── Helpers ──────────────────────────────────────────────────────────────

def dataset_to_json(dataset: dict[str, SheetData]) -> dict[str, Any]:
    """Serialise a sheet-name → SheetData mapping into plain JSON types."""
    return {name: sheet.to_json_dict() for name, sheet in dataset.items()}


def dataset_from_json(payload: dict[str, Any]) -> dict[str, SheetData]:
    """Inverse of :func:`dataset_to_json`. Entries without camps are skipped."""
    dataset: dict[str, SheetData] = {}
    for name, sheet in payload.items():
        if not isinstance(sheet, dict) or "camps" not in sheet:
            continue
        dataset[name] = SheetData.model_validate(sheet)
    return dataset
