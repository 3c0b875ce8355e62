"""
Workbook → camp dataset conversion.

Each sheet is scanned for its header row (the row holding the "Camp Title"
cell near the top-left corner); sheets without one carry no camp data and are
skipped. Rows below the header are cleaned, typed through
``inference.classify_row`` and, when a resolver is supplied, geocoded.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterator

import pandas as pd

from summer_camps.ingestion.config import ingest_settings
from summer_camps.ingestion.geocoding import GeocodingResolver
from summer_camps.ingestion.inference import classify_row
from summer_camps.ingestion.schemas import CampRecord, SheetData, SheetEnums, SheetMetadata

logger = logging.getLogger(__name__)

# Auto-generated names for unlabelled columns (SheetJS / pandas / Excel tables)
_PLACEHOLDER_HEADER = re.compile(r"^(__EMPTY|Unnamed:|Column)")


def cell_to_text(value: Any) -> str | None:
    """Render a cell the way Excel displays it, or ``None`` if it is empty."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (datetime, pd.Timestamp)):
        if (value.hour, value.minute) != (0, 0) and value.year <= 1900:
            return _time_to_text(value.time())
        return f"{value.month}/{value.day}/{value.year}"
    if isinstance(value, date):
        return f"{value.month}/{value.day}/{value.year}"
    if isinstance(value, time):
        return _time_to_text(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _time_to_text(value: time) -> str:
    period = "AM" if value.hour < 12 else "PM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {period}"


def find_header_row(frame: pd.DataFrame, title: str | None = None) -> int | None:
    """Index of the first row whose leading cells contain *title*."""
    title = title or ingest_settings.header_title
    used = [c for c in range(frame.shape[1]) if frame.iloc[:, c].notna().any()]
    if not used:
        return None
    # Scan window starts at the sheet's first used column, wherever the table sits
    first = used[0]
    rows = min(len(frame), ingest_settings.header_scan_rows)
    cols = range(first, min(frame.shape[1], first + ingest_settings.header_scan_cols))
    for r in range(rows):
        for c in cols:
            value = frame.iat[r, c]
            if isinstance(value, str) and value.strip() == title:
                return r
    return None


def _header_names(values: list[Any]) -> list[str]:
    """Column names for the header row; repeats become ``Notes_1``, ``Notes_2`` …"""
    names: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(values):
        text = cell_to_text(value)
        name = text.strip() if text else f"__EMPTY_{idx}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
            logger.debug("Duplicate header renamed to %r.", name)
        else:
            seen[name] = 0
        names.append(name)
    return names


def clean_rows(frame: pd.DataFrame, header_row: int) -> list[dict[str, str]]:
    """Rows below the header as ``header → text``, minus blanks and decorations."""
    headers = _header_names(list(frame.iloc[header_row]))
    keep = [i for i, h in enumerate(headers) if not _PLACEHOLDER_HEADER.match(h)]

    cleaned: list[dict[str, str]] = []
    for r in range(header_row + 1, len(frame)):
        row: dict[str, str] = {}
        for c in keep:
            text = cell_to_text(frame.iat[r, c])
            if text is not None:
                row[headers[c]] = text
        if len(row) > ingest_settings.min_row_fields:
            cleaned.append(row)
    return cleaned


def extract_enums(records: list[CampRecord]) -> SheetEnums:
    categories: set[str] = set()
    communities: set[str] = set()
    locations: set[str] = set()
    date_ranges: set[str] = set()
    for rec in records:
        if rec.category:
            categories.add(rec.category)
        if rec.community:
            communities.add(rec.community)
        if rec.location:
            locations.add(rec.location)
        if rec.date_range:
            date_ranges.add(rec.date_range)
    return SheetEnums(
        categories=sorted(categories),
        communities=sorted(communities),
        locations=sorted(locations),
        date_ranges=sorted(date_ranges),
    )


class TypeInferenceIngestor:
    """Turns every camp sheet of a workbook into a ``SheetData``."""

    def __init__(self, resolver: GeocodingResolver | None = None) -> None:
        self.resolver = resolver

    def read_sheets(self, workbook_path: Path) -> Iterator[tuple[str, list[dict[str, str]]]]:
        """Yield ``(sheet name, cleaned rows)`` for sheets that carry camp data."""
        sheets: dict[str, pd.DataFrame] = pd.read_excel(
            workbook_path, sheet_name=None, header=None, dtype=object
        )
        for name, frame in sheets.items():
            if frame.empty:
                continue
            header_row = find_header_row(frame)
            if header_row is None:
                logger.info(
                    "Sheet %r has no %r header – skipped.", name, ingest_settings.header_title
                )
                continue
            yield name, clean_rows(frame, header_row)

    def geocode(self, records: list[CampRecord]) -> int:
        """Attach coordinates to *records*. Returns how many got one."""
        if self.resolver is None:
            return 0

        pairs = [(r.location, r.community) for r in records if r.location and r.community]
        logger.info(
            "Processing %d camps with %d unique locations…", len(records), len(set(pairs))
        )
        # Network lookups happen here, rate limited; the loop below only hits the cache.
        self.resolver.resolve_batch(pairs)

        located = 0
        for rec in records:
            if not (rec.location and rec.community):
                continue
            coords = self.resolver.resolve(rec.location, rec.community)
            if coords is not None:
                rec.coordinates = coords
                located += 1
        return located

    def ingest_sheet(self, name: str, rows: list[dict[str, str]]) -> SheetData:
        records: list[CampRecord] = []
        for i, row in enumerate(rows, 1):
            records.append(CampRecord.model_validate(classify_row(row)))
            if i % ingest_settings.progress_every == 0:
                logger.info("Processed %d/%d camps", i, len(rows))

        located = self.geocode(records)
        logger.info("Sheet %r: %d camps, %d geocoded.", name, len(records), located)
        return SheetData(
            camps=records,
            metadata=SheetMetadata(total_camps=len(records), enums=extract_enums(records)),
        )

    def ingest(self, workbook_path: Path) -> dict[str, SheetData]:
        """Convert every camp sheet of *workbook_path*."""
        workbook_path = Path(workbook_path)
        if not workbook_path.exists():
            raise FileNotFoundError(f"Workbook does not exist: {workbook_path}")

        dataset: dict[str, SheetData] = {}
        for name, rows in self.read_sheets(workbook_path):
            dataset[name] = self.ingest_sheet(name, rows)
        return dataset
