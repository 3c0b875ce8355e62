"""
Best-effort type inference for free-text workbook cells.

Every parser returns ``None`` when the text does not have the expected shape;
the caller then keeps the raw string. Which parser runs for a cell is decided
by its column header through ``FIELD_PARSERS``.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from typing import Any, Callable

from summer_camps.ingestion.schemas import ParsedDate, ParsedTime

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^\$?\s*([\d,]+(?:\.\d+)?)$")
_AGE_RE = re.compile(r"^(\d+)\s*Years?$", re.IGNORECASE)

# Sunday-first, matching the dayOfWeek index the browsing app expects
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = list(calendar.month_name)[1:]


def parse_date(value: str) -> ParsedDate | None:
    """Parse ``M/D/YY`` or ``M/D/YYYY``; two-digit years are 20YY."""
    match = _DATE_RE.match(value.strip())
    if not match:
        return None
    month_str, day_str, year_str = match.groups()
    year = 2000 + int(year_str) if len(year_str) == 2 else int(year_str)
    month, day = int(month_str), int(day_str)
    try:
        d = date(year, month, day)
    except ValueError:
        return None

    day_of_week = (d.weekday() + 1) % 7
    return ParsedDate(
        iso=d.isoformat(),
        year=year,
        month=month,
        day=day,
        day_of_week=day_of_week,
        day_name=DAY_NAMES[day_of_week],
        month_name=MONTH_NAMES[month - 1],
    )


def parse_time(value: str) -> ParsedTime | None:
    """Parse ``H:MM AM|PM`` into 24-hour components."""
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour_str, minute_str, period_str = match.groups()
    period = period_str.upper()
    hour, minute = int(hour_str), int(minute_str)
    if not 1 <= hour <= 12 or minute > 59:
        return None

    hour24 = hour
    if period == "PM" and hour != 12:
        hour24 += 12
    if period == "AM" and hour == 12:
        hour24 = 0

    return ParsedTime(
        formatted=f"{hour24:02d}:{minute:02d}",
        hour=hour24,
        minute=minute,
        minutes_since_midnight=hour24 * 60 + minute,
        period=period,
    )


def parse_currency(value: str) -> int | float | None:
    """``"$1,440"`` → 1440, ``"12.50"`` → 12.5; optional ``$`` and thousands separators."""
    match = _NUMBER_RE.match(value.strip())
    if not match:
        return None
    amount = float(match.group(1).replace(",", ""))
    return int(amount) if amount.is_integer() else amount


def parse_age(value: str) -> int | None:
    """``"7 Years"`` → 7."""
    match = _AGE_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))


def parse_text(value: str) -> str:
    return value.strip()


def to_camel_key(header: str) -> str:
    """``"Extended Care"`` → ``"extendedCare"``."""
    header = header.strip()
    if not header:
        return header
    rest = re.sub(r"\s+(.)", lambda m: m.group(1).upper(), header[1:])
    return header[0].lower() + rest


# header → (record key, parser)
FIELD_PARSERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "Start Date": ("startDate", parse_date),
    "End Date": ("endDate", parse_date),
    "Start Time": ("startTime", parse_time),
    "End Time": ("endTime", parse_time),
    "Fee": ("fee", parse_currency),
    "Min Age": ("minAge", parse_age),
    "Max Age": ("maxAge", parse_age),
    "Camp Title": ("title", parse_text),
    "Camp Category": ("category", parse_text),
    "Catalog ID": ("catalogId", parse_text),
    "Date Range": ("dateRange", parse_text),
}


def classify_field(header: str, value: str) -> tuple[str, Any]:
    """Return ``(key, typed value)`` for one cell, keeping raw text on a miss."""
    entry = FIELD_PARSERS.get(header.strip())
    if entry is None:
        return to_camel_key(header), value.strip()
    key, parser = entry
    parsed = parser(value)
    return key, parsed if parsed is not None else value


def classify_row(row: dict[str, str]) -> dict[str, Any]:
    """Type every cell of a cleaned row and add the derived duration fields."""
    processed: dict[str, Any] = {}
    for header, value in row.items():
        key, typed = classify_field(header, value)
        processed[key] = typed

    start_time, end_time = processed.get("startTime"), processed.get("endTime")
    if isinstance(start_time, ParsedTime) and isinstance(end_time, ParsedTime):
        minutes = end_time.minutes_since_midnight - start_time.minutes_since_midnight
        processed["durationHours"] = minutes / 60

    start_date, end_date = processed.get("startDate"), processed.get("endDate")
    if isinstance(start_date, ParsedDate) and isinstance(end_date, ParsedDate):
        processed["durationDays"] = duration_days(start_date, end_date)

    return processed


def duration_days(start: ParsedDate, end: ParsedDate) -> int:
    """Inclusive day count, so a one-day camp lasts 1 day."""
    delta = date.fromisoformat(end.iso) - date.fromisoformat(start.iso)
    return delta.days + 1
