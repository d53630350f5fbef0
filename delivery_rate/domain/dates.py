"""Date normalisation for values arriving as text, Excel serials or epoch milliseconds."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any

JST = timezone(timedelta(hours=9))
EPOCH_MS_THRESHOLD = 10**12
# Serial 1 == 1899-12-31 (Excel's 1900 leap-year quirk baked into the offset).
EXCEL_EPOCH = date(1899, 12, 30)

_LEADING_INT = re.compile(r"\s*(\d+)")


def _leading_int(part: str) -> int | None:
    match = _LEADING_INT.match(part)
    if match is None:
        return None
    return int(match.group(1))


def _from_epoch_ms(value: float, tz: tzinfo) -> date | None:
    try:
        return datetime.fromtimestamp(value / 1000, tz=tz).date()
    except (OverflowError, OSError, ValueError):
        return None


def _from_excel_serial(value: float) -> date | None:
    if value < 1:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(value))
    except OverflowError:
        return None


def _from_text(value: str) -> date | None:
    # str.strip also removes the full-width space placeholder
    if not value.strip():
        return None
    parts = value.strip().replace("-", "/").split("/")
    if len(parts) < 3:
        return None
    numbers = [_leading_int(part) for part in parts[:3]]
    if any(number is None for number in numbers):
        return None
    year, month, day = numbers
    try:
        return date(year, month, day)  # type: ignore[arg-type]
    except ValueError:
        return None


def parse_date(value: Any, tz: tzinfo = timezone.utc) -> date | None:
    """Return a calendar date or None; never a partially-parsed value.

    ``tz`` only affects epoch-millisecond inputs, whose calendar day depends
    on the offset they are read in.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if value >= EPOCH_MS_THRESHOLD:
            return _from_epoch_ms(value, tz)
        return _from_excel_serial(value)
    if isinstance(value, str):
        return _from_text(value)
    return None


def days_between(start: date | None, end: date | None) -> int | None:
    """Signed whole days from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    return (end - start).days


def format_date(value: date | None) -> str:
    if value is None:
        return ""
    return f"{value.year}/{value.month:02d}/{value.day:02d}"
