from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError

ISO_DATE_FORMAT = "%Y-%m-%d"


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date (raises ValueError)."""
    return datetime.strptime(value, ISO_DATE_FORMAT).date()


def require_iso_date(value: Optional[str], field_name: str, *, not_after: Optional[date] = None) -> date:
    """Validated calendar date for form input; optionally bounded above (e.g. today)."""

    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    try:
        parsed = parse_iso_date(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")
    if not_after is not None and parsed > not_after:
        raise ValidationError(f"{field_name} cannot be in the future")
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now()


def today_iso() -> str:
    """Local calendar date; attendance idempotence is keyed on it."""
    return now_local().date().isoformat()


def timestamp_iso() -> str:
    return now_local().isoformat(timespec="seconds")
