# File: utils/dt_utils.py
"""Date utilities for the medal tracker.

Pure Python date functions. Uses standard library datetime plus dateutil.

Functions:
    - dt_today: Get today's date
    - dt_today_iso: Get today's date as ISO string
    - dt_now_iso: Get current UTC datetime as ISO string
    - dt_current_year: Get the current calendar year
    - dt_parse_date: Parse date strings
    - dt_year_of: Extract the calendar year from a date string
    - dt_age_at_year_end: Age in whole years on Dec 31 of a year
    - dt_year_end_iso: ISO date for Dec 31 of a year
    - dt_is_future: Whether a date lies after today
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging

# Third-party date utilities
from dateutil.relativedelta import relativedelta

# Module-level logger
_LOGGER = logging.getLogger(__name__)


def dt_today() -> date:
    """Return today's date (UTC)."""
    return datetime.now(UTC).date()


def dt_today_iso() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return dt_today().isoformat()


def dt_now_iso() -> str:
    """Return current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


def dt_current_year() -> int:
    """Return the current calendar year.

    Managers call this once per snapshot and thread the value through the
    evaluation context so engines never read the clock themselves.
    """
    return dt_today().year


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T10:00:00" (ISO datetime, time discarded)
    - "2025/04/07"

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str[:10])
    except ValueError:
        pass

    try:
        return datetime.strptime(date_str, "%Y/%m/%d").date()
    except ValueError:
        _LOGGER.debug("Unparsable date string: %s", date_str)
        return None


def dt_year_of(date_str: str | None) -> int | None:
    """Return the calendar year of a date string, or None."""
    parsed = dt_parse_date(date_str)
    return parsed.year if parsed else None


def dt_age_at_year_end(date_of_birth: str | None, year: int) -> int | None:
    """Compute age in whole years on Dec 31 of ``year``.

    Because the reference day is the last day of the year, the result always
    equals ``year - birth_year`` for a valid birth date in or before ``year``.

    Args:
        date_of_birth: ISO birth date
        year: Calendar year to evaluate

    Returns:
        Age in years, or None when the birth date is missing or invalid.

    Examples:
        dt_age_at_year_end("1964-07-01", 2024) → 60
        dt_age_at_year_end("", 2024) → None
    """
    dob = dt_parse_date(date_of_birth)
    if dob is None:
        return None
    return relativedelta(date(year, 12, 31), dob).years


def dt_year_end_iso(year: int) -> str:
    """Return the ISO date of Dec 31 in ``year``."""
    return date(year, 12, 31).isoformat()


def dt_is_future(date_str: str | None) -> bool:
    """Whether ``date_str`` is after today. Unparsable dates count as future."""
    parsed = dt_parse_date(date_str)
    if parsed is None:
        return True
    return parsed > dt_today()
