"""Helpers for turning command-line dates into Strava ``after`` timestamps."""

from __future__ import annotations

from datetime import date, datetime, timezone

DATE_FORMAT = "%Y-%m-%d"


class DateParseError(ValueError):
    """Raised when a date string is not a valid YYYY-MM-DD date."""


def parse_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Args:
        value: The date string supplied on the command line.

    Returns:
        The parsed calendar date.

    Raises:
        DateParseError: If the value is empty, has the wrong shape or names a
            day that does not exist (``2024-13-45``).
    """
    normalized = (value or "").strip()
    try:
        return datetime.strptime(normalized, DATE_FORMAT).date()
    except ValueError as exc:
        raise DateParseError("Date must be in YYYY-MM-DD format") from exc


def date_to_epoch(day: date) -> int:
    """Return the epoch seconds of UTC midnight on ``day``."""
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return int(midnight.timestamp())


def coerce_datetime(value: object) -> datetime | None:
    """Best-effort conversion of an API timestamp into an aware datetime."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)

    if isinstance(value, str):
        normalized = value.strip()
        if not normalized:
            return None
        normalized = normalized.replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(normalized)
        except ValueError:
            return None
        if not dt.tzinfo:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    return None
