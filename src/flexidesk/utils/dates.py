"""Lenient date/time parsing for upstream payloads and query input.

The API returns ISO strings in several shapes (``2026-07-01``,
``2026-07-01T09:00:00Z``, ``2026-07-01T09:00:00.000+08:00``). These helpers
return ``None`` instead of raising so a single malformed row never breaks a
page.
"""

import datetime as dt
import re
from typing import Any

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


def parse_date(value: Any) -> dt.date | None:
    """Parse ``YYYY-MM-DD`` (or the date part of an ISO datetime)."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_time(value: Any) -> dt.time | None:
    """Parse a strict ``HH:MM`` time."""
    if isinstance(value, dt.time):
        return value
    if not value or not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return dt.time(hour, minute)


def parse_datetime(value: Any) -> dt.datetime | None:
    """Parse an ISO datetime into an aware UTC datetime.

    Naive values are treated as UTC. A bare date parses as midnight UTC.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def to_minutes(value: Any) -> int | None:
    """Minutes since midnight for an ``HH:MM`` string."""
    parsed = parse_time(value)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute


def nights_between(start: dt.date, end: dt.date) -> list[dt.date]:
    """Dates from start (inclusive) to end (exclusive)."""
    return [start + dt.timedelta(days=i) for i in range((end - start).days)]


def format_datetime(value: Any, fallback: str = "N/A") -> str:
    """``Jul 01, 2026 09:30 AM`` (UTC) for exports."""
    parsed = parse_datetime(value)
    if parsed is None:
        return fallback
    return parsed.strftime("%b %d, %Y %I:%M %p")


def format_date(value: Any, fallback: str = "—") -> str:
    """``2026-07-01`` for exports."""
    parsed = parse_datetime(value)
    if parsed is None:
        return fallback
    return parsed.date().isoformat()


def utcnow() -> dt.datetime:
    """Current time as an aware UTC datetime."""
    return dt.datetime.now(dt.UTC)
