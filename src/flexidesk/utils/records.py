"""Helpers for reading loosely-shaped upstream records.

References may arrive populated (``{"client": {"name": ...}}``) or flat
(``{"clientName": ...}``); lookups therefore try several dotted paths and
take the first non-empty value.
"""

from typing import Any

from flexidesk.models.base import as_number
from flexidesk.utils.dates import parse_datetime


def dig(raw: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts."""
    current = raw
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def pluck(raw: Any, *paths: str, default: Any = None) -> Any:
    """First non-empty value among the dotted paths."""
    for path in paths:
        value = dig(raw, path)
        if value not in (None, "", [], {}):
            return value
    return default


def text(raw: Any, *paths: str, default: str = "") -> str:
    value = pluck(raw, *paths)
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value)


def number(raw: Any, *paths: str) -> float:
    return as_number(pluck(raw, *paths))


def timestamp(value: Any) -> float:
    """Epoch seconds for sorting; 0 when missing or unparsable."""
    parsed = parse_datetime(value)
    return parsed.timestamp() if parsed else 0.0


def matches(query: str, *values: Any) -> bool:
    """Case-insensitive substring match of a trimmed query."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return any(needle in str(v).lower() for v in values if v)


def as_list(value: Any, key: str | None = None) -> list[Any]:
    """Return a list payload, or ``value[key]`` when it is a list."""
    if isinstance(value, list):
        return value
    if key and isinstance(value, dict) and isinstance(value.get(key), list):
        return value[key]
    return []


def with_id(raw: dict[str, Any]) -> dict[str, Any]:
    """Copy of a record with ``id`` filled from ``_id``."""
    record = dict(raw)
    record["id"] = str(raw.get("id") or raw.get("_id") or "")
    return record
