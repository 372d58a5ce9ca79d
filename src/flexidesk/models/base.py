"""Base classes for FlexiDesk models.

Upstream payloads use camelCase keys and vary between endpoints, so models
accept either alias or field name and ignore unknown keys. Serialised output
uses camelCase aliases to match what the front end already consumes.
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model with camelCase aliases that tolerates unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def parse_amount(value: Any) -> float | None:
    """Coerce a price-like value to a finite float, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def as_number(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float with a default."""
    number = parse_amount(value)
    return default if number is None else number


def record_id(raw: Any) -> str:
    """Return a record's identifier from ``id`` or ``_id``."""
    if not isinstance(raw, dict):
        return ""
    value = raw.get("id") or raw.get("_id") or ""
    return str(value)
