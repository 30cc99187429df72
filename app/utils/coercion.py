"""
RentMatch: Lenient field coercion for live preference and listing data.

Preference records and listings arrive from ORM rows, request bodies, or plain
dicts, and are frequently incomplete or dirty.  These helpers read one field
at a time and turn anything unusable into ``None`` (or an empty list) so that
scoring degrades per field instead of failing as a whole.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (62.5 -> 63)."""
    return math.floor(value + 0.5)


def get_field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute-bearing object."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def to_number(value: Any, *, allow_negative: bool = False) -> float | None:
    """Coerce ``value`` to a finite float, or ``None`` if it is not one.

    Booleans are rejected so that ``True`` never reads as a price of 1.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("£$€")
        if not value:
            return None
    elif not isinstance(value, (int, float, Decimal)):
        return None

    try:
        number = float(Decimal(value)) if isinstance(value, str) else float(value)
    except (InvalidOperation, ValueError, OverflowError):
        return None

    if not math.isfinite(number):
        return None
    if number < 0 and not allow_negative:
        return None
    return number


def to_text(value: Any) -> str | None:
    """Return a stripped non-empty string, or ``None`` for anything else."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def to_tri_state(value: Any) -> bool | None:
    """Map a yes/no answer to ``True``/``False``; anything else is unset."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def to_tags(value: Any) -> list[str]:
    """Return the non-blank strings of a tag list, lower-cased and de-duplicated.

    A single string is treated as a one-element list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: list[Any] = [value]
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        return []

    tags: list[str] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, str):
            continue
        tag = item.strip().lower()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def to_datetime(value: Any) -> datetime | None:
    """Parse ``value`` into a timezone-aware datetime (UTC when naive)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_timestamp(value: Any) -> float:
    """Epoch seconds for ``value``; unknown dates sort as the epoch (0)."""
    parsed = to_datetime(value)
    if parsed is None:
        return 0.0
    return parsed.timestamp()
