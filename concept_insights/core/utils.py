"""Small numeric and parsing helpers shared by the components."""

from datetime import datetime
from typing import Any, Mapping, Optional
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept datetimes or ISO-8601 strings (a trailing ``Z`` is allowed)."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    raise TypeError(f"Cannot interpret {value!r} as a datetime")


def align_datetime(moment: datetime, reference: datetime) -> datetime:
    """
    Make ``moment`` comparable with ``reference`` (naive vs aware).

    Naive values are read as local time.
    """
    if moment.tzinfo is None and reference.tzinfo is not None:
        return moment.astimezone(reference.tzinfo)
    if moment.tzinfo is not None and reference.tzinfo is None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data`` (snake_case or camelCase)."""
    for key in keys:
        if key in data:
            return data[key]
    return default
