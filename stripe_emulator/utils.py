"""Shared helpers for building Stripe-shaped records."""

import calendar
import re
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .exceptions import InvalidRequestError

INTEGER_PATTERN = re.compile(r"-?\d+", re.ASCII)
NUMBER_PATTERN = re.compile(r"-?\d+(\.\d+)?", re.ASCII)


def now() -> int:
    """Current time as a unix timestamp in whole seconds."""
    return int(time.time())


def add_months(timestamp: int, months: int = 1) -> int:
    """Advance a unix timestamp by calendar months.

    The day of month is clamped to the length of the target month
    (Jan 31 + 1 month is the last day of February).
    """
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return int(moment.replace(year=year, month=month, day=day).timestamp())


def stringify_metadata(raw: Mapping[str, Any] | None) -> dict[str, str]:
    """Coerce metadata values to strings the way the API stores them."""
    if not raw:
        return {}
    metadata: dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            metadata[str(key)] = ""
        elif isinstance(value, bool):
            metadata[str(key)] = "true" if value else "false"
        else:
            metadata[str(key)] = str(value)
    return metadata


def merge_metadata(current: dict[str, str], updates: Mapping[str, Any] | None) -> dict[str, str]:
    """Apply a metadata update; empty-string values unset their key."""
    merged = dict(current)
    for key, value in stringify_metadata(updates).items():
        if value == "":
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def parse_integer(raw: Any, param: str) -> int:
    """Read an integer parameter that may arrive form-encoded.

    Raises:
        InvalidRequestError: ``raw`` is not an integer or a decimal string
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and INTEGER_PATTERN.fullmatch(raw.strip()):
        return int(raw)
    raise InvalidRequestError(
        f"Invalid integer: {raw}", code="parameter_invalid_integer", param=param
    )


def parse_number(raw: Any, param: str) -> int | float | None:
    """Read an optional decimal parameter; integral values come back as int."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        number = float(raw)
    elif isinstance(raw, str) and NUMBER_PATTERN.fullmatch(raw.strip()):
        number = float(raw)
    else:
        raise InvalidRequestError(f"Invalid decimal: {raw}", param=param)
    return int(number) if number.is_integer() else number
