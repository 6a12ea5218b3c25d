"""Lenient coercions applied to provider JSON before validation.

Reasoning models return loosely structured JSON.  These helpers turn
whatever arrived into the shape the result schemas require, so a
parseable response always yields a well-formed result.
"""

from __future__ import annotations

import math
from collections.abc import Collection
from typing import Any

_TRUE_STRINGS = frozenset({"true", "yes", "1"})


def as_number(value: Any, default: float = 0.0) -> float:
    """Numbers and numeric strings become floats; anything else is *default*."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(number):
        return default
    return number


def as_score(value: Any, low: int = 0, high: int = 100) -> int:
    """Round half up and clamp into ``[low, high]``."""
    number = min(max(as_number(value), float(low)), float(high))
    return math.floor(number + 0.5)


def as_count(value: Any) -> int:
    return max(0, math.floor(as_number(value) + 0.5))


def as_text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int | float):
        return str(value)
    return default


def as_optional_text(value: Any) -> str | None:
    text = as_text(value)
    return text or None


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def as_text_list(value: Any) -> list[str]:
    """Keep string-like entries of a list; drop nested structures."""
    return [text for text in (as_text(v) for v in as_list(value)) if text]


def as_object_list(value: Any) -> list[dict[str, Any]]:
    return [v for v in as_list(value) if isinstance(v, dict)]


def as_choice(value: Any, choices: Collection[str], default: str) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in choices:
            return lowered
    return default


def as_choice_or_none(value: Any, choices: Collection[str]) -> str | None:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in choices:
            return lowered
    return None
