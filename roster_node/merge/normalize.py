"""Value normalization applied before a field reaches the merge engine.

Every normalizer returns None for "no value supplied". A failed scrape must
never turn into a zero that would overwrite a known value.
"""
from __future__ import annotations

from decimal import Decimal
import math
import re
from typing import Any

from roster_node.merge.fields import is_numeric

UNREADABLE = "???"
_PLACEHOLDERS = frozenset({UNREADABLE, "unknown"})
_NON_DIGITS = re.compile(r"\D")


def is_placeholder(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        text = value.strip()
        return not text or text.casefold() in _PLACEHOLDERS
    return False


def normalize_number(value: Any) -> int | None:
    """`"1,234,567"` -> 1234567; `"???"`, `"-"` or garbage -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value) if math.isfinite(value) else None

    text = str(value).strip()
    if UNREADABLE in text:
        return None
    digits = _NON_DIGITS.sub("", text)
    if not digits:
        return None
    number = int(digits)
    return -number if text.startswith("-") else number


def normalize_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if is_placeholder(text):
        return None
    return text


def normalize_value(field_name: str, value: Any) -> Any:
    if is_numeric(field_name):
        return normalize_number(value)
    return normalize_text(value)
