"""Safe parsing helpers for external provider payloads.

Provider APIs return numbers as strings, numbers, empty strings or nothing
at all.  Every helper here accepts any value and returns ``None`` (or the
supplied fallback) instead of raising.
"""
from __future__ import annotations

import math
import re
from typing import Any

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def as_number(value: Any) -> float | None:
    """Convert *value* to a float, returning ``None`` if it is not numeric.

    Strings are parsed leniently: a leading number is accepted even when
    trailing text follows (``"12.5%"`` -> ``12.5``).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if match is None:
            return None
        return float(match.group(0))
    return None


def as_float(value: Any, fallback: float | None = None) -> float | None:
    """Safe float conversion with *fallback*."""
    parsed = as_number(value)
    return fallback if parsed is None else parsed


def as_integer(value: Any, fallback: int | None = None) -> int | None:
    """Safe integer conversion (floor) with *fallback*."""
    parsed = as_number(value)
    if parsed is None or math.isinf(parsed):
        return fallback
    return math.floor(parsed)


def as_string(value: Any) -> str | None:
    """Return strings unchanged, stringify numbers, ``None`` otherwise."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def as_list(value: Any) -> list[Any]:
    """Return *value* if it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def ensure_lowercase_address(address: str) -> str:
    """Validate an EVM address and return it lowercased.

    Raises:
        ValueError: If *address* is not ``0x`` followed by 40 hex chars.
    """
    trimmed = address.strip()
    if not _ADDRESS_RE.match(trimmed):
        raise ValueError(f"Invalid EVM address format: {trimmed}")
    return trimmed.lower()


def is_evm_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address))


def format_number(value: float) -> str:
    """Render ``15.0`` as ``"15"`` and ``12.5`` as ``"12.5"``."""
    return str(int(value)) if float(value).is_integer() else str(value)
