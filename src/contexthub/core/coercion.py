"""Scalar coercion helpers shared by entry normalization and query planning."""

import math
import uuid
from typing import Any


def parse_number(value: Any) -> int | float | None:
    """Coerce numbers and numeric strings, rejecting booleans and non-finite values.

    Integral values are returned as ``int`` so equal numbers have one stored form.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        try:
            value = float(candidate)
        except ValueError:
            return None

    if not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
    return value


def parse_boolean(value: Any) -> bool | None:
    """Accept booleans and the literal strings ``"true"`` / ``"false"``."""
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def canonical_uuid(value: Any) -> str | None:
    """Return the canonical string form of a UUID, or None if not one."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        return None
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        return None


def is_missing(value: Any) -> bool:
    """Missing values are None and the empty string."""
    return value is None or value == ""
