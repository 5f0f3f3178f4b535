"""Clarity Proxy — Numeric coercion for untrusted export fields."""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

from clarity_proxy.models.raw_models import Row


def coerce(value: Any) -> float:
    """Convert a raw field value to a finite number, defaulting to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def pick_first_non_zero(row: Row, candidates: Iterable[str]) -> float:
    """Return the first non-zero value among synonym fields.

    Falls back to the first candidate that is present at all (whose value is
    then zero), or 0 when none is present.
    """
    candidates = tuple(candidates)
    for field in candidates:
        if field in row:
            value = coerce(row[field])
            if value != 0:
                return value
    for field in candidates:
        if field in row:
            return coerce(row[field])
    return 0.0


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
