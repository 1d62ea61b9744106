"""Text-to-number coercion for user-entered values."""

import math
from typing import Any


def coerce_number(value: Any, fallback: float = 0.0) -> float:
    """
    Parse a user-entered value to a finite float.

    Accepts numbers and numeric strings (surrounding whitespace allowed).
    Blank strings, None, booleans, unparseable text, NaN and infinities all
    return ``fallback``. Comma decimal separators and underscore digit
    grouping are not accepted.

    Example:
        >>> coerce_number(" 12.5 ")
        12.5
        >>> coerce_number("12,5", fallback=-1.0)
        -1.0
    """
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, str):
        value = value.strip()
        # Digit grouping ("1_000") is not a number here
        if not value or "_" in value:
            return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return number
