"""Lenient numeric coercion for user-entered trade fields."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any


def to_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None when it is absent/non-numeric.

    Empty strings, None, NaN, infinities, booleans and unparseable text all
    count as "absent". Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_number_or_zero(value: Any) -> float:
    number = to_number(value)
    return 0.0 if number is None else number
