"""Tolerant numeric coercion for amounts, counts and percentages."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

CENTS = Decimal("0.01")


def to_float(value: Any) -> Optional[float]:
    """Best-effort conversion of ``value`` to a finite float, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def as_amount(value: Any) -> float:
    """Dollar amount; anything non-numeric contributes zero."""
    number = to_float(value)
    return 0.0 if number is None else number


def as_percentage(value: Any) -> Optional[float]:
    """
    Percentage override.

    Empty strings and non-numeric input collapse to ``None`` so the caller
    falls back to the project default. ``0`` stays an explicit zero.
    """
    return to_float(value)


def as_count(value: Any) -> Optional[float]:
    return to_float(value)


def round_money(value: float) -> float:
    """Round half-up to cents for display and emission."""
    return float(Decimal(repr(as_amount(value))).quantize(CENTS, rounding=ROUND_HALF_UP))
