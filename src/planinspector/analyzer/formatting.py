"""Number formatting shared by badge, hotspot and recommendation text."""

from __future__ import annotations

import math


def delimit(value: int | float) -> str:
    """Group thousands with commas: 1500000 -> '1,500,000'."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def format_number(value: int | float) -> str:
    """
    Render a number without a trailing '.0' for whole values.

    >>> format_number(2000.0)
    '2000'
    >>> format_number(12.5)
    '12.5'
    """
    if isinstance(value, float):
        if math.isinf(value) or math.isnan(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
    return str(value)


def format_ms(value: int | float) -> str:
    return f"{format_number(value)}ms"
