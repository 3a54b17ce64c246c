"""Number formatting for display and parsing of German-style decimal input."""

from __future__ import annotations

import math
from typing import Any


def format_number(value: float | None, decimal_places: int) -> str:
    """Fixed-point representation; missing or NaN values render as zero."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        value = 0.0
    return f"{value:.{decimal_places}f}"


def parse_german_number(text: Any) -> float:
    """Parse input such as ``"1.234,56"`` or ``"1234,56"`` into a float.

    Dots are thousands separators and the first comma is the decimal mark.
    Returns NaN for anything that is not a parseable string.
    """
    if not isinstance(text, str):
        return math.nan
    cleaned = text.strip().replace(".", "").replace(",", ".", 1)
    if not cleaned:
        return math.nan
    try:
        return float(cleaned)
    except ValueError:
        return math.nan


def format_energy_value(value: float | None, unit: str = "kWh") -> str:
    return f"{format_number(value, 1)} {unit}"


def format_currency(value: float | None, currency: str = "€") -> str:
    return f"{format_number(value, 2)} {currency}"
