# jeevanam/services/units.py
from __future__ import annotations

from typing import Tuple

# Only g->Kg and ml->L are converted. Every other pair is assumed compatible.
_RATIO = 1000.0
_KILO_TARGETS = {"Kg"}
_LITRE_TARGETS = {"L", "Liter"}


def convert(quantity: float, from_unit: str, to_unit: str) -> float:
    """Convert a recipe quantity into the unit a raw material is priced in."""
    if from_unit == "g" and to_unit in _KILO_TARGETS:
        return quantity / _RATIO
    if from_unit == "ml" and to_unit in _LITRE_TARGETS:
        return quantity / _RATIO
    return quantity


def display_quantity(value: float, unit: str) -> Tuple[float, str]:
    """Upgrade large gram/millilitre amounts to Kg/L for display."""
    if unit == "g" and value >= _RATIO:
        return value / _RATIO, "Kg"
    if unit == "ml" and value >= _RATIO:
        return value / _RATIO, "L"
    return value, unit


def format_number(value: float, decimals: int = 3) -> str:
    txt = f"{value:.{decimals}f}"
    if "." in txt:
        txt = txt.rstrip("0").rstrip(".")
    return "0" if txt in ("", "-0") else txt


def format_quantity(value: float, unit: str) -> str:
    v, u = display_quantity(value, unit)
    return f"{format_number(v)} {u}"


def format_currency(value: float) -> str:
    return f"₹{value:.2f}"
