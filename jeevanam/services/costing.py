# =========================
# FILE: jeevanam/services/costing.py
# =========================
from __future__ import annotations

import logging
from typing import List, Mapping, Sequence

from jeevanam.domain.entities import (
    CostBreakdownLine,
    Ingredient,
    ProfitAnalysis,
    RawMaterial,
    RecipeCostAnalysis,
)
from jeevanam.domain.errors import BreakdownMismatchError, CostCalculationError
from jeevanam.services.units import convert

log = logging.getLogger("services.costing")


def find_missing_costs(
    ingredients: Sequence[Ingredient],
    raw_materials_by_id: Mapping[int, RawMaterial],
) -> List[str]:
    """Names of ingredients whose raw material is unknown or has no positive price."""
    missing: List[str] = []
    for ing in ingredients:
        rm = raw_materials_by_id.get(ing.raw_material_id)
        if rm is None:
            missing.append(f"ID: {ing.raw_material_id}")
        elif not rm.price_per_unit or rm.price_per_unit <= 0:
            missing.append(rm.name)
    return missing


def recompute(
    ingredients: Sequence[Ingredient],
    raw_materials_by_id: Mapping[int, RawMaterial],
    raw_breakdown: Sequence[CostBreakdownLine],
    quantity: float,
) -> RecipeCostAnalysis:
    """
    Correct the remote cost analysis.

    The remote total multiplies recipe quantities by the unit price without
    converting g/ml into the raw material's Kg/L, so each line total is
    rebuilt here. Lines are matched to ingredients by position.
    """
    if quantity <= 0:
        raise CostCalculationError("Production quantity must be greater than zero")
    if len(raw_breakdown) != len(ingredients):
        raise BreakdownMismatchError(ingredients=len(ingredients), lines=len(raw_breakdown))

    lines: List[CostBreakdownLine] = []
    for ing, raw_line in zip(ingredients, raw_breakdown):
        rm = raw_materials_by_id.get(ing.raw_material_id)
        if rm is None:
            log.warning("raw material %s not loaded, keeping remote line", ing.raw_material_id)
            lines.append(raw_line)
            continue

        total_qty = ing.quantity_per_portion * quantity
        converted = convert(total_qty, ing.unit, rm.unit_type)
        lines.append(
            CostBreakdownLine(
                cost_per_unit=rm.price_per_unit,
                total_cost=converted * rm.price_per_unit,
            )
        )

    total = sum(line.total_cost for line in lines)
    return RecipeCostAnalysis(
        breakdown=lines,
        total_batch_cost=total,
        cost_per_portion=total / quantity,
    )


def analyze_profit(cost_per_portion: float, selling_price: float) -> ProfitAnalysis:
    # A zero selling price reports 0%, never a division error.
    profit = selling_price - cost_per_portion
    if selling_price == 0:
        return ProfitAnalysis(profit_per_portion=profit, profit_percentage=0.0, food_cost_percentage=0.0)
    return ProfitAnalysis(
        profit_per_portion=profit,
        profit_percentage=profit / selling_price * 100.0,
        food_cost_percentage=cost_per_portion / selling_price * 100.0,
    )
