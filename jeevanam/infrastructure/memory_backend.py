# jeevanam/infrastructure/memory_backend.py
from __future__ import annotations

import itertools
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional

from jeevanam.domain.entities import (
    CostBreakdownLine,
    DashboardStats,
    Ingredient,
    ProductionResult,
    RawMaterial,
    Recipe,
    RecipeCostAnalysis,
    StoreIssueSlip,
)
from jeevanam.domain.errors import BackendError
from jeevanam.domain.repositories import KitchenBackend

log = logging.getLogger("infra.memory_backend")

STOPPED_MESSAGE = "Call was rejected: Request ID: 0 Reject code: 5 Reject text: IC0508: Canister is stopped"


class InMemoryKitchenBackend(KitchenBackend):
    """
    Stand-in for the remote kitchen service (local runs and tests).

    Behaves like the real service, including its cost bug: calculate_cost
    multiplies recipe quantities by the unit price with no g->Kg / ml->L
    conversion. Errors carry only a message, like the real service.
    Set `stopped = True` to simulate a stopped service.
    """

    def __init__(self, require_admin: bool = False) -> None:
        self.require_admin = require_admin
        self.admin_ready = False
        self.stopped = False
        self.calls: Counter = Counter()
        self._ids = itertools.count(1)
        self._raw: Dict[int, RawMaterial] = {}
        self._recipes: Dict[str, Recipe] = {}
        self._produced: Counter = Counter()

    def _enter(self, method: str, admin: bool = False) -> None:
        self.calls[method] += 1
        if self.stopped:
            raise BackendError(STOPPED_MESSAGE)
        if admin and self.require_admin and not self.admin_ready:
            raise BackendError("Unauthorized: Admin not set up")

    def _recipe(self, name: str) -> Recipe:
        r = self._recipes.get(name)
        if r is None:
            raise BackendError(f"Recipe not found: {name}")
        return r

    def _check_raw_material(self, name: str, price_per_unit: float, skip_id: Optional[int] = None) -> None:
        if not name.strip():
            raise BackendError("Raw material name cannot be empty")
        if price_per_unit < 0:
            raise BackendError("Price per unit cannot be negative")
        key = name.strip().lower()
        for rm in self._raw.values():
            if rm.id != skip_id and rm.name.lower() == key:
                raise BackendError(f"Raw material '{name}' already exists")

    async def add_raw_material(self, name: str, unit_type: str, price_per_unit: float) -> None:
        self._enter("add_raw_material", admin=True)
        self._check_raw_material(name, price_per_unit)
        rid = next(self._ids)
        self._raw[rid] = RawMaterial(id=rid, name=name.strip(), unit_type=unit_type, price_per_unit=price_per_unit)

    async def edit_raw_material(self, raw_material_id: int, name: str, unit_type: str, price_per_unit: float) -> None:
        self._enter("edit_raw_material", admin=True)
        if raw_material_id not in self._raw:
            raise BackendError(f"Raw material not found: {raw_material_id}")
        self._check_raw_material(name, price_per_unit, skip_id=raw_material_id)
        self._raw[raw_material_id] = RawMaterial(
            id=raw_material_id, name=name.strip(), unit_type=unit_type, price_per_unit=price_per_unit
        )

    async def delete_raw_material(self, raw_material_id: int) -> None:
        self._enter("delete_raw_material", admin=True)
        if self._raw.pop(raw_material_id, None) is None:
            raise BackendError(f"Raw material not found: {raw_material_id}")

    async def get_all_raw_materials(self) -> List[RawMaterial]:
        self._enter("get_all_raw_materials")
        return list(self._raw.values())

    async def get_raw_material(self, raw_material_id: int) -> Optional[RawMaterial]:
        self._enter("get_raw_material")
        return self._raw.get(raw_material_id)

    async def add_recipe(self, name: str, category: str, portion_weight: float, ingredients: List[Ingredient]) -> None:
        self._enter("add_recipe", admin=True)
        if not name.strip():
            raise BackendError("Recipe name cannot be empty")
        if name in self._recipes:
            raise BackendError(f"Recipe '{name}' already exists")
        if portion_weight < 0:
            raise BackendError("Portion weight cannot be negative")
        self._recipes[name] = Recipe(name=name, category=category, portion_weight=portion_weight, ingredients=list(ingredients))

    async def get_all_categories(self) -> List[str]:
        self._enter("get_all_categories")
        return sorted({r.category for r in self._recipes.values()})

    async def get_recipes_by_category(self, category: str) -> List[str]:
        self._enter("get_recipes_by_category")
        return [r.name for r in self._recipes.values() if r.category == category]

    async def calculate_production(self, recipe_name: str, quantity: float) -> ProductionResult:
        self._enter("calculate_production")
        r = self._recipe(recipe_name)
        return ProductionResult(
            total_portion_weight=r.portion_weight * quantity,
            ingredients=[
                Ingredient(i.raw_material_id, i.quantity_per_portion * quantity, i.unit) for i in r.ingredients
            ],
        )

    async def calculate_cost(self, recipe_name: str, quantity: float) -> RecipeCostAnalysis:
        self._enter("calculate_cost")
        r = self._recipe(recipe_name)
        lines: List[CostBreakdownLine] = []
        for ing in r.ingredients:
            rm = self._raw.get(ing.raw_material_id)
            price = rm.price_per_unit if rm else 0.0
            lines.append(CostBreakdownLine(cost_per_unit=price, total_cost=ing.quantity_per_portion * quantity * price))
        total = sum(x.total_cost for x in lines)
        self._produced[recipe_name] += quantity
        return RecipeCostAnalysis(
            breakdown=lines,
            total_batch_cost=total,
            cost_per_portion=total / quantity if quantity else 0.0,
        )

    async def get_store_issue_slip(self, recipe_name: str, quantity: float) -> StoreIssueSlip:
        self._enter("get_store_issue_slip")
        production = await self.calculate_production(recipe_name, quantity)
        return StoreIssueSlip(
            date=datetime.now(timezone.utc).isoformat(),
            recipe_name=recipe_name,
            production_quantity=quantity,
            ingredients=production.ingredients,
        )

    async def get_dashboard_stats(self) -> DashboardStats:
        self._enter("get_dashboard_stats")
        top = self._produced.most_common(1)
        return DashboardStats(
            total_recipes=len(self._recipes),
            total_ingredients=len(self._raw),
            most_produced_item=top[0][0] if top else "",
            average_food_cost_percentage=0.0,
        )

    async def check_health(self) -> bool:
        self._enter("check_health")
        return True

    async def setup_admin(self) -> None:
        self._enter("setup_admin")
        if not self.admin_ready:
            log.info("admin bootstrapped")
        self.admin_ready = True
