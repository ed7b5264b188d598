# =========================
# FILE: jeevanam/application/usecases.py
# =========================
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from jeevanam.core.config import CATEGORIES, UNIT_TYPES
from jeevanam.domain.entities import ConsumedIngredient, Ingredient, ProductionRecord, RawMaterial, Recipe
from jeevanam.domain.errors import CostCalculationError, MissingCostsError
from jeevanam.infrastructure.history_store import ProductionHistoryStore, top_ingredients, total_cost
from jeevanam.infrastructure.query_cache import QueryCache
from jeevanam.services.costing import analyze_profit, find_missing_costs, recompute
from jeevanam.services.retry import RetryingBackend
from jeevanam.services.units import format_currency, format_quantity

log = logging.getLogger("app.usecases")

IsAlive = Optional[Callable[[], bool]]

RAW_MATERIALS_KEY = ("raw_materials",)
RECIPES_KEY = ("recipes",)
CATEGORIES_KEY = ("categories",)
DASHBOARD_KEY = ("dashboard_stats",)


def _check_raw_material_form(
    name: str,
    unit_type: str,
    price_per_unit: float,
    existing: List[RawMaterial],
    editing_id: Optional[int] = None,
) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Please enter a raw material name")
    if unit_type not in UNIT_TYPES:
        raise ValueError(f"Invalid unit type: {unit_type!r}")
    if price_per_unit is None or price_per_unit < 0:
        raise ValueError("Please enter a valid price per unit")
    key = name.lower()
    for rm in existing:
        if rm.name.lower() == key and rm.id != editing_id:
            raise ValueError("Raw material with this name already exists")
    return name


# -------------------------
# Raw materials
# -------------------------
@dataclass(frozen=True)
class ListRawMaterials:
    backend: RetryingBackend
    cache: QueryCache

    async def __call__(self) -> List[RawMaterial]:
        return await self.cache.get_or_fetch(RAW_MATERIALS_KEY, self.backend.get_all_raw_materials)

    async def by_id(self) -> Dict[int, RawMaterial]:
        return {rm.id: rm for rm in await self()}


@dataclass(frozen=True)
class AddRawMaterial:
    backend: RetryingBackend
    cache: QueryCache
    raw_materials: ListRawMaterials

    async def __call__(self, name: str, unit_type: str, price_per_unit: float, is_alive: IsAlive = None) -> None:
        name = _check_raw_material_form(name, unit_type, price_per_unit, await self.raw_materials())
        await self.backend.call("add_raw_material", name, unit_type, price_per_unit, is_alive=is_alive)
        self.cache.invalidate(RAW_MATERIALS_KEY)
        self.cache.invalidate(DASHBOARD_KEY)
        log.info("raw material added name=%s unit=%s price=%.2f", name, unit_type, price_per_unit)


@dataclass(frozen=True)
class EditRawMaterial:
    backend: RetryingBackend
    cache: QueryCache
    raw_materials: ListRawMaterials

    async def __call__(
        self,
        raw_material_id: int,
        name: str,
        unit_type: str,
        price_per_unit: float,
        is_alive: IsAlive = None,
    ) -> None:
        name = _check_raw_material_form(
            name, unit_type, price_per_unit, await self.raw_materials(), editing_id=raw_material_id
        )
        await self.backend.call(
            "edit_raw_material", raw_material_id, name, unit_type, price_per_unit, is_alive=is_alive
        )
        self.cache.invalidate(RAW_MATERIALS_KEY)
        self.cache.invalidate(DASHBOARD_KEY)
        log.info("raw material edited id=%s name=%s", raw_material_id, name)


@dataclass(frozen=True)
class DeleteRawMaterial:
    backend: RetryingBackend
    cache: QueryCache

    async def __call__(self, raw_material_id: int, is_alive: IsAlive = None) -> None:
        await self.backend.call("delete_raw_material", raw_material_id, is_alive=is_alive)
        self.cache.invalidate(RAW_MATERIALS_KEY)
        self.cache.invalidate(DASHBOARD_KEY)
        log.info("raw material deleted id=%s", raw_material_id)


# -------------------------
# Recipes
# -------------------------
@dataclass(frozen=True)
class ListCategories:
    backend: RetryingBackend
    cache: QueryCache

    async def __call__(self) -> List[str]:
        return await self.cache.get_or_fetch(CATEGORIES_KEY, self.backend.get_all_categories)


@dataclass(frozen=True)
class ListRecipes:
    """categories -> recipe names -> production at quantity 1 for the details."""

    backend: RetryingBackend
    cache: QueryCache

    async def __call__(self) -> List[Recipe]:
        return await self.cache.get_or_fetch(RECIPES_KEY, self._fetch)

    async def by_name(self, recipe_name: str) -> Recipe:
        for r in await self():
            if r.name == recipe_name:
                return r
        raise LookupError(f"Recipe not found: {recipe_name}")

    async def _fetch(self) -> List[Recipe]:
        recipes: List[Recipe] = []
        for category in await self.backend.get_all_categories():
            names = await self.backend.get_recipes_by_category(category)
            for name in names:
                try:
                    detail = await self.backend.calculate_production(name, 1.0)
                except Exception as e:
                    # one broken recipe must not hide the others
                    log.error("failed to fetch recipe %s: %s", name, e)
                    continue
                recipes.append(
                    Recipe(
                        name=name,
                        category=category,
                        portion_weight=detail.total_portion_weight,
                        ingredients=detail.ingredients,
                    )
                )
        log.info("fetched %d recipes", len(recipes))
        return recipes


@dataclass(frozen=True)
class AddRecipe:
    backend: RetryingBackend
    cache: QueryCache

    async def __call__(
        self,
        name: str,
        category: str,
        portion_weight: float,
        ingredients: List[Ingredient],
        is_alive: IsAlive = None,
    ) -> None:
        name = (name or "").strip()
        if not name or not category or not portion_weight:
            raise ValueError("Please fill in all required fields")
        if category not in CATEGORIES:
            raise ValueError(f"Invalid category: {category!r}")
        if portion_weight < 0:
            raise ValueError("Portion weight cannot be negative")
        # blank form rows carry no raw material; 0 is a real id
        valid = [i for i in ingredients if i.raw_material_id is not None and i.quantity_per_portion]
        if not valid:
            raise ValueError("Please add at least one ingredient")

        await self.backend.call("add_recipe", name, category, portion_weight, valid, is_alive=is_alive)
        self.cache.invalidate(RECIPES_KEY)
        self.cache.invalidate(CATEGORIES_KEY)
        self.cache.invalidate(DASHBOARD_KEY)
        log.info("recipe added name=%s category=%s ingredients=%d", name, category, len(valid))


# -------------------------
# Production
# -------------------------
def _ingredient_rows(ingredients: List[Ingredient], raw_by_id: Dict[int, RawMaterial]) -> List[Dict[str, Any]]:
    rows = []
    for ing in ingredients:
        rm = raw_by_id.get(ing.raw_material_id)
        rows.append({
            "raw_material_id": ing.raw_material_id,
            "name": rm.name if rm else f"ID: {ing.raw_material_id}",
            "quantity": ing.quantity_per_portion,
            "unit": ing.unit,
            "display": format_quantity(ing.quantity_per_portion, ing.unit),
        })
    return rows


@dataclass(frozen=True)
class CalculateProduction:
    backend: RetryingBackend
    raw_materials: ListRawMaterials

    async def __call__(self, recipe_name: str, quantity: float) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Please enter a valid production quantity")
        result = await self.backend.calculate_production(recipe_name, quantity)
        return {
            "recipe_name": recipe_name,
            "quantity": quantity,
            "total_portion_weight": result.total_portion_weight,
            "total_portion_weight_display": format_quantity(result.total_portion_weight, "g"),
            "ingredients": _ingredient_rows(result.ingredients, await self.raw_materials.by_id()),
        }


@dataclass(frozen=True)
class GetStoreIssueSlip:
    backend: RetryingBackend
    raw_materials: ListRawMaterials

    async def __call__(self, recipe_name: str, quantity: float) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Please enter a valid production quantity")
        slip = await self.backend.get_store_issue_slip(recipe_name, quantity)
        return {
            "date": slip.date,
            "recipe_name": slip.recipe_name,
            "production_quantity": slip.production_quantity,
            "ingredients": _ingredient_rows(slip.ingredients, await self.raw_materials.by_id()),
        }


# -------------------------
# Cost control
# -------------------------
@dataclass(frozen=True)
class CalculateCost:
    backend: RetryingBackend
    cache: QueryCache
    recipes: ListRecipes
    raw_materials: ListRawMaterials
    history: ProductionHistoryStore

    async def __call__(
        self,
        recipe_name: str,
        quantity: float,
        selling_price: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not recipe_name or not quantity or quantity <= 0:
            raise ValueError("Please select a recipe and enter quantity")

        recipe = await self.recipes.by_name(recipe_name)
        raw_by_id = await self.raw_materials.by_id()

        missing = find_missing_costs(recipe.ingredients, raw_by_id)
        if missing:
            raise MissingCostsError(missing)

        raw = await self.backend.calculate_cost(recipe_name, quantity)
        # the service counts every costed batch towards its production stats
        self.cache.invalidate(DASHBOARD_KEY)
        if not raw.breakdown:
            raise CostCalculationError(
                "No cost data available. Please ensure ingredient costs are set in the Raw Material Master."
            )

        analysis = recompute(recipe.ingredients, raw_by_id, raw.breakdown, quantity)
        log.info(
            "cost recipe=%s qty=%s remote_total=%.2f corrected_total=%.2f",
            recipe_name, quantity, raw.total_batch_cost, analysis.total_batch_cost,
        )

        lines = []
        consumed = []
        for ing, line in zip(recipe.ingredients, analysis.breakdown):
            rm = raw_by_id[ing.raw_material_id]
            total_qty = ing.quantity_per_portion * quantity
            consumed.append(ConsumedIngredient(name=rm.name, quantity=total_qty, unit=ing.unit))
            lines.append({
                "raw_material_id": rm.id,
                "name": rm.name,
                "quantity": total_qty,
                "unit": ing.unit,
                "quantity_display": format_quantity(total_qty, ing.unit),
                "cost_per_unit": line.cost_per_unit,
                "price_unit": rm.unit_type,
                "total_cost": line.total_cost,
            })

        self.history.record(
            ProductionRecord(
                date=datetime.now().isoformat(timespec="seconds"),
                recipe_name=recipe_name,
                quantity=quantity,
                cost=analysis.total_batch_cost,
                ingredients=consumed,
            )
        )

        out: Dict[str, Any] = {
            "recipe_name": recipe_name,
            "quantity": quantity,
            "breakdown": lines,
            "total_batch_cost": analysis.total_batch_cost,
            "cost_per_portion": analysis.cost_per_portion,
            "total_batch_cost_display": format_currency(analysis.total_batch_cost),
            "cost_per_portion_display": format_currency(analysis.cost_per_portion),
            "profit": None,
        }
        if selling_price is not None:
            out["profit"] = asdict(analyze_profit(analysis.cost_per_portion, selling_price))
        return out


@dataclass(frozen=True)
class GetDashboard:
    backend: RetryingBackend
    cache: QueryCache
    history: ProductionHistoryStore

    async def __call__(self) -> Dict[str, Any]:
        stats = await self.cache.get_or_fetch(DASHBOARD_KEY, self.backend.get_dashboard_stats)
        today = self.history.for_day()
        return {
            "stats": asdict(stats),
            "today": {
                "productions": [asdict(r) for r in today],
                "total_cost": total_cost(today),
                "top_ingredients": top_ingredients(today),
            },
        }


@dataclass(frozen=True)
class SetupAdmin:
    backend: RetryingBackend

    async def __call__(self, is_alive: IsAlive = None) -> None:
        await self.backend.call("setup_admin", is_alive=is_alive)
        log.info("admin setup done")


@dataclass(frozen=True)
class KitchenUseCases:
    list_raw_materials: ListRawMaterials
    add_raw_material: AddRawMaterial
    edit_raw_material: EditRawMaterial
    delete_raw_material: DeleteRawMaterial
    list_categories: ListCategories
    list_recipes: ListRecipes
    add_recipe: AddRecipe
    calculate_production: CalculateProduction
    store_issue_slip: GetStoreIssueSlip
    calculate_cost: CalculateCost
    dashboard: GetDashboard
    setup_admin: SetupAdmin

    @classmethod
    def build(cls, backend: RetryingBackend, cache: QueryCache, history: ProductionHistoryStore) -> "KitchenUseCases":
        raw = ListRawMaterials(backend, cache)
        recipes = ListRecipes(backend, cache)
        return cls(
            list_raw_materials=raw,
            add_raw_material=AddRawMaterial(backend, cache, raw),
            edit_raw_material=EditRawMaterial(backend, cache, raw),
            delete_raw_material=DeleteRawMaterial(backend, cache),
            list_categories=ListCategories(backend, cache),
            list_recipes=recipes,
            add_recipe=AddRecipe(backend, cache),
            calculate_production=CalculateProduction(backend, raw),
            store_issue_slip=GetStoreIssueSlip(backend, raw),
            calculate_cost=CalculateCost(backend, cache, recipes, raw, history),
            dashboard=GetDashboard(backend, cache, history),
            setup_admin=SetupAdmin(backend),
        )
