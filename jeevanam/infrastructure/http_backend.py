# jeevanam/infrastructure/http_backend.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from jeevanam.core.config import BACKEND_TIMEOUT_S, BACKEND_URL
from jeevanam.domain.entities import (
    CostBreakdownLine,
    DashboardStats,
    Ingredient,
    ProductionResult,
    RawMaterial,
    RecipeCostAnalysis,
    StoreIssueSlip,
)
from jeevanam.domain.errors import BackendError, ErrorKind
from jeevanam.domain.repositories import KitchenBackend

log = logging.getLogger("infra.http_backend")

_STATUS_KIND = {
    401: ErrorKind.AUTH,
    403: ErrorKind.AUTH,
    502: ErrorKind.SERVICE_UNAVAILABLE,
    503: ErrorKind.SERVICE_UNAVAILABLE,
    504: ErrorKind.NETWORK,
}


def _kind(value: Any) -> Optional[ErrorKind]:
    try:
        return ErrorKind(value) if value else None
    except ValueError:
        return None


def _parse_raw_material(x: Dict[str, Any]) -> RawMaterial:
    return RawMaterial(
        id=int(x["id"]),
        name=str(x.get("name") or x.get("rawMaterialName") or "").strip(),
        unit_type=str(x.get("unit_type") or x.get("unitType") or ""),
        price_per_unit=float(x.get("price_per_unit", x.get("pricePerUnit")) or 0),
    )


def _parse_ingredient(x: Dict[str, Any]) -> Ingredient:
    return Ingredient(
        raw_material_id=int(x.get("raw_material_id", x.get("rawMaterialId"))),
        quantity_per_portion=float(x.get("quantity_per_portion", x.get("quantityPerPortion")) or 0),
        unit=str(x.get("unit") or ""),
    )


def _parse_cost(x: Dict[str, Any]) -> RecipeCostAnalysis:
    return RecipeCostAnalysis(
        breakdown=[
            CostBreakdownLine(
                cost_per_unit=float(b.get("cost_per_unit", b.get("costPerUnit")) or 0),
                total_cost=float(b.get("total_cost", b.get("totalCost")) or 0),
            )
            for b in (x.get("breakdown") or [])
        ],
        total_batch_cost=float(x.get("total_batch_cost", x.get("totalBatchCost")) or 0),
        cost_per_portion=float(x.get("cost_per_portion", x.get("costPerPortion")) or 0),
    )


class HttpKitchenBackend(KitchenBackend):
    """
    JSON RPC over HTTP: POST {base_url}/rpc/{method} with the arguments as a
    JSON object. Replies are {"ok": <value>} or {"err": {"message": ..., "kind": ...}}.
    """

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        timeout_s: float = BACKEND_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout_s)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _rpc(self, method: str, **args: Any) -> Any:
        try:
            r = await self._client.post(f"/rpc/{method}", json=args)
        except httpx.TimeoutException as e:
            raise BackendError(f"Request timeout calling {method}: {e}", kind=ErrorKind.NETWORK) from e
        except httpx.TransportError as e:
            raise BackendError(f"Connection error calling {method}: {e}", kind=ErrorKind.NETWORK) from e

        try:
            body = r.json()
        except ValueError:
            body = {}

        err = body.get("err") if isinstance(body, dict) else None
        if r.status_code >= 400 or err:
            err = err if isinstance(err, dict) else {"message": str(err or r.text or r.reason_phrase)}
            message = str(err.get("message") or f"HTTP {r.status_code}")
            kind = _kind(err.get("kind")) or _STATUS_KIND.get(r.status_code)
            log.debug("rpc %s rejected status=%s kind=%s: %s", method, r.status_code, kind, message)
            raise BackendError(message, kind=kind)
        return body.get("ok") if isinstance(body, dict) else None

    async def add_raw_material(self, name: str, unit_type: str, price_per_unit: float) -> None:
        await self._rpc("addRawMaterial", rawMaterialName=name, unitType=unit_type, pricePerUnit=price_per_unit)

    async def edit_raw_material(self, raw_material_id: int, name: str, unit_type: str, price_per_unit: float) -> None:
        await self._rpc(
            "editRawMaterial",
            id=raw_material_id,
            rawMaterialName=name,
            unitType=unit_type,
            pricePerUnit=price_per_unit,
        )

    async def delete_raw_material(self, raw_material_id: int) -> None:
        await self._rpc("deleteRawMaterial", id=raw_material_id)

    async def get_all_raw_materials(self) -> List[RawMaterial]:
        return [_parse_raw_material(x) for x in (await self._rpc("getAllRawMaterials") or [])]

    async def get_raw_material(self, raw_material_id: int) -> Optional[RawMaterial]:
        x = await self._rpc("getRawMaterial", id=raw_material_id)
        return _parse_raw_material(x) if x else None

    async def add_recipe(self, name: str, category: str, portion_weight: float, ingredients: List[Ingredient]) -> None:
        await self._rpc(
            "addRecipe",
            name=name,
            category=category,
            portionWeight=portion_weight,
            ingredients=[
                {"rawMaterialId": i.raw_material_id, "quantityPerPortion": i.quantity_per_portion, "unit": i.unit}
                for i in ingredients
            ],
        )

    async def get_all_categories(self) -> List[str]:
        return [str(c) for c in (await self._rpc("getAllCategories") or [])]

    async def get_recipes_by_category(self, category: str) -> List[str]:
        return [str(n) for n in (await self._rpc("getRecipesByCategory", category=category) or [])]

    async def calculate_production(self, recipe_name: str, quantity: float) -> ProductionResult:
        x = await self._rpc("calculateProduction", recipeName=recipe_name, quantity=quantity) or {}
        return ProductionResult(
            total_portion_weight=float(x.get("totalPortionWeight") or 0),
            ingredients=[_parse_ingredient(i) for i in (x.get("ingredients") or [])],
        )

    async def calculate_cost(self, recipe_name: str, quantity: float) -> RecipeCostAnalysis:
        return _parse_cost(await self._rpc("calculateCost", recipeName=recipe_name, quantity=quantity) or {})

    async def get_store_issue_slip(self, recipe_name: str, quantity: float) -> StoreIssueSlip:
        x = await self._rpc("getStoreIssueSlip", recipeName=recipe_name, quantity=quantity) or {}
        return StoreIssueSlip(
            date=str(x.get("date") or ""),
            recipe_name=str(x.get("recipeName") or recipe_name),
            production_quantity=float(x.get("productionQuantity") or quantity),
            ingredients=[_parse_ingredient(i) for i in (x.get("ingredients") or [])],
        )

    async def get_dashboard_stats(self) -> DashboardStats:
        x = await self._rpc("getDashboardStats") or {}
        return DashboardStats(
            total_recipes=int(x.get("totalRecipes") or 0),
            total_ingredients=int(x.get("totalIngredients") or 0),
            most_produced_item=str(x.get("mostProducedItem") or ""),
            average_food_cost_percentage=float(x.get("averageFoodCostPercentage") or 0),
        )

    async def check_health(self) -> bool:
        return bool(await self._rpc("checkHealth"))

    async def setup_admin(self) -> None:
        await self._rpc("setupAdmin")
