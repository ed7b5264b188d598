# jeevanam/domain/repositories.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from jeevanam.domain.entities import (
    DashboardStats,
    Ingredient,
    ProductionResult,
    RawMaterial,
    RecipeCostAnalysis,
    StoreIssueSlip,
)


class KitchenBackend(ABC):
    """
    Request/response surface of the remote kitchen service.
    Implementations raise BackendError for anything the service rejects.
    """

    @abstractmethod
    async def add_raw_material(self, name: str, unit_type: str, price_per_unit: float) -> None: ...

    @abstractmethod
    async def edit_raw_material(self, raw_material_id: int, name: str, unit_type: str, price_per_unit: float) -> None: ...

    @abstractmethod
    async def delete_raw_material(self, raw_material_id: int) -> None: ...

    @abstractmethod
    async def get_all_raw_materials(self) -> List[RawMaterial]: ...

    @abstractmethod
    async def get_raw_material(self, raw_material_id: int) -> Optional[RawMaterial]: ...

    @abstractmethod
    async def add_recipe(self, name: str, category: str, portion_weight: float, ingredients: List[Ingredient]) -> None: ...

    @abstractmethod
    async def get_all_categories(self) -> List[str]: ...

    @abstractmethod
    async def get_recipes_by_category(self, category: str) -> List[str]: ...

    @abstractmethod
    async def calculate_production(self, recipe_name: str, quantity: float) -> ProductionResult: ...

    @abstractmethod
    async def calculate_cost(self, recipe_name: str, quantity: float) -> RecipeCostAnalysis:
        """Raw analysis: totals multiply unconverted quantities."""

    @abstractmethod
    async def get_store_issue_slip(self, recipe_name: str, quantity: float) -> StoreIssueSlip: ...

    @abstractmethod
    async def get_dashboard_stats(self) -> DashboardStats: ...

    @abstractmethod
    async def check_health(self) -> bool: ...

    @abstractmethod
    async def setup_admin(self) -> None: ...
