# jeevanam/domain/entities.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


@dataclass(frozen=True)
class RawMaterial:
    id: int
    name: str
    unit_type: str
    price_per_unit: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "unit_type": self.unit_type,
            "price_per_unit": self.price_per_unit,
        }


@dataclass(frozen=True)
class Ingredient:
    raw_material_id: int
    quantity_per_portion: float
    unit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_material_id": self.raw_material_id,
            "quantity_per_portion": self.quantity_per_portion,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class Recipe:
    name: str  # retrieval key on the remote service
    category: str
    portion_weight: float  # grams per portion
    ingredients: List[Ingredient] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "portion_weight": self.portion_weight,
            "ingredients": [i.to_dict() for i in self.ingredients],
        }


@dataclass(frozen=True)
class CostBreakdownLine:
    cost_per_unit: float
    total_cost: float


@dataclass(frozen=True)
class RecipeCostAnalysis:
    # breakdown[i] belongs to the recipe's ingredients[i]
    breakdown: List[CostBreakdownLine]
    total_batch_cost: float
    cost_per_portion: float


@dataclass(frozen=True)
class ProductionResult:
    total_portion_weight: float
    ingredients: List[Ingredient]


@dataclass(frozen=True)
class StoreIssueSlip:
    date: str
    recipe_name: str
    production_quantity: float
    ingredients: List[Ingredient]


@dataclass(frozen=True)
class DashboardStats:
    total_recipes: int
    total_ingredients: int
    most_produced_item: str
    average_food_cost_percentage: float


@dataclass(frozen=True)
class ProfitAnalysis:
    profit_per_portion: float
    profit_percentage: float
    food_cost_percentage: float


@dataclass(frozen=True)
class ConsumedIngredient:
    name: str
    quantity: float
    unit: str = ""


@dataclass(frozen=True)
class ProductionRecord:
    date: str  # ISO timestamp
    recipe_name: str
    quantity: float
    cost: float
    ingredients: List[ConsumedIngredient] = field(default_factory=list)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthState:
    status: HealthStatus = HealthStatus.HEALTHY
    last_error: str | None = None
    retry_count: int = 0
    is_checking: bool = False
    last_checked_at: float | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY
