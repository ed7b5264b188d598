# =========================
# FILE: jeevanam/api/schemas.py
# =========================
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RawMaterialIn(BaseModel):
    name: str = Field(..., examples=["Sunflower Oil"])
    unit_type: str = Field(..., examples=["L"])
    price_per_unit: float


class RawMaterialOut(BaseModel):
    id: int
    name: str
    unit_type: str
    price_per_unit: float


class IngredientIn(BaseModel):
    raw_material_id: Optional[int] = None  # None for a row left blank
    quantity_per_portion: float = Field(ge=0)
    unit: str = "g"


class RecipeIn(BaseModel):
    name: str
    category: str
    portion_weight: float = Field(..., description="Grams per portion")
    ingredients: List[IngredientIn] = Field(default_factory=list)


class RecipeOut(BaseModel):
    name: str
    category: str
    portion_weight: float
    ingredients: List[Dict[str, Any]]


class ProductionRequest(BaseModel):
    recipe_name: str
    quantity: float = Field(..., description="Number of portions to produce")


class CostRequest(ProductionRequest):
    selling_price: Optional[float] = Field(default=None, ge=0)


class IngredientLine(BaseModel):
    raw_material_id: int
    name: str
    quantity: float
    unit: str
    display: str


class ProductionResponse(BaseModel):
    recipe_name: str
    quantity: float
    total_portion_weight: float
    total_portion_weight_display: str
    ingredients: List[IngredientLine]


class StoreIssueSlipResponse(BaseModel):
    date: str
    recipe_name: str
    production_quantity: float
    ingredients: List[IngredientLine]


class ProfitOut(BaseModel):
    profit_per_portion: float
    profit_percentage: float
    food_cost_percentage: float


class CostResponse(BaseModel):
    recipe_name: str
    quantity: float
    breakdown: List[Dict[str, Any]]
    total_batch_cost: float
    cost_per_portion: float
    total_batch_cost_display: str
    cost_per_portion_display: str
    profit: Optional[ProfitOut] = None


class HealthResponse(BaseModel):
    status: str
    is_healthy: bool
    last_error: Optional[str] = None
    retry_count: int = 0
    is_checking: bool = False
    last_checked_at: Optional[float] = None


class ErrorDetail(BaseModel):
    message: str
    kind: str
    retryable: bool = False
    recovery: Optional[str] = None
    form: Optional[Dict[str, Any]] = None
