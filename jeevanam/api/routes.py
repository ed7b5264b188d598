# jeevanam/api/routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from jeevanam.api.schemas import (
    CostRequest,
    CostResponse,
    ErrorDetail,
    HealthResponse,
    ProductionRequest,
    ProductionResponse,
    RawMaterialIn,
    RawMaterialOut,
    RecipeIn,
    RecipeOut,
    StoreIssueSlipResponse,
)
from jeevanam.core.config import CATEGORIES, INGREDIENT_UNITS, UNIT_TYPES
from jeevanam.domain.entities import HealthState, Ingredient
from jeevanam.domain.errors import CostCalculationError, ErrorKind, RetryAborted
from jeevanam.services.errors import classify, recovery_instructions, user_message

log = logging.getLogger("api.routes")
router = APIRouter()


# -------------------------
# Dependencies via app.state
# -------------------------
def get_usecases(request: Request):
    uc = getattr(request.app.state, "usecases", None)
    if uc is None:
        raise RuntimeError("usecases not initialized. Check app startup wiring.")
    return uc


def get_health_monitor(request: Request):
    monitor = getattr(request.app.state, "health_monitor", None)
    if monitor is None:
        raise RuntimeError("health_monitor not initialized. Check app startup wiring.")
    return monitor


def get_forms(request: Request):
    forms = getattr(request.app.state, "forms", None)
    if forms is None:
        raise RuntimeError("forms not initialized. Check app startup wiring.")
    return forms


# -------------------------
# Error mapping
# -------------------------
def _http_error(e: Exception, form: Optional[Dict[str, Any]] = None) -> HTTPException:
    """Translate an exception into an HTTP error; the submitted form is echoed back."""
    if isinstance(e, RetryAborted):
        status, kind, message, retryable = 409, "cancelled", "Request was superseded or cancelled", False
    elif isinstance(e, CostCalculationError):
        status, kind, message, retryable = 422, ErrorKind.VALIDATION.value, str(e), False
    elif isinstance(e, LookupError):
        status, kind, message, retryable = 404, ErrorKind.VALIDATION.value, str(e), False
    elif isinstance(e, ValueError):
        status = 409 if "already exists" in str(e).lower() else 400
        kind, message, retryable = ErrorKind.VALIDATION.value, str(e), False
    else:
        k = classify(e)
        kind, message = k.value, user_message(e)
        retryable = k in (ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.NETWORK)
        if k is ErrorKind.VALIDATION:
            t = str(e).lower()
            status = 409 if "already exists" in t else 404 if "not found" in t else 400
        elif k is ErrorKind.AUTH:
            status = 401
        elif retryable:
            status = 503
            log.warning("kitchen service unavailable after retries: %s", e)
        else:
            status = 500
            log.exception("Unhandled kitchen service error")

    detail = ErrorDetail(
        message=message,
        kind=kind,
        retryable=retryable,
        recovery=recovery_instructions(e) if status >= 500 or status == 401 else None,
        form=form,
    )
    return HTTPException(status_code=status, detail=detail.model_dump(exclude_none=True))


def _health_view(state: HealthState) -> Dict[str, Any]:
    return {
        "status": state.status.value,
        "is_healthy": state.is_healthy,
        "last_error": state.last_error,
        "retry_count": state.retry_count,
        "is_checking": state.is_checking,
        "last_checked_at": state.last_checked_at,
    }


# -------------------------
# Health
# -------------------------
@router.get("/health", response_model=HealthResponse)
async def health(monitor=Depends(get_health_monitor)) -> Any:
    return _health_view(monitor.state)


@router.post("/health/check", response_model=HealthResponse)
async def health_check_now(monitor=Depends(get_health_monitor)) -> Any:
    return _health_view(await monitor.check_now())


# -------------------------
# Raw materials
# -------------------------
@router.get("/raw-materials", response_model=List[RawMaterialOut])
async def list_raw_materials(uc=Depends(get_usecases)) -> Any:
    try:
        return [rm.to_dict() for rm in await uc.list_raw_materials()]
    except Exception as e:
        raise _http_error(e)


@router.get("/unit-types")
async def unit_types() -> Any:
    return {"raw_material": UNIT_TYPES, "ingredient": INGREDIENT_UNITS}


@router.post("/raw-materials", status_code=201)
async def add_raw_material(
    req: RawMaterialIn,
    uc=Depends(get_usecases),
    forms=Depends(get_forms),
    form_id: Optional[str] = Header(default=None, alias="X-Form-Id"),
) -> Any:
    is_alive = forms.begin(form_id)
    try:
        await uc.add_raw_material(req.name, req.unit_type, req.price_per_unit, is_alive=is_alive)
    except Exception as e:
        raise _http_error(e, form=req.model_dump())
    forms.finish(form_id, is_alive)
    return {"ok": True}


@router.put("/raw-materials/{raw_material_id}")
async def edit_raw_material(
    raw_material_id: int,
    req: RawMaterialIn,
    uc=Depends(get_usecases),
    forms=Depends(get_forms),
    form_id: Optional[str] = Header(default=None, alias="X-Form-Id"),
) -> Any:
    is_alive = forms.begin(form_id)
    try:
        await uc.edit_raw_material(raw_material_id, req.name, req.unit_type, req.price_per_unit, is_alive=is_alive)
    except Exception as e:
        raise _http_error(e, form={"id": raw_material_id, **req.model_dump()})
    forms.finish(form_id, is_alive)
    return {"ok": True}


@router.delete("/raw-materials/{raw_material_id}")
async def delete_raw_material(
    raw_material_id: int,
    uc=Depends(get_usecases),
    forms=Depends(get_forms),
    form_id: Optional[str] = Header(default=None, alias="X-Form-Id"),
) -> Any:
    is_alive = forms.begin(form_id)
    try:
        await uc.delete_raw_material(raw_material_id, is_alive=is_alive)
    except Exception as e:
        raise _http_error(e, form={"id": raw_material_id})
    forms.finish(form_id, is_alive)
    return {"ok": True}


@router.delete("/forms/{form_id}")
async def cancel_form(form_id: str, forms=Depends(get_forms)) -> Any:
    """Client closed the dialog: drop any retry still pending for it."""
    return {"cancelled": forms.cancel(form_id)}


# -------------------------
# Recipes
# -------------------------
@router.get("/categories")
async def list_categories(uc=Depends(get_usecases)) -> Any:
    try:
        return {"categories": await uc.list_categories(), "presets": CATEGORIES}
    except Exception as e:
        raise _http_error(e)


@router.get("/recipes", response_model=List[RecipeOut])
async def list_recipes(uc=Depends(get_usecases)) -> Any:
    try:
        return [r.to_dict() for r in await uc.list_recipes()]
    except Exception as e:
        raise _http_error(e)


@router.post("/recipes", status_code=201)
async def add_recipe(
    req: RecipeIn,
    uc=Depends(get_usecases),
    forms=Depends(get_forms),
    form_id: Optional[str] = Header(default=None, alias="X-Form-Id"),
) -> Any:
    ingredients = [Ingredient(i.raw_material_id, i.quantity_per_portion, i.unit) for i in req.ingredients]
    is_alive = forms.begin(form_id)
    try:
        await uc.add_recipe(req.name, req.category, req.portion_weight, ingredients, is_alive=is_alive)
    except Exception as e:
        raise _http_error(e, form=req.model_dump())
    forms.finish(form_id, is_alive)
    return {"ok": True}


# -------------------------
# Production & cost
# -------------------------
@router.post("/production", response_model=ProductionResponse)
async def calculate_production(req: ProductionRequest, uc=Depends(get_usecases)) -> Any:
    try:
        return await uc.calculate_production(req.recipe_name, req.quantity)
    except Exception as e:
        raise _http_error(e)


@router.post("/store-issue-slip", response_model=StoreIssueSlipResponse)
async def store_issue_slip(req: ProductionRequest, uc=Depends(get_usecases)) -> Any:
    try:
        return await uc.store_issue_slip(req.recipe_name, req.quantity)
    except Exception as e:
        raise _http_error(e)


@router.post("/cost", response_model=CostResponse)
async def calculate_cost(req: CostRequest, uc=Depends(get_usecases)) -> Any:
    try:
        return await uc.calculate_cost(req.recipe_name, req.quantity, req.selling_price)
    except Exception as e:
        raise _http_error(e)


@router.get("/dashboard")
async def dashboard(uc=Depends(get_usecases)) -> Any:
    try:
        return await uc.dashboard()
    except Exception as e:
        raise _http_error(e)


@router.post("/admin/setup")
async def setup_admin(uc=Depends(get_usecases)) -> Any:
    try:
        await uc.setup_admin()
    except Exception as e:
        raise _http_error(e)
    return {"ok": True}
