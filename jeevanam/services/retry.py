# =========================
# FILE: jeevanam/services/retry.py
# =========================
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from jeevanam.core.config import RetrySettings
from jeevanam.domain.entities import (
    DashboardStats,
    Ingredient,
    ProductionResult,
    RawMaterial,
    RecipeCostAnalysis,
    StoreIssueSlip,
)
from jeevanam.domain.errors import ErrorKind, RetryAborted
from jeevanam.domain.repositories import KitchenBackend
from jeevanam.services.errors import classify, error_text

log = logging.getLogger("services.retry")

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    base_delay: float = 2.0
    max_delay: float = 16.0
    max_retries: int = 5

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls(
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            max_retries=settings.max_retries,
        )

    def should_retry(self, error: BaseException, attempt_count: int) -> bool:
        kind = classify(error)
        if kind in (ErrorKind.VALIDATION, ErrorKind.AUTH):
            return False
        if kind in (ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.NETWORK):
            return attempt_count < self.max_retries
        # plain rejections get one more try
        if "reject" in error_text(error).lower():
            return attempt_count < 1
        return False

    def delay_for_attempt(self, attempt_index: int) -> float:
        return min(self.base_delay * (2 ** attempt_index), self.max_delay)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_alive: Optional[Callable[[], bool]] = None,
    sleep: Sleep = asyncio.sleep,
    name: str = "operation",
) -> T:
    """
    Await `operation` until it succeeds or the policy gives up.

    `is_alive` is polled before every attempt after a backoff; once it returns
    False the loop stops with RetryAborted instead of firing a stale retry.
    Cancelling the awaiting task cancels the pending backoff sleep.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not policy.should_retry(e, attempt):
                if attempt:
                    log.warning("%s failed after %d retries: %s", name, attempt, e)
                raise
            delay = policy.delay_for_attempt(attempt)
            attempt += 1
            log.info(
                "%s failed (%s), retry %d/%d in %.1fs",
                name, classify(e).value, attempt, policy.max_retries, delay,
            )
            if is_alive is not None and not is_alive():
                raise RetryAborted(f"{name}: caller went away, retry {attempt} dropped") from e
            await sleep(delay)
            if is_alive is not None and not is_alive():
                raise RetryAborted(f"{name}: caller went away, retry {attempt} dropped") from e


class RetryingBackend(KitchenBackend):
    """Every call against the wrapped backend goes through the same RetryPolicy."""

    def __init__(self, inner: KitchenBackend, policy: RetryPolicy, sleep: Sleep = asyncio.sleep) -> None:
        self.inner = inner
        self.policy = policy
        self._sleep = sleep

    async def call(self, method: str, *args: Any, is_alive: Optional[Callable[[], bool]] = None) -> Any:
        fn = getattr(self.inner, method)
        return await run_with_retry(
            lambda: fn(*args),
            self.policy,
            is_alive=is_alive,
            sleep=self._sleep,
            name=method,
        )

    async def add_raw_material(self, name: str, unit_type: str, price_per_unit: float) -> None:
        await self.call("add_raw_material", name, unit_type, price_per_unit)

    async def edit_raw_material(self, raw_material_id: int, name: str, unit_type: str, price_per_unit: float) -> None:
        await self.call("edit_raw_material", raw_material_id, name, unit_type, price_per_unit)

    async def delete_raw_material(self, raw_material_id: int) -> None:
        await self.call("delete_raw_material", raw_material_id)

    async def get_all_raw_materials(self) -> List[RawMaterial]:
        return await self.call("get_all_raw_materials")

    async def get_raw_material(self, raw_material_id: int) -> Optional[RawMaterial]:
        return await self.call("get_raw_material", raw_material_id)

    async def add_recipe(self, name: str, category: str, portion_weight: float, ingredients: List[Ingredient]) -> None:
        await self.call("add_recipe", name, category, portion_weight, ingredients)

    async def get_all_categories(self) -> List[str]:
        return await self.call("get_all_categories")

    async def get_recipes_by_category(self, category: str) -> List[str]:
        return await self.call("get_recipes_by_category", category)

    async def calculate_production(self, recipe_name: str, quantity: float) -> ProductionResult:
        return await self.call("calculate_production", recipe_name, quantity)

    async def calculate_cost(self, recipe_name: str, quantity: float) -> RecipeCostAnalysis:
        return await self.call("calculate_cost", recipe_name, quantity)

    async def get_store_issue_slip(self, recipe_name: str, quantity: float) -> StoreIssueSlip:
        return await self.call("get_store_issue_slip", recipe_name, quantity)

    async def get_dashboard_stats(self) -> DashboardStats:
        return await self.call("get_dashboard_stats")

    async def check_health(self) -> bool:
        return await self.call("check_health")

    async def setup_admin(self) -> None:
        await self.call("setup_admin")
