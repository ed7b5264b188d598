from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from jeevanam.domain.entities import Ingredient
from jeevanam.infrastructure.history_store import ProductionHistoryStore
from jeevanam.infrastructure.memory_backend import InMemoryKitchenBackend
from jeevanam.infrastructure.query_cache import QueryCache
from jeevanam.application.usecases import KitchenUseCases
from jeevanam.services.retry import RetryingBackend, RetryPolicy


class RecordingSleep:
    """Stands in for asyncio.sleep so backoff runs instantly and is observable."""

    def __init__(self) -> None:
        self.delays: List[float] = []
        # called after each recorded delay, e.g. to restart a stopped backend
        self.then: Optional[Callable[[], None]] = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.then is not None:
            self.then()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def backend() -> InMemoryKitchenBackend:
    return InMemoryKitchenBackend()


@pytest.fixture
def kitchen(backend, sleep):
    cache = QueryCache()
    history = ProductionHistoryStore()
    remote = RetryingBackend(backend, RetryPolicy(), sleep=sleep)
    return KitchenUseCases.build(remote, cache, history), cache, history


async def seed_pulao(backend: InMemoryKitchenBackend) -> None:
    """Oil priced per litre, rice per kilo; 300 ml oil and 2 Kg rice per portion."""
    await backend.add_raw_material("Sunflower Oil", "L", 200.0)
    await backend.add_raw_material("Rice", "Kg", 60.0)
    await backend.add_recipe(
        "Veg Pulao",
        "Lunch",
        350.0,
        [Ingredient(1, 300.0, "ml"), Ingredient(2, 2.0, "Kg")],
    )
