from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from dotenv import load_dotenv
load_dotenv()
from jeevanam.api.routes import router
from jeevanam.core.config import BACKEND_URL, USE_MEMORY_BACKEND, HealthSettings, RetrySettings

from jeevanam.application.usecases import KitchenUseCases
from jeevanam.domain.repositories import KitchenBackend
from jeevanam.infrastructure.history_store import ProductionHistoryStore
from jeevanam.infrastructure.http_backend import HttpKitchenBackend
from jeevanam.infrastructure.memory_backend import InMemoryKitchenBackend
from jeevanam.infrastructure.query_cache import QueryCache
from jeevanam.infrastructure.session_store import InMemoryFormSessions
from jeevanam.services.health import HealthMonitor
from jeevanam.services.retry import RetryingBackend, RetryPolicy

log = logging.getLogger("app")


def build_app(
    backend: Optional[KitchenBackend] = None,
    retry_policy: Optional[RetryPolicy] = None,
    health_settings: Optional[HealthSettings] = None,
    start_monitor: bool = True,
) -> FastAPI:
    app = FastAPI(title="Jeevanam Kitchen")
    app.include_router(router)

    @app.on_event("startup")
    async def on_startup() -> None:
        inner = backend
        if inner is None:
            if USE_MEMORY_BACKEND:
                inner = InMemoryKitchenBackend()
            else:
                inner = HttpKitchenBackend(BACKEND_URL)
                log.info("kitchen service at %s", BACKEND_URL)

        policy = retry_policy or RetryPolicy.from_settings(RetrySettings())
        cache = QueryCache()
        history = ProductionHistoryStore()
        remote = RetryingBackend(inner, policy)

        # health polls hit the service directly, pacing is the monitor's own
        monitor = HealthMonitor(inner, on_recovery=cache.invalidate_all, settings=health_settings)

        # DI for routes.py
        app.state.backend = inner
        app.state.cache = cache
        app.state.history = history
        app.state.forms = InMemoryFormSessions()
        app.state.usecases = KitchenUseCases.build(remote, cache, history)
        app.state.health_monitor = monitor

        if start_monitor:
            monitor.start()
        log.info("Startup complete")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        monitor = getattr(app.state, "health_monitor", None)
        if monitor is not None:
            await monitor.stop()
        inner = getattr(app.state, "backend", None)
        if isinstance(inner, HttpKitchenBackend):
            await inner.aclose()

    return app


app = build_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8081, reload=False)
