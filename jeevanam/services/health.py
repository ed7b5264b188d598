# =========================
# FILE: jeevanam/services/health.py
# =========================
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Optional

from jeevanam.core.config import HealthSettings
from jeevanam.domain.entities import HealthState, HealthStatus
from jeevanam.domain.errors import BackendError, ErrorKind
from jeevanam.domain.repositories import KitchenBackend
from jeevanam.services.errors import classify, is_connectivity_error, user_message
from jeevanam.services.retry import RetryPolicy, Sleep

log = logging.getLogger("services.health")


class HealthMonitor:
    """
    Background poll of the kitchen service.

    Healthy <-> Unhealthy. Only connectivity failures (stopped service,
    network) make it unhealthy; validation/auth/other errors say nothing
    about reachability and leave the state alone. Coming back to healthy
    calls `on_recovery` once, which is expected to drop every cached query.
    Never touches recipe or raw-material data itself.
    """

    def __init__(
        self,
        backend: KitchenBackend,
        on_recovery: Callable[[], Any],
        settings: Optional[HealthSettings] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.on_recovery = on_recovery
        self.settings = settings or HealthSettings()
        # unhealthy polls start fast and back off, staying under half the healthy interval
        self.pace = RetryPolicy(
            base_delay=self.settings.unhealthy_interval,
            max_delay=max(self.settings.unhealthy_interval, self.settings.interval / 2),
            max_retries=self.settings.max_retry_count,
        )
        self.state = HealthState()
        self._sleep = sleep
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def next_interval(self) -> float:
        if self.state.is_healthy:
            return self.settings.interval
        return self.pace.delay_for_attempt(max(self.state.retry_count - 1, 0))

    async def check(self) -> HealthState:
        self.state.is_checking = True
        try:
            ok = await self.backend.check_health()
            if not ok:
                raise BackendError("Service temporarily unavailable: health check failed",
                                   kind=ErrorKind.SERVICE_UNAVAILABLE)
        except Exception as e:
            self._on_failure(e)
        else:
            await self._on_success()
        finally:
            self.state.is_checking = False
            self.state.last_checked_at = self._clock()
        return self.state

    async def check_now(self) -> HealthState:
        """Manual check; the polling timer keeps its own schedule."""
        return await self.check()

    async def _on_success(self) -> None:
        recovered = self.state.status is HealthStatus.UNHEALTHY
        self.state.status = HealthStatus.HEALTHY
        self.state.last_error = None
        self.state.retry_count = 0
        if recovered:
            log.info("backend recovered, invalidating cached queries")
            res = self.on_recovery()
            if inspect.isawaitable(res):
                await res

    def _on_failure(self, error: BaseException) -> None:
        kind = classify(error)
        if not is_connectivity_error(error):
            log.debug("health check error ignored (%s): %s", kind.value, error)
            return
        self.state.status = HealthStatus.UNHEALTHY
        self.state.retry_count = min(self.state.retry_count + 1, self.settings.max_retry_count)
        self.state.last_error = user_message(error)
        log.warning("backend unhealthy (%s), retry count %d: %s", kind.value, self.state.retry_count, error)

    async def run(self) -> None:
        while True:
            try:
                await self.check()
            except Exception:
                log.exception("health check crashed")
            await self._sleep(self.next_interval())

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
