# jeevanam/infrastructure/query_cache.py
from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

log = logging.getLogger("infra.query_cache")

Key = Tuple[Any, ...]


class QueryCache:
    """
    Query results keyed by tuples like ("recipes",) or ("recipes", "category", "Soup").
    invalidate(("recipes",)) drops every key starting with that prefix.
    """

    def __init__(self, ttl_s: Optional[float] = None, max_items: int = 512) -> None:
        self.ttl_s = ttl_s
        self.max_items = max_items
        self._data: Dict[Key, Tuple[float, Any]] = {}
        # bumped on invalidation so an in-flight fetch cannot store stale data
        self._generation = 0

    def get(self, key: Key) -> Any:
        v = self._data.get(key)
        if not v:
            return None
        ts, payload = v
        if self.ttl_s is not None and time.time() - ts > self.ttl_s:
            self._data.pop(key, None)
            return None
        return payload

    def set(self, key: Key, payload: Any) -> None:
        if key not in self._data and len(self._data) >= self.max_items:
            # drop oldest
            oldest = sorted(self._data.items(), key=lambda kv: kv[1][0])[: max(1, self.max_items // 10)]
            for k, _ in oldest:
                self._data.pop(k, None)
        self._data[key] = (time.time(), payload)

    def __contains__(self, key: Key) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._data)

    async def get_or_fetch(self, key: Key, fetch: Callable[[], Awaitable[Any]]) -> Any:
        hit = self.get(key)
        if hit is not None:
            return hit
        gen = self._generation
        payload = await fetch()
        if gen == self._generation:
            self.set(key, payload)
        else:
            log.debug("cache invalidated while fetching %s, result not stored", key)
        return payload

    def invalidate(self, prefix: Key) -> int:
        n = len(prefix)
        dropped = [k for k in self._data if k[:n] == prefix]
        for k in dropped:
            self._data.pop(k, None)
        self._generation += 1
        return len(dropped)

    def invalidate_all(self) -> int:
        n = len(self._data)
        self._data.clear()
        self._generation += 1
        log.info("query cache cleared (%d entries)", n)
        return n
