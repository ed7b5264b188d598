# =========================
# FILE: jeevanam/infrastructure/session_store.py
# =========================
from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional


@dataclass
class FormSession:
    form_id: str
    token: int
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)


class InMemoryFormSessions:
    """
    Tracks which submission of a client form (a dialog, a page) is current.

    begin() hands out a liveness check for the submission; it turns False once
    the same form is submitted again, cancelled, or expires, so a pending
    retry for the old submission is dropped instead of firing late.
    """

    def __init__(self, ttl_seconds: int = 1800) -> None:
        self.ttl_seconds = ttl_seconds
        self._data: Dict[str, FormSession] = {}
        self._tokens = itertools.count(1)

    def begin(self, form_id: Optional[str]) -> Optional[Callable[[], bool]]:
        if not form_id:
            return None
        self._gc()
        st = FormSession(form_id=form_id, token=next(self._tokens))
        self._data[form_id] = st
        token = st.token

        def is_alive() -> bool:
            cur = self._data.get(form_id)
            return cur is not None and cur.token == token

        return is_alive

    def finish(self, form_id: Optional[str], is_alive: Optional[Callable[[], bool]]) -> None:
        # only the current submission may close its form
        if form_id and is_alive is not None and is_alive():
            self._data.pop(form_id, None)

    def cancel(self, form_id: str) -> bool:
        return self._data.pop(form_id, None) is not None

    def _gc(self) -> None:
        now = time.time()
        expired = [k for k, v in self._data.items() if now - v.updated_at > self.ttl_seconds]
        for k in expired:
            self._data.pop(k, None)
