# =========================
# FILE: jeevanam/infrastructure/history_store.py
# =========================
from __future__ import annotations

import time
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from jeevanam.domain.entities import ProductionRecord


class ProductionHistoryStore:
    """
    Production log kept next to the API process. A convenience record for the
    dashboard, not a source of truth; the kitchen service owns recipe data.
    """

    def __init__(self, max_records: int = 1000) -> None:
        self.max_records = max_records
        self._records: List[ProductionRecord] = []
        self.updated_at: float = time.time()

    def record(self, rec: ProductionRecord) -> None:
        self._records.append(rec)
        if len(self._records) > self.max_records:
            del self._records[: len(self._records) - self.max_records]
        self.updated_at = time.time()

    def all(self) -> List[ProductionRecord]:
        return list(self._records)

    def for_day(self, day: Optional[date] = None) -> List[ProductionRecord]:
        day = day or date.today()
        return [r for r in self._records if datetime.fromisoformat(r.date).date() == day]

    def clear(self) -> None:
        self._records.clear()
        self.updated_at = time.time()


def total_consumption(records: List[ProductionRecord]) -> Dict[str, float]:
    out: Dict[str, float] = defaultdict(float)
    for rec in records:
        for ing in rec.ingredients:
            out[ing.name] += ing.quantity
    return dict(out)


def top_ingredients(records: List[ProductionRecord], limit: int = 5) -> List[Dict[str, Any]]:
    consumption = total_consumption(records)
    ranked = sorted(consumption.items(), key=lambda kv: kv[1], reverse=True)
    return [{"name": name, "quantity": qty} for name, qty in ranked[:limit]]


def total_cost(records: List[ProductionRecord]) -> float:
    return sum(r.cost for r in records)
