# jeevanam/domain/errors.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK = "network"
    AUTH = "auth"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class BackendError(RuntimeError):
    """
    Error raised by a kitchen backend transport.
    `kind` is set when the transport knows what went wrong (HTTP status,
    socket failure); None means only the message text is available.
    """

    def __init__(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


class RetryAborted(RuntimeError):
    """The caller that started a retry loop is gone; the pending retry was dropped."""


class CostCalculationError(ValueError):
    pass


class MissingCostsError(CostCalculationError):
    def __init__(self, names: List[str]) -> None:
        self.names = list(names)
        super().__init__(
            f"Missing costs for: {', '.join(self.names)}. "
            "Please set ingredient costs in the Raw Material Master first."
        )


class BreakdownMismatchError(CostCalculationError):
    def __init__(self, ingredients: int, lines: int) -> None:
        self.ingredients = ingredients
        self.lines = lines
        super().__init__(
            f"Cost breakdown has {lines} lines but the recipe has {ingredients} ingredients"
        )
