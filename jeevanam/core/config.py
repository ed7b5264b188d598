# jeevanam/core/config.py
from __future__ import annotations
from dataclasses import dataclass
import os
import logging

# Remote kitchen service
BACKEND_URL: str = os.getenv("BACKEND_URL", "http://127.0.0.1:4943")
BACKEND_TIMEOUT_S: float = float(os.getenv("BACKEND_TIMEOUT_S", "10"))
USE_MEMORY_BACKEND: bool = os.getenv("USE_MEMORY_BACKEND", "0").lower() in ("1", "true", "yes")

# Retry policy, applied to every remote call
RETRY_BASE_DELAY_S: float = float(os.getenv("RETRY_BASE_DELAY_S", "2"))
RETRY_MAX_DELAY_S: float = float(os.getenv("RETRY_MAX_DELAY_S", "16"))
RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "5"))

# Health polling
HEALTH_INTERVAL_S: float = float(os.getenv("HEALTH_INTERVAL_S", "10"))
HEALTH_UNHEALTHY_INTERVAL_S: float = float(os.getenv("HEALTH_UNHEALTHY_INTERVAL_S", "3"))
HEALTH_MAX_RETRY_COUNT: int = int(os.getenv("HEALTH_MAX_RETRY_COUNT", "10"))

CATEGORIES = [
    "Tiffin", "Lunch", "Snacks", "Chat", "Chinese", "Soup", "Bread",
    "Gravy", "Chutney", "Juice", "Wellness Bowl", "Special Item", "Other",
]
# Kg/L/g/ml/Nos are current; Liter/Piece come from older records
UNIT_TYPES = ["Kg", "L", "g", "ml", "Nos", "Liter", "Piece"]
INGREDIENT_UNITS = ["g", "ml", "kg", "l", "pcs"]


@dataclass(frozen=True)
class RetrySettings:
    base_delay: float = RETRY_BASE_DELAY_S
    max_delay: float = RETRY_MAX_DELAY_S
    max_retries: int = RETRY_MAX_ATTEMPTS


@dataclass(frozen=True)
class HealthSettings:
    interval: float = HEALTH_INTERVAL_S
    unhealthy_interval: float = HEALTH_UNHEALTHY_INTERVAL_S
    max_retry_count: int = HEALTH_MAX_RETRY_COUNT


# Global logging (module-level loggers inherit this)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
