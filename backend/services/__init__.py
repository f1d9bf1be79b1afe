"""Services package for FortiState."""

from .health import (
    run_health_checks,
    ComponentHealth,
    HealthResponse,
)
from . import state_store

__all__ = [
    "run_health_checks",
    "ComponentHealth",
    "HealthResponse",
    "state_store",
]
