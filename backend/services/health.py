"""
Health check service for FortiState.

Checks state database connectivity and FortiOS API reachability, and tracks
uptime. Returns structured health responses with per-component status.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import text

from config import settings
from database import AsyncSessionLocal
from fortios.client import FortiAPIError, FortiOSClient

logger = logging.getLogger(__name__)

# Captured at module load for uptime
_start_time = time.monotonic()


class ComponentHealth(BaseModel):
    name: str
    status: str  # "ok" | "degraded" | "error"
    message: Optional[str] = None
    response_time_ms: Optional[float] = None


class HealthResponse(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    app: str
    version: str
    uptime_seconds: float
    checks: list[ComponentHealth]
    timestamp: str


async def check_database() -> ComponentHealth:
    """Check database connectivity by running SELECT 1."""
    start = time.perf_counter()
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        elapsed = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            name="database",
            status="ok",
            response_time_ms=round(elapsed, 1),
        )
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            name="database",
            status="error",
            message=str(e),
            response_time_ms=round(elapsed, 1),
        )


async def check_fortios(client: FortiOSClient) -> ComponentHealth:
    """Check that the FortiOS API answers the system status monitor."""
    start = time.perf_counter()
    try:
        status = await client.system_status()
    except FortiAPIError as e:
        elapsed = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            name="fortios",
            status="error",
            message=str(e),
            response_time_ms=round(elapsed, 1),
        )
    elapsed = (time.perf_counter() - start) * 1000
    version = status.get("version")
    return ComponentHealth(
        name="fortios",
        status="ok",
        message=f"{client.hostname} {version}" if version else client.hostname,
        response_time_ms=round(elapsed, 1),
    )


async def run_health_checks(client: Optional[FortiOSClient] = None) -> HealthResponse:
    """Run all health checks and return aggregated status."""
    checks = [await check_database()]
    if client is not None:
        checks.append(await check_fortios(client))

    # The state database is critical. An unreachable device only degrades
    # the service since stored state can still be listed.
    critical_names = {"database"}
    has_critical_error = any(
        c.status == "error" and c.name in critical_names for c in checks
    )
    has_any_error = any(c.status == "error" for c in checks)

    if has_critical_error:
        overall = "unhealthy"
    elif has_any_error:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        uptime_seconds=round(time.monotonic() - _start_time, 1),
        checks=checks,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
