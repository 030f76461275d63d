# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Container probes and health monitoring endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez   - Liveness probe, no external checks
    GET /readyz  - Readiness probe, runs checks marked required_for_ready
    GET /health  - Every check with details (200 / 206 degraded / 503)
    GET /health/{check_name} - Single check

The host sets the registry during startup with set_registry().
"""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import BUILD_DATE, __version__
from health.core import HealthRegistry, HealthStatus

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

_registry: Optional[HealthRegistry] = None


def set_registry(registry: Optional[HealthRegistry]) -> None:
    global _registry
    _registry = registry


@health_router.get("/livez")
async def liveness_probe():
    """Process is alive."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """Queue backends reachable; the app can accept enqueues."""
    if _registry is None:
        return JSONResponse(status_code=503, content={"status": "not_ready", "message": "Starting up"})

    result = await _registry.run(required_only=True)
    if result.status == HealthStatus.UNHEALTHY:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "checks": {
                    name: check.to_dict()
                    for name, check in result.checks.items()
                    if check.status == HealthStatus.UNHEALTHY
                },
            },
        )
    return {"status": "ready", "checks_passed": len(result.checks)}


@health_router.get("/health")
async def full_health_check():
    """Every registered check with details."""
    if _registry is None:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "message": "Starting up"})

    result = await _registry.run()
    body = result.to_dict()
    body["version"] = __version__
    body["build_date"] = BUILD_DATE
    return JSONResponse(status_code=result.status.http_code, content=body)


@health_router.get("/health/{check_name}")
async def single_health_check(check_name: str):
    """Run one check by name."""
    check = _registry.get(check_name) if _registry is not None else None
    if check is None:
        return JSONResponse(status_code=404, content={"error": f"Health check not found: {check_name}"})

    result = await _registry.run_one(check)
    return JSONResponse(status_code=result.status.http_code, content=result.to_dict())


__all__ = ["health_router", "set_registry"]
