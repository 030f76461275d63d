# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Infrastructure - Health monitoring
# PURPOSE: Liveness, readiness and detailed health for the host process
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Health Check Module

Usage in main.py:
    from health import health_router, set_registry, build_registry

    set_registry(build_registry(stores, host, mail_settings))
    app.include_router(health_router)
"""

from health.core import (
    AggregatedHealthResult,
    HealthCheck,
    HealthCheckResult,
    HealthRegistry,
    HealthStatus,
)
from health.probes import MailTransportCheck, QueueStoreCheck, WorkerLoopCheck, build_registry
from health.router import health_router, set_registry

__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "AggregatedHealthResult",
    "HealthCheck",
    "HealthRegistry",
    "QueueStoreCheck",
    "WorkerLoopCheck",
    "MailTransportCheck",
    "build_registry",
    "health_router",
    "set_registry",
]
