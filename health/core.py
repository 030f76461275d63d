# ============================================================================
# HEALTH CHECK CORE TYPES
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Infrastructure - Health check plugins, results and runner
# PURPOSE: Probe the queue stores and worker loops for /readyz and /health
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Core Types

Status hierarchy (worst wins):
- healthy: all systems operational
- degraded: operational with warnings
- unhealthy: critical failure

Checks run concurrently, each under its own timeout. A check that raises or
times out reports unhealthy instead of failing the probe.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from core.contracts import utcnow

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health check status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        return {HealthStatus.HEALTHY: 0, HealthStatus.DEGRADED: 1, HealthStatus.UNHEALTHY: 2}[self]

    @property
    def http_code(self) -> int:
        return {HealthStatus.HEALTHY: 200, HealthStatus.DEGRADED: 206, HealthStatus.UNHEALTHY: 503}[self]

    @classmethod
    def aggregate(cls, statuses: List["HealthStatus"]) -> "HealthStatus":
        """Aggregate multiple statuses (worst wins)."""
        return max(statuses, key=lambda s: s.severity, default=cls.HEALTHY)


@dataclass
class HealthCheckResult:
    """Result from a single health check."""
    status: HealthStatus
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0

    @classmethod
    def healthy(cls, message: str = None, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.HEALTHY, message=message, details=details)

    @classmethod
    def degraded(cls, message: str, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.DEGRADED, message=message, details=details)

    @classmethod
    def unhealthy(cls, message: str, **details) -> "HealthCheckResult":
        return cls(status=HealthStatus.UNHEALTHY, message=message, details=details)

    def to_dict(self) -> Dict[str, Any]:
        result = {"status": self.status.value, "duration_ms": round(self.duration_ms, 2)}
        if self.message:
            result["message"] = self.message
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class AggregatedHealthResult:
    """Results of one probe run."""
    status: HealthStatus
    checks: Dict[str, HealthCheckResult]
    total_duration_ms: float
    checked_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "checks": {name: result.to_dict() for name, result in self.checks.items()},
            "total_duration_ms": round(self.total_duration_ms, 2),
            "checked_at": self.checked_at.isoformat(),
        }


class HealthCheck(ABC):
    """
    Base class for health checks.

    Attributes:
        name: unique identifier for the check
        timeout_seconds: max execution time before the check counts as unhealthy
        required_for_ready: if True, an unhealthy result fails /readyz
    """

    name: str = "unnamed"
    timeout_seconds: float = 5.0
    required_for_ready: bool = True

    @abstractmethod
    async def check(self) -> HealthCheckResult:
        """Execute the check."""


class HealthRegistry:
    """Holds the checks for one process and runs them."""

    def __init__(self, checks: Optional[List[HealthCheck]] = None):
        self._checks: Dict[str, HealthCheck] = {}
        for check in checks or []:
            self.register(check)

    def register(self, check: HealthCheck) -> None:
        if check.name in self._checks:
            logger.warning(f"Overwriting health check: {check.name}")
        self._checks[check.name] = check

    def get(self, name: str) -> Optional[HealthCheck]:
        return self._checks.get(name)

    def __len__(self) -> int:
        return len(self._checks)

    async def run(self, required_only: bool = False) -> AggregatedHealthResult:
        checks = [c for c in self._checks.values() if c.required_for_ready or not required_only]
        start = time.monotonic()
        results = await asyncio.gather(*(self.run_one(c) for c in checks))
        by_name = {check.name: result for check, result in zip(checks, results)}
        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results]),
            checks=by_name,
            total_duration_ms=(time.monotonic() - start) * 1000,
        )

    async def run_one(self, check: HealthCheck) -> HealthCheckResult:
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            result = HealthCheckResult.unhealthy(f"Timed out after {check.timeout_seconds}s")
        except Exception as e:
            logger.warning(f"Health check {check.name} raised: {e}")
            result = HealthCheckResult.unhealthy(str(e), exception_type=type(e).__name__)
        result.duration_ms = (time.monotonic() - start) * 1000
        return result


__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "AggregatedHealthResult",
    "HealthCheck",
    "HealthRegistry",
]
