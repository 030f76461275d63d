# ============================================================================
# HEALTH PROBES
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Infrastructure - Checks for stores, loops and mail config
# PURPOSE: Concrete health checks registered by the host process
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Probes

    queue_<family>   store reachable (required for /readyz)
    worker_loops     every loop running, last cycle clean
    mail_transport   SMTP settings present when MAIL_TRANSPORT=smtp
"""

from typing import List

from core.config.defaults import MailDefaults
from health.core import HealthCheck, HealthCheckResult, HealthRegistry
from repositories.queue_store import JobQueueStore
from worker.scheduler import WorkerHost


class QueueStoreCheck(HealthCheck):
    """Queue backend answers and reports its counts."""

    def __init__(self, store: JobQueueStore):
        self.store = store
        self.name = f"queue_{store.family.value}"

    async def check(self) -> HealthCheckResult:
        if not await self.store.ping():
            return HealthCheckResult.unhealthy(f"{self.store.family.value} queue unreachable")
        counts = await self.store.count_by_status()
        return HealthCheckResult.healthy(counts=counts)


class WorkerLoopCheck(HealthCheck):
    """Background loops are alive and their last cycle succeeded."""

    name = "worker_loops"
    required_for_ready = False

    def __init__(self, host: WorkerHost):
        self.host = host

    async def check(self) -> HealthCheckResult:
        stats = self.host.stats
        loops = stats["loops"]
        stopped = [name for name, s in loops.items() if not s["running"]]
        if stopped:
            return HealthCheckResult.unhealthy(f"Loops not running: {', '.join(stopped)}", **stats)
        failing = [name for name, s in loops.items() if not s["last_cycle_ok"]]
        if failing:
            return HealthCheckResult.degraded(f"Last cycle failed: {', '.join(failing)}", **stats)
        return HealthCheckResult.healthy(**stats)


class MailTransportCheck(HealthCheck):
    """Outbound mail is configured."""

    name = "mail_transport"
    required_for_ready = False

    def __init__(self, settings: MailDefaults):
        self.settings = settings

    async def check(self) -> HealthCheckResult:
        s = self.settings
        if s.transport == "smtp":
            if not s.smtp_host:
                return HealthCheckResult.unhealthy("SMTP_HOST not set")
            return HealthCheckResult.healthy(transport="smtp", host=s.smtp_host, port=s.smtp_port)
        return HealthCheckResult.degraded("Console transport: mail is logged, not delivered", transport=s.transport)


def build_registry(stores: List[JobQueueStore], host: WorkerHost, mail: MailDefaults) -> HealthRegistry:
    """Registry with every probe for one host process."""
    checks: List[HealthCheck] = [QueueStoreCheck(store) for store in stores]
    checks.append(WorkerLoopCheck(host))
    checks.append(MailTransportCheck(mail))
    return HealthRegistry(checks)


__all__ = ["QueueStoreCheck", "WorkerLoopCheck", "MailTransportCheck", "build_registry"]
