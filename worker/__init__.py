# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Background queue processing
# PURPOSE: Processors, loops, reminder cron and runtime wiring
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Worker Module

Components:
- processor: one claim/mark/execute/resolve cycle per job family
- driver: WorkerLoop, the self-rescheduling cycle runner
- reminders: daily "event is tomorrow" mail
- scheduler: WorkerHost, owns the loops and the reminder cron
- runtime: builds the object graph from configuration
- main: standalone worker entry point
"""

from worker.driver import WorkerLoop
from worker.processor import (
    CertificateQueueProcessor,
    CycleResult,
    EmailQueueProcessor,
    QueueProcessor,
)
from worker.reminders import ReminderJob, ReminderReport
from worker.scheduler import WorkerHost

__all__ = [
    "WorkerLoop",
    "CycleResult",
    "QueueProcessor",
    "EmailQueueProcessor",
    "CertificateQueueProcessor",
    "ReminderJob",
    "ReminderReport",
    "WorkerHost",
]
