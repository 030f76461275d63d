# ============================================================================
# WORKER HOST
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Owns every background loop and the reminder cron
# PURPOSE: Start and stop all background work as one unit
# CREATED: 19 OCT 2026
# ============================================================================
"""
Worker Host

Background work owned by one host:

    email loop         EmailQueueProcessor.run_cycle every 10s
    certificate loop   CertificateQueueProcessor.run_cycle every 15s
    stale sweep        requeue processing jobs stuck past the timeout
                       (only when STALE_JOB_TIMEOUT_SECONDS > 0)
    daily reminder     APScheduler cron, 09:00 in the reminder timezone

Both the FastAPI app and the standalone worker process use this class.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config.defaults import QueueDefaults, ReminderDefaults
from worker.driver import WorkerLoop
from worker.processor import CertificateQueueProcessor, EmailQueueProcessor
from worker.reminders import ReminderJob

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "daily-reminder"


class WorkerHost:
    """Starts and stops the queue loops, the sweep and the reminder cron."""

    def __init__(
        self,
        email_processor: EmailQueueProcessor,
        certificate_processor: CertificateQueueProcessor,
        reminder_job: Optional[ReminderJob] = None,
        queue_settings: Optional[QueueDefaults] = None,
        reminder_settings: Optional[ReminderDefaults] = None,
    ):
        self.email_processor = email_processor
        self.certificate_processor = certificate_processor
        self.reminder_job = reminder_job
        self.queue_settings = queue_settings or QueueDefaults()
        self.reminder_settings = reminder_settings or ReminderDefaults()

        self.loops: List[WorkerLoop] = [
            WorkerLoop("email", email_processor.run_cycle, self.queue_settings.email_cycle_delay_seconds),
            WorkerLoop(
                "certificate",
                certificate_processor.run_cycle,
                self.queue_settings.certificate_cycle_delay_seconds,
            ),
        ]
        if self.queue_settings.sweep_enabled:
            self.loops.append(
                WorkerLoop("stale-sweep", self.sweep_stale, self.queue_settings.stale_sweep_interval_seconds)
            )

        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def stores(self):
        return [self.email_processor.store, self.certificate_processor.store]

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        for loop in self.loops:
            await loop.start()

        if self.reminder_job is not None and self.reminder_settings.enabled:
            settings = self.reminder_settings
            self._scheduler = AsyncIOScheduler(timezone=settings.timezone)
            self._scheduler.add_job(
                self.reminder_job.run,
                CronTrigger(hour=settings.hour, minute=settings.minute, timezone=settings.timezone),
                id=REMINDER_JOB_ID,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=3600,
            )
            self._scheduler.start()
            logger.info(
                f"Daily reminder scheduled at {settings.hour:02d}:{settings.minute:02d} {settings.timezone}"
            )

        logger.info(f"Worker host started ({', '.join(loop.name for loop in self.loops)})")

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the cron, then drain every loop's in-flight cycle."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        await asyncio.gather(*(loop.stop(timeout) for loop in self.loops))
        logger.info("Worker host stopped")

    # =========================================================================
    # STALE SWEEP
    # =========================================================================

    async def sweep_stale(self) -> Dict[str, int]:
        """Requeue processing jobs untouched for longer than the timeout."""
        older_than = timedelta(seconds=self.queue_settings.stale_job_timeout_seconds)
        requeued = {}
        for store in self.stores:
            ids = await store.requeue_stale(older_than)
            requeued[store.family.value] = len(ids)
            if ids:
                logger.warning(f"Requeued {len(ids)} stale {store.family.value} jobs: {ids}")
        return requeued

    # =========================================================================
    # STATS
    # =========================================================================

    @property
    def stats(self) -> Dict[str, Any]:
        next_reminder = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(REMINDER_JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_reminder = job.next_run_time.isoformat()
        return {
            "loops": {loop.name: loop.stats for loop in self.loops},
            "reminder_enabled": self._scheduler is not None,
            "next_reminder_at": next_reminder,
        }


__all__ = ["WorkerHost", "REMINDER_JOB_ID"]
