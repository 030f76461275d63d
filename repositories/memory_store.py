# ============================================================================
# IN-MEMORY JOB QUEUE STORE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Repository - Process-local queue backend
# PURPOSE: QUEUE_BACKEND=memory and tests
# CREATED: 19 OCT 2026
# ============================================================================
"""
In-Memory Job Queue Store

Jobs live in a dict guarded by an asyncio.Lock. Callers always receive
copies, so mutating a returned job never changes stored state.

Not durable: jobs are lost when the process exits.
"""

import asyncio
import itertools
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Type

from core.contracts import JobStatus, ResolveOutcome, utcnow
from core.errors import ValidationError
from repositories.queue_store import J, JobQueueStore, empty_status_counts

logger = logging.getLogger(__name__)


class InMemoryJobQueueStore(JobQueueStore[J]):
    """Dict-backed store for one job family."""

    def __init__(self, job_model: Type[J]):
        super().__init__(job_model)
        self._jobs: Dict[str, J] = {}
        self._order: Dict[str, int] = {}
        self._sequence = itertools.count()
        self._lock = asyncio.Lock()

    async def _insert(self, jobs: List[J]) -> None:
        async with self._lock:
            ids = [job.id for job in jobs]
            if len(set(ids)) != len(ids) or any(job_id in self._jobs for job_id in ids):
                raise ValidationError("Duplicate job id")
            for job in jobs:
                self._jobs[job.id] = job.model_copy(deep=True)
                self._order[job.id] = next(self._sequence)

    async def claim_batch(self, status: JobStatus = JobStatus.PENDING, limit: int = 5) -> List[J]:
        async with self._lock:
            matching = [job for job in self._jobs.values() if job.status == status]
            # Insertion order breaks created_at ties
            matching.sort(key=lambda job: (job.created_at, self._order[job.id]))
            return [job.model_copy(deep=True) for job in matching[:limit]]

    async def mark_processing(self, ids: Sequence[str]) -> List[str]:
        flipped = []
        async with self._lock:
            for job_id in ids:
                job = self._jobs.get(job_id)
                if job is not None and job.status == JobStatus.PENDING:
                    job.mark_processing()
                    flipped.append(job_id)
        return flipped

    async def resolve(
        self,
        job_id: str,
        outcome: ResolveOutcome,
        error: Optional[str] = None,
    ) -> Optional[J]:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning(f"Resolve for unknown job {job_id}")
                return None
            if job.status != JobStatus.PROCESSING:
                logger.warning(
                    f"Ignoring resolve({outcome.value}) for job {job_id} in status {job.status.value}"
                )
                return None
            job.apply_outcome(outcome, error)
            return job.model_copy(deep=True)

    async def get(self, job_id: str) -> Optional[J]:
        async with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job is not None else None

    async def count_by_status(self) -> Dict[str, int]:
        counts = empty_status_counts()
        async with self._lock:
            for job in self._jobs.values():
                counts[job.status.value] += 1
        return counts

    async def requeue_stale(self, older_than: timedelta) -> List[str]:
        cutoff = utcnow() - older_than
        requeued = []
        async with self._lock:
            for job in self._jobs.values():
                if job.status == JobStatus.PROCESSING and job.updated_at < cutoff:
                    job.status = JobStatus.PENDING
                    job.updated_at = utcnow()
                    requeued.append(job.id)
        if requeued:
            logger.warning(f"Requeued {len(requeued)} stale {self.family.value} jobs")
        return requeued


__all__ = ["InMemoryJobQueueStore"]
