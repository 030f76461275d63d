# ============================================================================
# JOB QUEUE STORE INTERFACE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - Persistence contract shared by every queue backend
# PURPOSE: Enqueue, claim, mark, resolve for one job family
# CREATED: 19 OCT 2026
# ============================================================================
"""
Job Queue Store

One store instance serves one job family (one table). Processors receive the
store by injection; there is no module-level singleton.

Claim protocol:
    1. claim_batch() reads up to N pending jobs, oldest first
    2. mark_processing() flips exactly those ids pending -> processing in one
       conditional update and reports which ids it actually flipped
    3. resolve() moves each processing job to completed, pending or failed

Only jobs in `processing` are resolvable, so a terminal job is never mutated.

Validation happens here, before any backend insert, so a rejected job is
never created.
"""

import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from core.contracts import JobData, JobFamily, JobStatus, ResolveOutcome
from core.errors import ValidationError

logger = logging.getLogger(__name__)

J = TypeVar("J", bound=JobData)


class JobQueueStore(ABC, Generic[J]):
    """Abstract persistence for one job family."""

    def __init__(self, job_model: Type[J]):
        self.job_model = job_model

    @property
    def family(self) -> JobFamily:
        return self.job_model.family

    # =========================================================================
    # ENQUEUE
    # =========================================================================

    def _prepare(self, job: Union[J, Mapping[str, Any]]) -> J:
        """Coerce and validate one job for insertion."""
        if isinstance(job, Mapping):
            try:
                job = self.job_model.model_validate(dict(job))
            except PydanticValidationError as e:
                raise ValidationError(f"Malformed {self.family.value} job: {e.errors()[0]['msg']}") from e
        elif not isinstance(job, self.job_model):
            raise ValidationError(
                f"Expected {self.job_model.__name__}, got {type(job).__name__}"
            )

        if job.status != JobStatus.PENDING or job.attempts != 0:
            raise ValidationError("New jobs must be pending with zero attempts")

        job.validate_for_enqueue()
        return job

    async def enqueue(self, job: Union[J, Mapping[str, Any]]) -> str:
        """
        Validate and insert one job.

        Returns:
            The job id

        Raises:
            ValidationError: required fields missing, nothing inserted
        """
        prepared = self._prepare(job)
        await self._insert([prepared])
        logger.info(f"Enqueued {self.family.value} job {prepared.id} ({prepared.job_type})")
        return prepared.id

    async def enqueue_many(self, jobs: Sequence[Union[J, Mapping[str, Any]]]) -> List[str]:
        """
        Validate every job, then insert them together.

        One invalid job rejects the whole batch.
        """
        prepared = [self._prepare(job) for job in jobs]
        if not prepared:
            return []
        await self._insert(prepared)
        logger.info(f"Enqueued {len(prepared)} {self.family.value} jobs")
        return [job.id for job in prepared]

    @abstractmethod
    async def _insert(self, jobs: List[J]) -> None:
        """Persist already-validated jobs."""

    # =========================================================================
    # CLAIM / MARK / RESOLVE
    # =========================================================================

    @abstractmethod
    async def claim_batch(self, status: JobStatus = JobStatus.PENDING, limit: int = 5) -> List[J]:
        """Read up to `limit` jobs in `status`, ordered by created_at ascending."""

    @abstractmethod
    async def mark_processing(self, ids: Sequence[str]) -> List[str]:
        """Flip pending -> processing for `ids`; return the ids actually flipped."""

    @abstractmethod
    async def resolve(
        self,
        job_id: str,
        outcome: ResolveOutcome,
        error: Optional[str] = None,
    ) -> Optional[J]:
        """
        Resolve a processing job.

        Returns:
            The updated job, or None if the job is missing or not processing
        """

    # =========================================================================
    # READ HELPERS / RECOVERY
    # =========================================================================

    @abstractmethod
    async def get(self, job_id: str) -> Optional[J]:
        """Fetch one job by id."""

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        """Job counts keyed by status value; every status is present."""

    @abstractmethod
    async def requeue_stale(self, older_than: timedelta) -> List[str]:
        """
        Return processing jobs not updated within `older_than` to pending.

        Does not count as an attempt.
        """

    async def ping(self) -> bool:
        """Backend reachability for readiness probes."""
        return True

    async def close(self) -> None:
        """Release backend resources."""


def empty_status_counts() -> Dict[str, int]:
    return {status.value: 0 for status in JobStatus}


__all__ = ["JobQueueStore", "empty_status_counts"]
