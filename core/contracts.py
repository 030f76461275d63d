# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Foundation - Core enums and base job contract
# PURPOSE: Status enums and the shared job record for both queue families
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: JobStatus, JobFamily, ResolveOutcome, EmailJobType, JobData
# DEPENDENCIES: enum, pydantic
# ============================================================================
"""
Base contracts for the job queue.

These define the fields every queued job carries regardless of family:
- SQL (PostgreSQL queue tables)
- In-memory store (tests, local development)
- Python (processor state machine)

Family-specific models (EmailJob, CertificateJob) inherit from JobData.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


MAX_ERROR_LENGTH = 2000


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


# ============================================================================
# STATUS ENUMS
# ============================================================================

class JobStatus(str, Enum):
    """
    Job lifecycle states.

    State transitions:
        PENDING -> PROCESSING -> COMPLETED
                              -> PENDING (retry)
                              -> FAILED
    """
    PENDING = "pending"          # Waiting to be claimed
    PROCESSING = "processing"    # Claimed by a processor cycle
    COMPLETED = "completed"      # Delivered
    FAILED = "failed"            # Retry ceiling reached

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobFamily(str, Enum):
    """Queue families. Each family has its own table, processor and loop."""
    EMAIL = "email"
    CERTIFICATE = "certificate"


class ResolveOutcome(str, Enum):
    """Outcome a processor applies to a claimed job."""
    COMPLETED = "completed"
    RETRY = "retry"
    FAILED = "failed"


class EmailJobType(str, Enum):
    """
    Email job types.

    Each type selects one template in the email renderer. SIMPLE jobs carry
    their own subject and html.
    """
    REGISTRATION = "REGISTRATION"
    NEW_EVENT = "NEW_EVENT"
    EXTERNAL_EVENT_ALERT = "EXTERNAL_EVENT_ALERT"
    SIMPLE = "SIMPLE"


# ============================================================================
# BASE JOB CONTRACT
# ============================================================================

class JobData(BaseModel):
    """
    Fields shared by every queued job.

    Only the store mutates these after creation. The in-memory store uses the
    transition helpers below; the PostgreSQL store applies the same rules in
    its UPDATE statements.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        max_length=36,
        description="Opaque job identifier, immutable",
    )
    status: JobStatus = Field(default=JobStatus.PENDING)
    attempts: int = Field(default=0, ge=0)
    last_error: Optional[str] = Field(default=None, max_length=MAX_ERROR_LENGTH)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if job is in a terminal state."""
        return self.status.is_terminal()

    def can_transition_to(self, new_status: JobStatus) -> bool:
        """
        Validate if a status transition is allowed.

        Valid transitions:
            PENDING -> PROCESSING
            PROCESSING -> COMPLETED, PENDING, FAILED
            COMPLETED, FAILED -> (none, terminal)
        """
        allowed = {
            JobStatus.PENDING: {JobStatus.PROCESSING},
            JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.PENDING, JobStatus.FAILED},
            JobStatus.COMPLETED: set(),
            JobStatus.FAILED: set(),
        }
        return new_status in allowed.get(self.status, set())

    def mark_processing(self) -> None:
        """Flip a pending job to processing."""
        if not self.can_transition_to(JobStatus.PROCESSING):
            raise ValueError(f"Cannot transition from {self.status.value} to processing")
        self.status = JobStatus.PROCESSING
        self.updated_at = utcnow()

    def apply_outcome(self, outcome: ResolveOutcome, error: Optional[str] = None) -> None:
        """
        Resolve a processing job.

        RETRY and FAILED both count as an attempt and record the error.
        """
        target = {
            ResolveOutcome.COMPLETED: JobStatus.COMPLETED,
            ResolveOutcome.RETRY: JobStatus.PENDING,
            ResolveOutcome.FAILED: JobStatus.FAILED,
        }[outcome]
        if not self.can_transition_to(target):
            raise ValueError(f"Cannot resolve {self.status.value} job as {outcome.value}")

        if outcome != ResolveOutcome.COMPLETED:
            self.attempts += 1
            self.last_error = truncate_error(error)
        self.status = target
        self.updated_at = utcnow()


def truncate_error(error: Optional[str]) -> str:
    """Normalize an error message for storage."""
    message = (error or "unknown error").strip() or "unknown error"
    return message[:MAX_ERROR_LENGTH]


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "JobStatus",
    "JobFamily",
    "ResolveOutcome",
    "EmailJobType",
    "JobData",
    "MAX_ERROR_LENGTH",
    "truncate_error",
    "utcnow",
]
