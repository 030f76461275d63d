# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: API - Response schemas
# PURPOSE: Pydantic models for the queue inspection endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

Response models for the queue inspection API.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.contracts import JobData, JobFamily, JobStatus


class QueueCountsResponse(BaseModel):
    """Job counts per status for each family."""
    email: Dict[str, int] = Field(..., description="Counts keyed by status")
    certificate: Dict[str, int] = Field(..., description="Counts keyed by status")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": {"pending": 3, "processing": 0, "completed": 120, "failed": 1},
                    "certificate": {"pending": 0, "processing": 5, "completed": 48, "failed": 0},
                }
            ]
        }
    }


class JobResponse(BaseModel):
    """One queued job without its payload."""
    id: str
    family: JobFamily
    job_type: str
    recipient: Optional[str] = None
    status: JobStatus
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: JobData) -> "JobResponse":
        return cls(
            id=job.id,
            family=job.family,
            job_type=job.job_type,
            recipient=job.recipient,
            status=job.status,
            attempts=job.attempts,
            last_error=job.last_error,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class WorkerStatusResponse(BaseModel):
    """Background loop and reminder state."""
    loops: Dict[str, Dict[str, Any]]
    reminder_enabled: bool
    next_reminder_at: Optional[str] = None


__all__ = ["QueueCountsResponse", "JobResponse", "WorkerStatusResponse"]
