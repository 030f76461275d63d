# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: API - Queue inspection endpoints
# PURPOSE: Read-only view of queue depth, single jobs and worker loops
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

    GET /queues                        counts per status, both families
    GET /queues/{family}/jobs/{job_id} one job, payload omitted
    GET /workers                       loop stats and next reminder run

Mounted under /api/v1 by main.py.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException

from api.schemas import JobResponse, QueueCountsResponse, WorkerStatusResponse
from core.contracts import JobFamily
from repositories.queue_store import JobQueueStore
from worker.scheduler import WorkerHost

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# Set by the main app at startup

_stores: Dict[JobFamily, JobQueueStore] = {}
_host: Optional[WorkerHost] = None


def set_services(email_store: Optional[JobQueueStore], certificate_store: Optional[JobQueueStore],
                 host: Optional[WorkerHost]) -> None:
    """Set store and host instances for the routes."""
    global _host
    _stores.clear()
    if email_store is not None:
        _stores[JobFamily.EMAIL] = email_store
    if certificate_store is not None:
        _stores[JobFamily.CERTIFICATE] = certificate_store
    _host = host


def get_store(family: JobFamily) -> JobQueueStore:
    store = _stores.get(family)
    if store is None:
        raise HTTPException(500, "Queue stores not initialized")
    return store


# ============================================================================
# QUEUES
# ============================================================================

@router.get("/queues", response_model=QueueCountsResponse, tags=["Queues"])
async def queue_counts():
    """Job counts per status for every family."""
    return QueueCountsResponse(
        email=await get_store(JobFamily.EMAIL).count_by_status(),
        certificate=await get_store(JobFamily.CERTIFICATE).count_by_status(),
    )


@router.get("/queues/{family}/jobs/{job_id}", response_model=JobResponse, tags=["Queues"])
async def get_job(family: JobFamily, job_id: str):
    """Fetch one job by id."""
    job = await get_store(family).get(job_id)
    if job is None:
        raise HTTPException(404, f"{family.value} job not found: {job_id}")
    return JobResponse.from_job(job)


# ============================================================================
# WORKERS
# ============================================================================

@router.get("/workers", response_model=WorkerStatusResponse, tags=["Workers"])
async def worker_status():
    """Background loop state."""
    if _host is None:
        raise HTTPException(500, "Worker host not initialized")
    return WorkerStatusResponse(**_host.stats)


__all__ = ["router", "set_services"]
