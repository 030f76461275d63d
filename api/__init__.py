# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: API - FastAPI routes
# PURPOSE: HTTP surface for queue inspection
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the event job queue.
"""

from api.routes import router, set_services
from api.schemas import JobResponse, QueueCountsResponse, WorkerStatusResponse

__all__ = [
    "router",
    "set_services",
    "JobResponse",
    "QueueCountsResponse",
    "WorkerStatusResponse",
]
