# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import EmailJobType, JobFamily, JobStatus, ResolveOutcome
from core.errors import (
    GenerationError,
    JobQueueError,
    RenderError,
    TransportError,
    ValidationError,
)
from core.models import CertificateJob, EmailJob

__all__ = [
    # Enums
    "JobStatus",
    "JobFamily",
    "ResolveOutcome",
    "EmailJobType",
    # Errors
    "JobQueueError",
    "ValidationError",
    "RenderError",
    "GenerationError",
    "TransportError",
    # Models
    "EmailJob",
    "CertificateJob",
]
