# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Errors raised at enqueue time and inside a job's execution
# CREATED: 19 OCT 2026
# ============================================================================
"""
Job queue errors.

ValidationError is raised at enqueue and means the job was never created.
The other three are raised while a processor executes a job; the processor
catches them per job and converts them into a retry or a terminal failure.
"""


class JobQueueError(Exception):
    """Base exception for the job queue."""
    pass


class ValidationError(JobQueueError):
    """Enqueue rejected: a field required for the declared job type is missing."""
    pass


class RenderError(JobQueueError):
    """Email content could not be rendered (unknown type, missing template data)."""
    pass


class GenerationError(JobQueueError):
    """PDF rendering failed on a required input."""
    pass


class TransportError(JobQueueError):
    """Outbound mail could not be delivered."""
    pass


__all__ = [
    "JobQueueError",
    "ValidationError",
    "RenderError",
    "GenerationError",
    "TransportError",
]
