# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Data access layer
# PURPOSE: Queue stores, event directory and database pool
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Repository Layer

Queue stores (in-memory and PostgreSQL), the read-only event directory and
the psycopg connection pool.
"""

from repositories.database import (
    close_pool,
    ensure_schema,
    get_connection_string,
    get_pool,
    init_pool,
)
from repositories.event_repo import (
    EventDirectory,
    InMemoryEventDirectory,
    PostgresEventDirectory,
    Registrant,
)
from repositories.job_queue_repo import PostgresJobQueueStore
from repositories.memory_store import InMemoryJobQueueStore
from repositories.queue_store import JobQueueStore

__all__ = [
    # Database
    "init_pool",
    "get_pool",
    "close_pool",
    "ensure_schema",
    "get_connection_string",
    # Queue stores
    "JobQueueStore",
    "InMemoryJobQueueStore",
    "PostgresJobQueueStore",
    # Event directory
    "EventDirectory",
    "InMemoryEventDirectory",
    "PostgresEventDirectory",
    "Registrant",
]
