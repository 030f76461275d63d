# ============================================================================
# POSTGRESQL JOB QUEUE STORE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Repository - Durable queue backend
# PURPOSE: Queue tables on PostgreSQL via psycopg3 async
# CREATED: 19 OCT 2026
# ============================================================================
"""
PostgreSQL Job Queue Store

One instance per queue table. Every state change is a single conditional
UPDATE, so the status guards hold even with several processes sharing the
table:

    mark_processing  ... WHERE id = ANY(ids) AND status = 'pending'
    resolve          ... WHERE id = %s AND status = 'processing'

Connections come from a shared pool, so rows are read through cursors
opened with dict_row; the connection's own row factory is left untouched.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import JobStatus, ResolveOutcome, truncate_error
from repositories.database import table_identifier
from repositories.queue_store import J, JobQueueStore, empty_status_counts

logger = logging.getLogger(__name__)


_OUTCOME_STATUS = {
    ResolveOutcome.COMPLETED: JobStatus.COMPLETED,
    ResolveOutcome.RETRY: JobStatus.PENDING,
    ResolveOutcome.FAILED: JobStatus.FAILED,
}


class PostgresJobQueueStore(JobQueueStore[J]):
    """Queue store backed by one PostgreSQL table."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        job_model: Type[J],
        schema_name: Optional[str] = None,
    ):
        super().__init__(job_model)
        self.pool = pool
        self.table = table_identifier(job_model, schema_name)
        self.columns = list(job_model.model_fields)

    def _row_to_job(self, row: Dict[str, Any]) -> J:
        return self.job_model.model_validate(row)

    def _job_to_params(self, job: J) -> Dict[str, Any]:
        params = {}
        for column in self.columns:
            value = getattr(job, column)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (dict, list)):
                value = Json(value)
            params[column] = value
        return params

    async def _insert(self, jobs: List[J]) -> None:
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            self.table,
            sql.SQL(", ").join(sql.Identifier(c) for c in self.columns),
            sql.SQL(", ").join(sql.Placeholder(c) for c in self.columns),
        )
        async with self.pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.executemany(query, [self._job_to_params(job) for job in jobs])

    async def claim_batch(self, status: JobStatus = JobStatus.PENDING, limit: int = 5) -> List[J]:
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    SELECT * FROM {}
                    WHERE status = %s
                    ORDER BY created_at ASC, id ASC
                    LIMIT %s
                    """).format(self.table),
                    (status.value, limit),
                )
                rows = await cur.fetchall()
        return [self._row_to_job(row) for row in rows]

    async def mark_processing(self, ids: Sequence[str]) -> List[str]:
        if not ids:
            return []
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    UPDATE {} SET status = %s, updated_at = NOW()
                    WHERE id = ANY(%s) AND status = %s
                    RETURNING id
                    """).format(self.table),
                    (JobStatus.PROCESSING.value, list(ids), JobStatus.PENDING.value),
                )
                flipped = {row["id"] for row in await cur.fetchall()}
        # Preserve claim order
        return [job_id for job_id in ids if job_id in flipped]

    async def resolve(
        self,
        job_id: str,
        outcome: ResolveOutcome,
        error: Optional[str] = None,
    ) -> Optional[J]:
        counts_as_attempt = outcome != ResolveOutcome.COMPLETED
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    UPDATE {} SET
                        status = %(status)s,
                        attempts = attempts + %(increment)s::int,
                        last_error = COALESCE(%(error)s::text, last_error),
                        updated_at = NOW()
                    WHERE id = %(id)s AND status = %(expected)s
                    RETURNING *
                    """).format(self.table),
                    {
                        "status": _OUTCOME_STATUS[outcome].value,
                        "increment": 1 if counts_as_attempt else 0,
                        "error": truncate_error(error) if counts_as_attempt else None,
                        "id": job_id,
                        "expected": JobStatus.PROCESSING.value,
                    },
                )
                row = await cur.fetchone()

        if row is None:
            logger.warning(f"Ignoring resolve({outcome.value}) for job {job_id}: not processing")
            return None
        return self._row_to_job(row)

    async def get(self, job_id: str) -> Optional[J]:
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = %s").format(self.table),
                    (job_id,),
                )
                row = await cur.fetchone()
        return self._row_to_job(row) if row is not None else None

    async def count_by_status(self) -> Dict[str, int]:
        counts = empty_status_counts()
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("SELECT status, COUNT(*) AS count FROM {} GROUP BY status").format(self.table)
                )
                for row in await cur.fetchall():
                    counts[row["status"]] = row["count"]
        return counts

    async def requeue_stale(self, older_than: timedelta) -> List[str]:
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    UPDATE {} SET status = %s, updated_at = NOW()
                    WHERE status = %s AND updated_at < NOW() - %s
                    RETURNING id
                    """).format(self.table),
                    (JobStatus.PENDING.value, JobStatus.PROCESSING.value, older_than),
                )
                requeued = [row["id"] for row in await cur.fetchall()]
        if requeued:
            logger.warning(f"Requeued {len(requeued)} stale {self.family.value} jobs")
        return requeued

    async def ping(self) -> bool:
        try:
            async with self.pool.connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"Queue database ping failed: {e}")
            return False


__all__ = ["PostgresJobQueueStore"]
