# ============================================================================
# POSTGRESQL STORE TESTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Tests - SQL paths of the durable queue and event directory
# PURPOSE: Verify row handling on a pooled connection shared across calls
# CREATED: 19 OCT 2026
# ============================================================================
"""
PostgreSQL Store Tests

The pool below hands out one connection for every call, like a pool with
min_size=1 under light load. Like psycopg, a row factory assigned to the
connection stays there after it goes back to the pool, and cursors without
an explicit row factory inherit it. Each test chains several store calls on
that one connection.

Run with:
    pytest tests/test_postgres_store.py -v
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest
from psycopg.rows import dict_row, tuple_row
from psycopg.types.json import Json

from core.contracts import JobStatus, ResolveOutcome
from core.models import EmailJob
from repositories.event_repo import PostgresEventDirectory
from repositories.job_queue_repo import PostgresJobQueueStore


class FakeCursor:
    def __init__(self, conn, row_factory):
        self.conn = conn
        self.row_factory = row_factory or conn.row_factory
        self.rows = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def _shape(self, row):
        if self.row_factory is dict_row:
            return dict(row)
        return tuple(row.values())

    async def execute(self, query, params=None):
        self.conn.executed.append(params)
        self.rows = self.conn.results.pop(0) if self.conn.results else []
        return self

    async def executemany(self, query, params_seq):
        self.conn.executed.append(list(params_seq))

    async def fetchall(self):
        return [self._shape(row) for row in self.rows]

    async def fetchone(self):
        return self._shape(self.rows[0]) if self.rows else None


class FakeConnection:
    def __init__(self):
        self.row_factory = tuple_row
        self.results = []
        self.executed = []

    def cursor(self, row_factory=None):
        return FakeCursor(self, row_factory)

    async def execute(self, query, params=None):
        return await FakeCursor(self, None).execute(query, params)

    @asynccontextmanager
    async def transaction(self):
        yield


class FakePool:
    def __init__(self, fail=False):
        self.conn = FakeConnection()
        self.fail = fail

    @asynccontextmanager
    async def connection(self):
        if self.fail:
            raise OSError("connection refused")
        yield self.conn


def _row(job, **overrides):
    row = job.model_dump()
    row["status"] = job.status.value
    row.update(overrides)
    return row


def _simple(to="a@example.com"):
    return EmailJob(recipient=to, job_type="SIMPLE", subject="Hi", html="<p>Hi</p>")


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def store(pool):
    return PostgresJobQueueStore(pool, EmailJob, schema_name="eventq")


class TestPostgresJobQueueStore:
    def test_claim_then_mark_on_reused_connection(self, pool, store):
        first, second = _simple("a@example.com"), _simple("b@example.com")
        pool.conn.results = [
            [_row(first), _row(second)],
            [{"id": second.id}],
        ]

        async def scenario():
            claimed = await store.claim_batch(limit=5)
            marked = await store.mark_processing([job.id for job in claimed])
            return claimed, marked

        claimed, marked = asyncio.run(scenario())
        assert [job.recipient for job in claimed] == ["a@example.com", "b@example.com"]
        # Only the job still pending flips
        assert marked == [second.id]
        assert pool.conn.row_factory is tuple_row
        assert pool.conn.executed[0] == (JobStatus.PENDING.value, 5)

    def test_mark_preserves_claim_order(self, pool, store):
        pool.conn.results = [[{"id": "j2"}, {"id": "j1"}]]
        assert asyncio.run(store.mark_processing(["j1", "j2", "j3"])) == ["j1", "j2"]

    def test_mark_nothing(self, pool, store):
        assert asyncio.run(store.mark_processing([])) == []
        assert pool.conn.executed == []

    def test_counts_after_claim(self, pool, store):
        pool.conn.results = [
            [_row(_simple())],
            [{"status": "pending", "count": 3}, {"status": "failed", "count": 1}],
        ]

        async def scenario():
            await store.claim_batch()
            return await store.count_by_status()

        assert asyncio.run(scenario()) == {"pending": 3, "processing": 0, "completed": 0, "failed": 1}

    def test_resolve_retry(self, pool, store):
        job = _simple()
        pool.conn.results = [[_row(job, status="pending", attempts=1, last_error="relay down")]]

        resolved = asyncio.run(store.resolve(job.id, ResolveOutcome.RETRY, "relay down"))

        assert resolved.status == JobStatus.PENDING
        assert resolved.attempts == 1
        params = pool.conn.executed[0]
        assert params["increment"] == 1
        assert params["error"] == "relay down"
        assert params["expected"] == JobStatus.PROCESSING.value

    def test_resolve_completed_keeps_attempts(self, pool, store):
        job = _simple()
        pool.conn.results = [[_row(job, status="completed")]]

        resolved = asyncio.run(store.resolve(job.id, ResolveOutcome.COMPLETED, "ignored"))

        assert resolved.status == JobStatus.COMPLETED
        params = pool.conn.executed[0]
        assert params["increment"] == 0
        assert params["error"] is None

    def test_resolve_not_processing(self, pool, store):
        assert asyncio.run(store.resolve("missing", ResolveOutcome.FAILED, "x")) is None

    def test_get(self, pool, store):
        job = _simple()
        pool.conn.results = [[_row(job)], []]

        async def scenario():
            return await store.get(job.id), await store.get("missing")

        found, missing = asyncio.run(scenario())
        assert found.id == job.id
        assert missing is None

    def test_requeue_stale(self, pool, store):
        pool.conn.results = [[{"id": "j1"}, {"id": "j2"}]]

        requeued = asyncio.run(store.requeue_stale(timedelta(minutes=10)))

        assert requeued == ["j1", "j2"]
        assert pool.conn.executed[0][2] == timedelta(minutes=10)

    def test_enqueue_wraps_payload(self, pool, store):
        job = _simple()

        asyncio.run(store.enqueue(job))

        (params,) = pool.conn.executed[0]
        assert params["id"] == job.id
        assert params["status"] == "pending"
        assert isinstance(params["payload"], Json)

    def test_ping(self, store):
        assert asyncio.run(store.ping()) is True
        assert asyncio.run(PostgresJobQueueStore(FakePool(fail=True), EmailJob).ping()) is False


class TestPostgresEventDirectory:
    def test_lookups_share_one_connection(self, pool):
        directory = PostgresEventDirectory(pool, schema_name="platform")
        pool.conn.results = [
            [{
                "registration_id": "reg-1", "event_id": "evt-devconf", "user_ref": None,
                "user_name": "Asha", "user_email": "asha@example.com", "status": "registered",
            }],
            [{"id": "user-42"}],
            [],
        ]

        async def scenario():
            registrants = await directory.registrants("evt-devconf")
            found = await directory.find_user_ref("Asha@Example.com")
            missing = await directory.find_user_ref("nobody@example.com")
            return registrants, found, missing

        registrants, found, missing = asyncio.run(scenario())
        assert [r.user_email for r in registrants] == ["asha@example.com"]
        assert found == "user-42"
        assert missing is None
        assert pool.conn.row_factory is tuple_row

    def test_find_user_ref_without_email(self, pool):
        assert asyncio.run(PostgresEventDirectory(pool).find_user_ref("")) is None
        assert pool.conn.executed == []
