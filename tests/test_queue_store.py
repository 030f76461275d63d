# ============================================================================
# QUEUE STORE TESTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Tests - In-memory store claim protocol
# PURPOSE: Verify enqueue validation, FIFO claim, mark, resolve and sweep
# CREATED: 19 OCT 2026
# ============================================================================
"""
Queue Store Tests

Covers:
1. Enqueue validation (rejected jobs are never created)
2. FIFO claim ordering with created_at ties
3. claim-then-mark never hands one job to two cycles
4. Only processing jobs are resolvable; terminal jobs never change
5. Counts and stale requeue

Run with:
    pytest tests/test_queue_store.py -v
"""

import asyncio
from datetime import timedelta

import pytest

from core.contracts import JobStatus, ResolveOutcome, utcnow
from core.errors import ValidationError
from core.models import CertificateJob, EmailJob
from repositories import InMemoryJobQueueStore


def _simple(to="a@example.com", **kwargs):
    return EmailJob(recipient=to, job_type="SIMPLE", subject="Hi", html="<p>Hi</p>", **kwargs)


@pytest.fixture
def store():
    return InMemoryJobQueueStore(EmailJob)


# ============================================================================
# ENQUEUE
# ============================================================================


class TestEnqueue:
    def test_enqueue_returns_id(self, store):
        async def scenario():
            job_id = await store.enqueue(_simple())
            return job_id, await store.get(job_id)

        job_id, job = asyncio.run(scenario())
        assert job.id == job_id
        assert job.status == JobStatus.PENDING

    def test_enqueue_from_mapping(self, store):
        async def scenario():
            job_id = await store.enqueue({
                "to": "b@example.com",
                "type": "REGISTRATION",
                "data": {"event": {"title": "DevConf"}},
            })
            return await store.get(job_id)

        job = asyncio.run(scenario())
        assert job.recipient == "b@example.com"
        assert job.job_type == "REGISTRATION"

    def test_invalid_job_is_not_created(self, store):
        async def scenario():
            with pytest.raises(ValidationError):
                await store.enqueue({"to": "a@example.com", "type": "REGISTRATION", "data": {}})
            return await store.count_by_status()

        counts = asyncio.run(scenario())
        assert sum(counts.values()) == 0

    def test_malformed_mapping_is_validation_error(self, store):
        with pytest.raises(ValidationError):
            asyncio.run(store.enqueue({"to": "a@example.com", "attempts": -1}))

    def test_new_jobs_must_be_pending(self, store):
        job = _simple()
        job.status = JobStatus.COMPLETED
        with pytest.raises(ValidationError):
            asyncio.run(store.enqueue(job))

    def test_wrong_family_rejected(self, store):
        cert = CertificateJob(
            registration_ref="r", event_ref="e", user_name="A", user_email="a@example.com",
        )
        with pytest.raises(ValidationError):
            asyncio.run(store.enqueue(cert))

    def test_enqueue_many_is_all_or_nothing(self, store):
        async def scenario():
            bad = EmailJob(recipient="c@example.com", job_type="NEW_EVENT", payload={})
            with pytest.raises(ValidationError):
                await store.enqueue_many([_simple(), bad])
            return await store.count_by_status()

        assert asyncio.run(scenario())["pending"] == 0

    def test_duplicate_id_rejected(self, store):
        async def scenario():
            job = _simple()
            await store.enqueue(job)
            with pytest.raises(ValidationError):
                await store.enqueue(job.model_copy())

        asyncio.run(scenario())


# ============================================================================
# CLAIM / MARK
# ============================================================================


class TestClaim:
    def test_fifo_by_created_at(self, store):
        async def scenario():
            now = utcnow()
            newest = _simple(to="new@example.com", created_at=now)
            oldest = _simple(to="old@example.com", created_at=now - timedelta(minutes=5))
            middle = _simple(to="mid@example.com", created_at=now - timedelta(minutes=1))
            await store.enqueue_many([newest, oldest, middle])
            return await store.claim_batch(limit=5)

        claimed = asyncio.run(scenario())
        assert [j.recipient for j in claimed] == ["old@example.com", "mid@example.com", "new@example.com"]

    def test_ties_keep_insertion_order(self, store):
        async def scenario():
            now = utcnow()
            jobs = [_simple(to=f"{i}@example.com", created_at=now) for i in range(4)]
            await store.enqueue_many(jobs)
            return await store.claim_batch(limit=5)

        claimed = asyncio.run(scenario())
        assert [j.recipient for j in claimed] == [f"{i}@example.com" for i in range(4)]

    def test_limit(self, store):
        async def scenario():
            await store.enqueue_many([_simple() for _ in range(7)])
            return await store.claim_batch(limit=5)

        assert len(asyncio.run(scenario())) == 5

    def test_claim_does_not_change_status(self, store):
        async def scenario():
            job_id = await store.enqueue(_simple())
            await store.claim_batch()
            return await store.get(job_id)

        assert asyncio.run(scenario()).status == JobStatus.PENDING

    def test_mark_flips_only_pending(self, store):
        async def scenario():
            await store.enqueue_many([_simple() for _ in range(3)])
            first = await store.claim_batch()
            second = await store.claim_batch()
            flipped_first = await store.mark_processing([j.id for j in first])
            flipped_second = await store.mark_processing([j.id for j in second])
            return first, flipped_first, flipped_second

        first, flipped_first, flipped_second = asyncio.run(scenario())
        assert flipped_first == [j.id for j in first]
        assert flipped_second == []

    def test_mark_unknown_id(self, store):
        assert asyncio.run(store.mark_processing(["missing"])) == []


# ============================================================================
# RESOLVE
# ============================================================================


class TestResolve:
    def _processing(self, store):
        async def setup():
            job_id = await store.enqueue(_simple())
            await store.mark_processing([job_id])
            return job_id
        return setup()

    def test_complete(self, store):
        async def scenario():
            job_id = await self._processing(store)
            return await store.resolve(job_id, ResolveOutcome.COMPLETED)

        job = asyncio.run(scenario())
        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 0

    def test_retry_returns_to_pending(self, store):
        async def scenario():
            job_id = await self._processing(store)
            return await store.resolve(job_id, ResolveOutcome.RETRY, "timeout")

        job = asyncio.run(scenario())
        assert job.status == JobStatus.PENDING
        assert job.attempts == 1
        assert job.last_error == "timeout"

    def test_terminal_job_not_mutated(self, store):
        async def scenario():
            job_id = await self._processing(store)
            await store.resolve(job_id, ResolveOutcome.FAILED, "first")
            again = await store.resolve(job_id, ResolveOutcome.COMPLETED)
            return again, await store.get(job_id)

        again, job = asyncio.run(scenario())
        assert again is None
        assert job.status == JobStatus.FAILED
        assert job.last_error == "first"
        assert job.attempts == 1

    def test_pending_job_not_resolvable(self, store):
        async def scenario():
            job_id = await store.enqueue(_simple())
            return await store.resolve(job_id, ResolveOutcome.COMPLETED)

        assert asyncio.run(scenario()) is None

    def test_returned_jobs_are_copies(self, store):
        async def scenario():
            job_id = await store.enqueue(_simple())
            claimed = (await store.claim_batch())[0]
            claimed.status = JobStatus.FAILED
            return await store.get(job_id)

        assert asyncio.run(scenario()).status == JobStatus.PENDING


# ============================================================================
# COUNTS / STALE SWEEP
# ============================================================================


class TestMaintenance:
    def test_counts_include_every_status(self, store):
        async def scenario():
            ids = await store.enqueue_many([_simple() for _ in range(3)])
            await store.mark_processing(ids[:2])
            await store.resolve(ids[0], ResolveOutcome.COMPLETED)
            return await store.count_by_status()

        assert asyncio.run(scenario()) == {"pending": 1, "processing": 1, "completed": 1, "failed": 0}

    def test_requeue_stale(self, store):
        async def scenario():
            job_id = await store.enqueue(_simple())
            await store.mark_processing([job_id])
            untouched = await store.requeue_stale(timedelta(minutes=10))
            store._jobs[job_id].updated_at = utcnow() - timedelta(minutes=30)
            requeued = await store.requeue_stale(timedelta(minutes=10))
            return untouched, requeued, await store.get(job_id)

        untouched, requeued, job = asyncio.run(scenario())
        assert untouched == []
        assert requeued == [job.id]
        assert job.status == JobStatus.PENDING
        assert job.attempts == 0

    def test_ping(self, store):
        assert asyncio.run(store.ping()) is True
