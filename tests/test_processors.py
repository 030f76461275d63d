# ============================================================================
# QUEUE PROCESSOR TESTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Tests - Email and certificate processing cycles
# PURPOSE: Verify attempt counting, batching, attachments and isolation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Queue Processor Tests

Covers:
1. Registration email end to end (ticket attached, subject, recipient)
2. N failures -> attempts N, failed exactly at the third
3. Always-failing transport -> failed after 3 cycles with last_error
4. 7 pending jobs, batch 5 -> 5 then 2
5. One bad job never aborts the batch
6. Jobs already flipped by another cycle are skipped
7. Certificate processor: PDF attachment, font fallback, missing event

Run with:
    pytest tests/test_processors.py -v
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from core.config.defaults import QueueDefaults
from core.contracts import JobStatus, ResolveOutcome
from core.models import CertificateJob, EmailJob
from repositories import InMemoryJobQueueStore
from worker.processor import CertificateQueueProcessor, CycleResult, EmailQueueProcessor


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def email_store():
    return InMemoryJobQueueStore(EmailJob)


@pytest.fixture
def certificate_store():
    return InMemoryJobQueueStore(CertificateJob)


@pytest.fixture
def email_processor(email_store, transport, assets, queue_settings, document_settings):
    return EmailQueueProcessor(
        email_store, transport, assets=assets, settings=queue_settings, documents=document_settings,
    )


@pytest.fixture
def certificate_processor(certificate_store, transport, assets, no_font, queue_settings, document_settings):
    return CertificateQueueProcessor(
        certificate_store, transport, assets=assets, font_source=no_font,
        settings=queue_settings, documents=document_settings,
    )


def registration_job(devconf_event, to="asha@example.com"):
    return EmailJob(
        recipient=to,
        job_type="REGISTRATION",
        payload={
            "userName": "Asha",
            "event": devconf_event,
            "tokenId": "TKN-123",
            "ticketLink": "http://localhost:5173/ticket/TKN-123",
            "registrationId": "reg-1",
        },
    )


def simple_job(to="ops@example.com"):
    return EmailJob(recipient=to, job_type="SIMPLE", subject="Ping", html="<p>Ping</p>")


def certificate_job(event, name="Asha Patel", email="asha@example.com"):
    return CertificateJob(
        registration_ref="reg-1",
        event_ref=event.get("id", "evt-1"),
        user_name=name,
        user_email=email,
        payload={"event": event},
    )


# ============================================================================
# EMAIL PROCESSOR
# ============================================================================


class TestEmailProcessor:
    def test_registration_scenario(self, email_store, email_processor, transport, devconf_event):
        async def scenario():
            job_id = await email_store.enqueue(registration_job(devconf_event))
            result = await email_processor.run_cycle()
            return result, await email_store.get(job_id)

        result, job = asyncio.run(scenario())

        assert result.completed == 1
        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 0
        assert len(transport.sent) == 1

        message = transport.sent[0]
        assert message.to == "asha@example.com"
        assert message.subject == "Your Ticket: DevConf 2025"
        assert "TKN-123" in message.html
        assert len(message.attachments) == 1
        attachment = message.attachments[0]
        assert attachment.filename == "DevConf_2025_Ticket.pdf"
        assert attachment.content_type == "application/pdf"
        assert attachment.content.startswith(b"%PDF")

    def test_simple_job_uses_stored_content(self, email_store, email_processor, transport):
        async def scenario():
            await email_store.enqueue(simple_job())
            return await email_processor.run_cycle()

        result = asyncio.run(scenario())
        assert result.completed == 1
        assert transport.sent[0].subject == "Ping"
        assert transport.sent[0].html == "<p>Ping</p>"
        assert transport.sent[0].attachments == []

    def test_empty_queue(self, email_processor, transport):
        result = asyncio.run(email_processor.run_cycle())
        assert result == CycleResult(family=email_processor.family)
        assert transport.attempts == 0

    def test_attempts_reach_failed_at_three(self, email_store, failing_transport, assets,
                                            queue_settings, document_settings):
        processor = EmailQueueProcessor(
            email_store, failing_transport, assets=assets,
            settings=queue_settings, documents=document_settings,
        )

        async def scenario():
            job_id = await email_store.enqueue(simple_job())
            snapshots = []
            for _ in range(4):
                await processor.run_cycle()
                snapshots.append(await email_store.get(job_id))
            return snapshots

        snapshots = asyncio.run(scenario())

        assert [s.attempts for s in snapshots] == [1, 2, 3, 3]
        assert [s.status for s in snapshots] == [
            JobStatus.PENDING, JobStatus.PENDING, JobStatus.FAILED, JobStatus.FAILED,
        ]
        assert snapshots[-1].last_error == "SMTP relay refused connection"
        # The fourth cycle found nothing to send
        assert failing_transport.attempts == 3

    def test_batch_of_five_then_two(self, email_store, email_processor, transport):
        async def scenario():
            await email_store.enqueue_many([simple_job(f"u{i}@example.com") for i in range(7)])
            first = await email_processor.run_cycle()
            second = await email_processor.run_cycle()
            return first, second

        first, second = asyncio.run(scenario())
        assert (first.claimed, first.completed) == (5, 5)
        assert (second.claimed, second.completed) == (2, 2)
        assert [m.to for m in transport.sent] == [f"u{i}@example.com" for i in range(7)]

    def test_one_failure_does_not_abort_batch(self, email_store, assets, queue_settings, document_settings):
        from conftest import RecordingTransport

        transport = RecordingTransport(fail_for={"bad@example.com"})
        processor = EmailQueueProcessor(
            email_store, transport, assets=assets, settings=queue_settings, documents=document_settings,
        )

        async def scenario():
            ids = await email_store.enqueue_many([
                simple_job("a@example.com"),
                simple_job("bad@example.com"),
                simple_job("c@example.com"),
            ])
            result = await processor.run_cycle()
            return result, [await email_store.get(i) for i in ids]

        result, jobs = asyncio.run(scenario())
        assert (result.completed, result.retried, result.failed) == (2, 1, 0)
        assert [j.status for j in jobs] == [JobStatus.COMPLETED, JobStatus.PENDING, JobStatus.COMPLETED]
        assert "bad@example.com" in jobs[1].last_error

    def test_render_error_counts_as_attempt(self, email_store, email_processor, transport):
        async def scenario():
            job_id = await email_store.enqueue(
                EmailJob(recipient="a@example.com", job_type="NEWSLETTER", payload={})
            )
            await email_processor.run_cycle()
            return await email_store.get(job_id)

        job = asyncio.run(scenario())
        assert job.status == JobStatus.PENDING
        assert job.attempts == 1
        assert job.last_error == "No HTML content available for email"
        assert transport.sent == []

    def test_jobs_taken_by_another_cycle_are_skipped(self, email_store, email_processor, transport):
        async def scenario():
            ids = await email_store.enqueue_many([simple_job("a@example.com"), simple_job("b@example.com")])
            real_mark = email_store.mark_processing

            async def racing_mark(claimed_ids):
                # Another cycle wins the first job between claim and mark
                await real_mark([ids[0]])
                return await real_mark(claimed_ids)

            with patch.object(email_store, "mark_processing", side_effect=racing_mark):
                return await email_processor.run_cycle()

        result = asyncio.run(scenario())
        assert result.claimed == 2
        assert result.skipped == 1
        assert result.completed == 1
        assert [m.to for m in transport.sent] == ["b@example.com"]

    def test_store_error_propagates(self, email_processor):
        email_processor.store.claim_batch = AsyncMock(side_effect=ConnectionError("db down"))
        with pytest.raises(ConnectionError):
            asyncio.run(email_processor.run_cycle())

    def test_custom_max_attempts(self, email_store, failing_transport, assets, document_settings):
        processor = EmailQueueProcessor(
            email_store, failing_transport, assets=assets,
            settings=QueueDefaults(max_attempts=1), documents=document_settings,
        )

        async def scenario():
            job_id = await email_store.enqueue(simple_job())
            result = await processor.run_cycle()
            return result, await email_store.get(job_id)

        result, job = asyncio.run(scenario())
        assert result.failed == 1
        assert job.status == JobStatus.FAILED


# ============================================================================
# CERTIFICATE PROCESSOR
# ============================================================================


class TestCertificateProcessor:
    def test_certificate_sent(self, certificate_store, certificate_processor, transport, devconf_event):
        async def scenario():
            job_id = await certificate_store.enqueue(certificate_job(devconf_event))
            result = await certificate_processor.run_cycle()
            return result, await certificate_store.get(job_id)

        result, job = asyncio.run(scenario())
        assert result.completed == 1
        assert job.status == JobStatus.COMPLETED

        message = transport.sent[0]
        assert message.to == "asha@example.com"
        assert message.subject == "Your Certificate for DevConf 2025"
        assert message.attachments[0].filename == "Certificate - Asha Patel.pdf"
        assert message.attachments[0].content.startswith(b"%PDF")

    def test_missing_event_snapshot_retries(self, certificate_store, certificate_processor, transport):
        async def scenario():
            job = CertificateJob(
                registration_ref="reg-1", event_ref="evt-1",
                user_name="Asha", user_email="asha@example.com", payload={},
            )
            job_id = await certificate_store.enqueue(job)
            await certificate_processor.run_cycle()
            return await certificate_store.get(job_id)

        job = asyncio.run(scenario())
        assert job.status == JobStatus.PENDING
        assert job.attempts == 1
        assert "event" in job.last_error
        assert transport.sent == []

    def test_inter_job_delay(self, certificate_store, transport, assets, no_font, document_settings, devconf_event):
        processor = CertificateQueueProcessor(
            certificate_store, transport, assets=assets, font_source=no_font,
            settings=QueueDefaults(certificate_inter_job_delay_seconds=0.25), documents=document_settings,
        )

        async def scenario():
            await certificate_store.enqueue_many([
                certificate_job(devconf_event, name="A", email="a@example.com"),
                certificate_job(devconf_event, name="B", email="b@example.com"),
            ])
            with patch("worker.processor.asyncio.sleep", new=AsyncMock()) as sleep:
                await processor.run_cycle()
            return sleep

        sleep = asyncio.run(scenario())
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    def test_font_fetch_failure_still_renders(self, certificate_store, transport, assets,
                                               queue_settings, document_settings, devconf_event):
        font_source = AsyncMock()
        font_source.get.return_value = None
        processor = CertificateQueueProcessor(
            certificate_store, transport, assets=assets, font_source=font_source,
            settings=queue_settings, documents=document_settings,
        )

        async def scenario():
            await certificate_store.enqueue(certificate_job(devconf_event))
            return await processor.run_cycle()

        assert asyncio.run(scenario()).completed == 1
        font_source.get.assert_awaited()

    def test_outcomes_recorded(self, certificate_store, failing_transport, assets, no_font,
                               queue_settings, document_settings, devconf_event):
        processor = CertificateQueueProcessor(
            certificate_store, failing_transport, assets=assets, font_source=no_font,
            settings=queue_settings, documents=document_settings,
        )

        async def scenario():
            await certificate_store.enqueue(certificate_job(devconf_event))
            return [await processor.run_cycle() for _ in range(3)]

        results = asyncio.run(scenario())
        assert [r.retried for r in results] == [1, 1, 0]
        assert results[-1].failed == 1


class TestCycleResult:
    def test_record(self):
        result = CycleResult(family=EmailJob.family)
        for outcome in (ResolveOutcome.COMPLETED, ResolveOutcome.RETRY, ResolveOutcome.FAILED, ResolveOutcome.COMPLETED):
            result.record(outcome)
        assert (result.completed, result.retried, result.failed) == (2, 1, 1)
        assert result.processed == 4
