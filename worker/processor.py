# ============================================================================
# QUEUE PROCESSORS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - One cycle of claim, mark, execute, resolve
# PURPOSE: Drain a batch of email or certificate jobs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Queue Processors

One processor per job family. A cycle:

    1. claim_batch()      up to batch_size pending jobs, oldest first
    2. mark_processing()  flip exactly those ids, before any I/O
    3. for each flipped job, sequentially:
           build message -> transport.send -> resolve(completed)
       any exception     -> resolve(retry | failed, error)

A job fails terminally when its attempt count reaches max_attempts. One
job's failure never aborts the rest of the batch.

PDF rendering is synchronous ReportLab work, so it runs in a thread.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from core.config.defaults import DocumentDefaults, QueueDefaults
from core.contracts import EmailJobType, JobData, JobFamily, JobStatus, ResolveOutcome
from core.errors import GenerationError
from core.formatting import safe_filename_stem
from core.logging import log_context
from core.models import CertificateJob, EmailJob
from core.models.payloads import EventSnapshot, ParticipationSnapshot, RegistrationSnapshot
from documents import AssetLocator, SignatureFontSource, render_certificate, render_ticket
from mail import Attachment, EmailRenderer, MailTransport, OutboundMessage
from repositories.queue_store import JobQueueStore

logger = logging.getLogger(__name__)

J = TypeVar("J", bound=JobData)


@dataclass
class CycleResult:
    """Counts for one processor cycle."""
    family: JobFamily
    claimed: int = 0
    skipped: int = 0  # claimed but flipped by someone else first
    completed: int = 0
    retried: int = 0
    failed: int = 0
    job_ids: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.completed + self.retried + self.failed

    def record(self, outcome: ResolveOutcome) -> None:
        if outcome == ResolveOutcome.COMPLETED:
            self.completed += 1
        elif outcome == ResolveOutcome.RETRY:
            self.retried += 1
        else:
            self.failed += 1


class QueueProcessor(ABC, Generic[J]):
    """
    Base cycle for one job family.

    Subclasses build the outbound message for a job; everything else
    (claiming, attempt counting, resolution) lives here.
    """

    family: JobFamily

    def __init__(
        self,
        store: JobQueueStore[J],
        transport: MailTransport,
        settings: Optional[QueueDefaults] = None,
    ):
        self.store = store
        self.transport = transport
        self.settings = settings or QueueDefaults()

    @abstractmethod
    async def build_message(self, job: J) -> OutboundMessage:
        """Render everything the job sends. Raises on any missing input."""

    async def after_job(self, job: J) -> None:
        """Hook run after each job, success or failure."""

    async def run_cycle(self) -> CycleResult:
        """Process one batch. Store errors propagate to the caller."""
        result = CycleResult(family=self.family)

        jobs = await self.store.claim_batch(JobStatus.PENDING, limit=self.settings.batch_size)
        result.claimed = len(jobs)
        if not jobs:
            return result

        flipped = set(await self.store.mark_processing([job.id for job in jobs]))
        result.skipped = len(jobs) - len(flipped)
        logger.info(
            f"[{self.family.value}] Processing {len(flipped)} jobs"
            + (f" ({result.skipped} already taken)" if result.skipped else "")
        )

        for job in jobs:
            if job.id not in flipped:
                continue
            with log_context(job_id=job.id, family=self.family.value):
                outcome = await self.process_job(job)
            result.record(outcome)
            result.job_ids.append(job.id)
            await self.after_job(job)

        logger.info(
            f"[{self.family.value}] Cycle done: {result.completed} completed, "
            f"{result.retried} retried, {result.failed} failed"
        )
        return result

    async def process_job(self, job: J) -> ResolveOutcome:
        """Execute one processing job and resolve it."""
        try:
            message = await self.build_message(job)
            await self.transport.send(message)
        except Exception as e:
            error = str(e) or type(e).__name__
            attempts = job.attempts + 1
            outcome = ResolveOutcome.FAILED if attempts >= self.settings.max_attempts else ResolveOutcome.RETRY
            if outcome == ResolveOutcome.FAILED:
                logger.error(f"Job {job.id} failed permanently after {attempts} attempts: {error}")
            else:
                logger.warning(f"Job {job.id} attempt {attempts} failed, will retry: {error}")
            await self._resolve(job, outcome, error)
            return outcome

        await self._resolve(job, ResolveOutcome.COMPLETED)
        logger.info(f"Job {job.id} completed ({job.job_type} to {job.recipient})")
        return ResolveOutcome.COMPLETED

    async def _resolve(self, job: J, outcome: ResolveOutcome, error: Optional[str] = None) -> None:
        updated = await self.store.resolve(job.id, outcome, error)
        if updated is None:
            logger.warning(f"Job {job.id} was no longer processing; {outcome.value} not recorded")


class EmailQueueProcessor(QueueProcessor[EmailJob]):
    """Sends email jobs; REGISTRATION jobs carry the ticket PDF."""

    family = JobFamily.EMAIL

    def __init__(
        self,
        store: JobQueueStore[EmailJob],
        transport: MailTransport,
        renderer: Optional[EmailRenderer] = None,
        assets: Optional[AssetLocator] = None,
        settings: Optional[QueueDefaults] = None,
        documents: Optional[DocumentDefaults] = None,
    ):
        super().__init__(store, transport, settings)
        self.documents = documents or DocumentDefaults()
        self.renderer = renderer or EmailRenderer(
            tz_name=self.documents.display_timezone,
            community_name=self.documents.community_name,
        )
        self.assets = assets or AssetLocator(self.documents.assets_dir)

    async def build_message(self, job: EmailJob) -> OutboundMessage:
        rendered = self.renderer.render(job.job_type, job.payload, subject=job.subject, html=job.html)

        attachments = []
        if job.job_type == EmailJobType.REGISTRATION.value:
            attachments.append(await self._ticket_attachment(job))

        return OutboundMessage(
            to=job.recipient,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            attachments=attachments,
        )

    async def _ticket_attachment(self, job: EmailJob) -> Attachment:
        event = EventSnapshot.model_validate(job.payload.get("event") or {})
        if not event.title:
            raise GenerationError("Missing event title in job data")
        registration = RegistrationSnapshot.model_validate(job.payload)

        pdf = await asyncio.to_thread(
            render_ticket,
            registration,
            event,
            self.assets,
            self.documents.display_timezone,
            self.documents.community_name,
        )
        return Attachment(f"{safe_filename_stem(event.title)}_Ticket.pdf", pdf, "application/pdf")


class CertificateQueueProcessor(QueueProcessor[CertificateJob]):
    """Renders certificates and mails them to the attendee."""

    family = JobFamily.CERTIFICATE

    def __init__(
        self,
        store: JobQueueStore[CertificateJob],
        transport: MailTransport,
        renderer: Optional[EmailRenderer] = None,
        assets: Optional[AssetLocator] = None,
        font_source: Optional[SignatureFontSource] = None,
        settings: Optional[QueueDefaults] = None,
        documents: Optional[DocumentDefaults] = None,
    ):
        super().__init__(store, transport, settings)
        self.documents = documents or DocumentDefaults()
        self.renderer = renderer or EmailRenderer(
            tz_name=self.documents.display_timezone,
            community_name=self.documents.community_name,
        )
        self.assets = assets or AssetLocator(self.documents.assets_dir)
        self.font_source = font_source or SignatureFontSource(
            self.documents.font_url, self.documents.font_timeout_seconds
        )

    async def build_message(self, job: CertificateJob) -> OutboundMessage:
        event = job.event_snapshot()
        if event is None:
            raise GenerationError("Missing event data for certificate")

        font_bytes = await self.font_source.get()
        participation = ParticipationSnapshot(user_name=job.user_name, user_email=job.user_email)
        pdf = await asyncio.to_thread(
            render_certificate,
            participation,
            event,
            font_bytes,
            self.assets,
            self.documents,
        )

        rendered = self.renderer.render(
            "CERTIFICATE",
            {"userName": job.user_name, "event": event.to_payload()},
        )
        return OutboundMessage(
            to=job.user_email,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            attachments=[Attachment(f"Certificate - {job.user_name}.pdf", pdf, "application/pdf")],
        )

    async def after_job(self, job: CertificateJob) -> None:
        delay = self.settings.certificate_inter_job_delay_seconds
        if delay > 0:
            await asyncio.sleep(delay)


__all__ = [
    "CycleResult",
    "QueueProcessor",
    "EmailQueueProcessor",
    "CertificateQueueProcessor",
]
