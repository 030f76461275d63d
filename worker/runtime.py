# ============================================================================
# RUNTIME WIRING
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Builds stores, transport, processors and host from config
# PURPOSE: One place that assembles the object graph for both entry points
# CREATED: 19 OCT 2026
# ============================================================================
"""
Runtime Wiring

build_runtime() turns a Defaults bundle into live objects:

    QUEUE_BACKEND=memory    in-memory stores and directory (local runs, tests)
    QUEUE_BACKEND=postgres  psycopg pool, PostgreSQL stores and directory;
                            AUTO_BOOTSTRAP_SCHEMA=true creates the tables

The caller owns the returned Runtime and must await close_runtime().
"""

import logging
from dataclasses import dataclass
from typing import Optional

from psycopg_pool import AsyncConnectionPool

from core.config.defaults import Defaults, get_defaults
from core.models import QUEUE_MODELS, CertificateJob, EmailJob
from documents import AssetLocator, SignatureFontSource
from mail import EmailRenderer, MailTransport, create_transport
from repositories import (
    EventDirectory,
    InMemoryEventDirectory,
    InMemoryJobQueueStore,
    JobQueueStore,
    PostgresEventDirectory,
    PostgresJobQueueStore,
    close_pool,
    ensure_schema,
    init_pool,
)
from services.producer_service import JobProducer
from worker.processor import CertificateQueueProcessor, EmailQueueProcessor
from worker.reminders import ReminderJob
from worker.scheduler import WorkerHost

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    defaults: Defaults
    email_store: JobQueueStore[EmailJob]
    certificate_store: JobQueueStore[CertificateJob]
    directory: EventDirectory
    transport: MailTransport
    producer: JobProducer
    host: WorkerHost
    pool: Optional[AsyncConnectionPool] = None


async def build_runtime(
    defaults: Optional[Defaults] = None,
    transport: Optional[MailTransport] = None,
) -> Runtime:
    """Assemble every component. Does not start the host."""
    defaults = defaults or get_defaults()
    backend = defaults.app.queue_backend

    pool = None
    if backend == "postgres":
        pool = await init_pool()
        if defaults.app.auto_bootstrap_schema:
            logger.info("Auto-bootstrap enabled, deploying queue schema...")
            await ensure_schema(pool, QUEUE_MODELS)
        email_store = PostgresJobQueueStore(pool, EmailJob)
        certificate_store = PostgresJobQueueStore(pool, CertificateJob)
        directory = PostgresEventDirectory(pool)
    elif backend == "memory":
        email_store = InMemoryJobQueueStore(EmailJob)
        certificate_store = InMemoryJobQueueStore(CertificateJob)
        directory = InMemoryEventDirectory()
    else:
        raise ValueError(f"Unknown QUEUE_BACKEND: {backend}")

    docs = defaults.documents
    transport = transport or create_transport(defaults.mail)
    renderer = EmailRenderer(tz_name=docs.display_timezone, community_name=docs.community_name)
    assets = AssetLocator(docs.assets_dir)

    email_processor = EmailQueueProcessor(
        email_store, transport, renderer=renderer, assets=assets,
        settings=defaults.queue, documents=docs,
    )
    certificate_processor = CertificateQueueProcessor(
        certificate_store, transport, renderer=renderer, assets=assets,
        font_source=SignatureFontSource(docs.font_url, docs.font_timeout_seconds),
        settings=defaults.queue, documents=docs,
    )
    reminder_renderer = EmailRenderer(tz_name=defaults.reminders.timezone, community_name=docs.community_name)
    host = WorkerHost(
        email_processor,
        certificate_processor,
        reminder_job=ReminderJob(directory, transport, reminder_renderer, defaults.reminders.timezone),
        queue_settings=defaults.queue,
        reminder_settings=defaults.reminders,
    )
    producer = JobProducer(email_store, certificate_store, defaults.app.client_url, directory)

    logger.info(f"Runtime built (backend={backend}, transport={defaults.mail.transport})")
    return Runtime(
        defaults=defaults,
        email_store=email_store,
        certificate_store=certificate_store,
        directory=directory,
        transport=transport,
        producer=producer,
        host=host,
        pool=pool,
    )


async def close_runtime(runtime: Runtime) -> None:
    """Stop the host and release every resource."""
    await runtime.host.stop()
    await runtime.transport.close()
    await runtime.email_store.close()
    await runtime.certificate_store.close()
    if runtime.pool is not None:
        await close_pool()


__all__ = ["Runtime", "build_runtime", "close_runtime"]
