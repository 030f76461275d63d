# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Model exports
# PURPOSE: Central export point for queue job models and payload snapshots
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Job models define SQL metadata via __sql_* ClassVar attributes for DDL
generation. Payload snapshots are typed views over the dicts stored on jobs.
"""

from core.models.payloads import (
    CertificateEmail,
    EmailContent,
    EventSnapshot,
    ExternalEventAlertEmail,
    NewEventEmail,
    ParticipationSnapshot,
    RegistrationEmail,
    RegistrationSnapshot,
    ReminderEmail,
    parse_email_content,
)
from core.models.email_job import EmailJob
from core.models.certificate_job import CertificateJob

QUEUE_MODELS = (EmailJob, CertificateJob)

__all__ = [
    # Jobs
    "EmailJob",
    "CertificateJob",
    "QUEUE_MODELS",
    # Snapshots
    "EventSnapshot",
    "RegistrationSnapshot",
    "ParticipationSnapshot",
    # Email content
    "EmailContent",
    "RegistrationEmail",
    "NewEventEmail",
    "ExternalEventAlertEmail",
    "CertificateEmail",
    "ReminderEmail",
    "parse_email_content",
]
