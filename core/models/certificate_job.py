# ============================================================================
# CERTIFICATE JOB MODEL
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core model - One queued certificate issuance
# PURPOSE: Persisted record the certificate processor claims and resolves
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: CertificateJob
# DEPENDENCIES: pydantic
# ============================================================================
"""
Certificate Job Model

One certificate for one attendee of one event. The payload carries an event
snapshot taken when the admin requested certificates, so the job still
renders if the event record is edited or deleted afterwards.

user_ref is optional: guest registrations have no user account.
"""

from typing import Any, ClassVar, Dict, List, Optional

from pydantic import AliasChoices, Field

from core.contracts import JobData, JobFamily
from core.errors import ValidationError
from core.models.payloads import EventSnapshot, Ref


class CertificateJob(JobData):
    """
    A queued certificate.

    Maps to: eventq.certificate_queue table
    """

    __sql_table__: ClassVar[str] = "certificate_queue"
    __sql_schema__: ClassVar[str] = "eventq"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_certificate_queue_status_created", ["status", "created_at"]),
        ("idx_certificate_queue_event_email", ["event_ref", "user_email"]),
    ]

    family: ClassVar[JobFamily] = JobFamily.CERTIFICATE
    job_type: ClassVar[str] = "CERTIFICATE"

    registration_ref: Ref = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("registration_ref", "registrationId"),
    )
    event_ref: Ref = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("event_ref", "eventId"),
    )
    user_ref: Ref = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("user_ref", "userId"),
    )
    user_name: Optional[str] = Field(
        default=None,
        max_length=200,
        validation_alias=AliasChoices("user_name", "userName"),
    )
    user_email: Optional[str] = Field(
        default=None,
        max_length=320,
        validation_alias=AliasChoices("user_email", "userEmail"),
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("payload", "data"),
        description="Event snapshot under the 'event' key",
    )

    @property
    def recipient(self) -> Optional[str]:
        return self.user_email

    def event_snapshot(self) -> Optional[EventSnapshot]:
        """The event captured at enqueue time, or None if absent."""
        event = self.payload.get("event")
        if not isinstance(event, dict) or not event:
            return None
        return EventSnapshot.model_validate(event)

    def validate_for_enqueue(self) -> None:
        """
        Check required references.

        Raises:
            ValidationError: job must not be created
        """
        missing = [
            name for name in ("event_ref", "registration_ref", "user_email", "user_name")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValidationError(f"Certificate job missing required fields: {', '.join(missing)}")


__all__ = ["CertificateJob"]
