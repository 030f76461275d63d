# ============================================================================
# EMAIL JOB MODEL
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core model - One queued transactional email
# PURPOSE: Persisted record the email processor claims and resolves
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EmailJob
# DEPENDENCIES: pydantic
# ============================================================================
"""
Email Job Model

An EmailJob is one email to one recipient. The processor renders its HTML
from `job_type` + `payload` at send time; producers never store rendered
HTML except for SIMPLE jobs, which carry their own subject and body.
"""

from typing import Any, ClassVar, Dict, List, Optional

from pydantic import AliasChoices, Field

from core.contracts import EmailJobType, JobData, JobFamily
from core.errors import ValidationError


class EmailJob(JobData):
    """
    A queued email.

    Maps to: eventq.email_queue table
    """

    # =========================================================================
    # SQL DDL METADATA (Used by PydanticToSQL generator)
    # =========================================================================
    __sql_table__: ClassVar[str] = "email_queue"
    __sql_schema__: ClassVar[str] = "eventq"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_email_queue_status_created", ["status", "created_at"]),
    ]

    family: ClassVar[JobFamily] = JobFamily.EMAIL

    recipient: Optional[str] = Field(
        default=None,
        max_length=320,
        validation_alias=AliasChoices("recipient", "to"),
        description="Recipient address",
    )
    job_type: str = Field(
        default=EmailJobType.SIMPLE.value,
        max_length=50,
        validation_alias=AliasChoices("job_type", "type"),
        description="Selects the email template",
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("payload", "data"),
        description="Snapshot captured at enqueue time",
    )
    subject: Optional[str] = Field(default=None, max_length=998)
    html: Optional[str] = None

    def validate_for_enqueue(self) -> None:
        """
        Check the fields the declared job type needs.

        Raises:
            ValidationError: job must not be created
        """
        if not (self.recipient or "").strip():
            raise ValidationError("Email job requires a recipient address")

        event = self.payload.get("event")
        if self.job_type == EmailJobType.REGISTRATION.value:
            if not isinstance(event, dict) or not event.get("title"):
                raise ValidationError("REGISTRATION job requires payload.event.title")
        elif self.job_type in (EmailJobType.NEW_EVENT.value, EmailJobType.EXTERNAL_EVENT_ALERT.value):
            if not isinstance(event, dict) or not event:
                raise ValidationError(f"{self.job_type} job requires payload.event")
        elif self.job_type == EmailJobType.SIMPLE.value:
            if not self.html:
                raise ValidationError("SIMPLE job requires html")


__all__ = ["EmailJob"]
