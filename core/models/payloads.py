# ============================================================================
# PAYLOAD SNAPSHOTS
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core model - Denormalized data captured at enqueue time
# PURPOSE: Typed views over the open payload dict stored on each job
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EventSnapshot, RegistrationSnapshot, ParticipationSnapshot,
#          email content variants, parse_email_content
# DEPENDENCIES: pydantic
# ============================================================================
"""
Payload snapshots.

Jobs store their payload as a plain dict (camelCase keys, the shape producers
and the API already speak). Rendering parses that dict into one of the typed
variants below. Parsing is lenient about optional display fields: a missing
venue or an unparseable date degrades to a placeholder at render time rather
than failing the job.

Email content is a tagged union keyed on `kind`; the renderer dispatches on
the concrete variant class.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)


def _coerce_ref(value: Any) -> Any:
    """Accept numeric or ObjectId-like references as strings."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


Ref = Annotated[Optional[str], BeforeValidator(_coerce_ref)]


class _Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the camelCase dict stored on a job."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EventSnapshot(_Snapshot):
    """Event fields needed to render mail and documents."""

    id: Ref = Field(
        default=None,
        validation_alias=AliasChoices("id", "_id", "eventId", "event_id"),
    )
    title: Optional[str] = None
    date_time: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date_time", "dateTime", "date"),
        serialization_alias="dateTime",
    )
    venue: Optional[str] = None
    start_time: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("start_time", "startTime"),
        serialization_alias="startTime",
    )
    link: Optional[str] = None

    @field_validator("date_time", mode="wrap")
    @classmethod
    def lenient_date(cls, value, handler):
        # An unreadable date renders as "Date TBA" instead of failing the job
        if value in (None, ""):
            return None
        try:
            return handler(value)
        except ValueError:
            return None


class RegistrationSnapshot(_Snapshot):
    """Attendee fields printed on a ticket."""

    registration_id: Ref = Field(
        default=None,
        validation_alias=AliasChoices("registration_id", "registrationId", "id", "_id"),
        serialization_alias="registrationId",
    )
    user_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_name", "userName", "name"),
        serialization_alias="userName",
    )
    user_email: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_email", "userEmail", "email"),
        serialization_alias="userEmail",
    )
    phone: Optional[str] = None
    token_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("token_id", "tokenId"),
        serialization_alias="tokenId",
    )


class ParticipationSnapshot(_Snapshot):
    """The attendee a certificate is issued to."""

    user_name: str = Field(validation_alias=AliasChoices("user_name", "userName"))
    user_email: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_email", "userEmail"),
    )


# ============================================================================
# EMAIL CONTENT VARIANTS
# ============================================================================

class _EmailContent(_Snapshot):
    user_name: str = Field(
        default="there",
        validation_alias=AliasChoices("user_name", "userName"),
    )
    event: EventSnapshot

    @field_validator("user_name", mode="before")
    @classmethod
    def default_name(cls, value):
        return value or "there"


class RegistrationEmail(_EmailContent):
    kind: Literal["REGISTRATION"] = "REGISTRATION"
    token_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("token_id", "tokenId"))
    ticket_link: Optional[str] = Field(default=None, validation_alias=AliasChoices("ticket_link", "ticketLink"))
    registration_id: Ref = Field(
        default=None,
        validation_alias=AliasChoices("registration_id", "registrationId"),
    )


class NewEventEmail(_EmailContent):
    kind: Literal["NEW_EVENT"] = "NEW_EVENT"
    event_link: Optional[str] = Field(default=None, validation_alias=AliasChoices("event_link", "eventLink"))


class ExternalEventAlertEmail(_EmailContent):
    kind: Literal["EXTERNAL_EVENT_ALERT"] = "EXTERNAL_EVENT_ALERT"


class CertificateEmail(_EmailContent):
    kind: Literal["CERTIFICATE"] = "CERTIFICATE"


class ReminderEmail(_EmailContent):
    kind: Literal["REMINDER"] = "REMINDER"


EmailContent = Annotated[
    Union[
        RegistrationEmail,
        NewEventEmail,
        ExternalEventAlertEmail,
        CertificateEmail,
        ReminderEmail,
    ],
    Field(discriminator="kind"),
]

_email_content_adapter: TypeAdapter = TypeAdapter(EmailContent)

TEMPLATED_KINDS = frozenset(
    ("REGISTRATION", "NEW_EVENT", "EXTERNAL_EVENT_ALERT", "CERTIFICATE", "REMINDER")
)


def parse_email_content(kind: str, payload: Dict[str, Any]):
    """
    Parse a stored payload into its typed email variant.

    Raises pydantic.ValidationError when required template data is missing.
    """
    return _email_content_adapter.validate_python({**(payload or {}), "kind": kind})


__all__ = [
    "EventSnapshot",
    "RegistrationSnapshot",
    "ParticipationSnapshot",
    "RegistrationEmail",
    "NewEventEmail",
    "ExternalEventAlertEmail",
    "CertificateEmail",
    "ReminderEmail",
    "EmailContent",
    "TEMPLATED_KINDS",
    "parse_email_content",
]
