# ============================================================================
# JOB PRODUCER
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Service - Boundary between platform actions and the queues
# PURPOSE: Build payload snapshots and enqueue email / certificate jobs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Job Producer

Platform actions that result in mail:

    registration_confirmed    -> 1 REGISTRATION job (ticket attached later)
    event_announced           -> NEW_EVENT job per recipient
    external_event_announced  -> EXTERNAL_EVENT_ALERT job per recipient
    certificates_requested    -> CertificateJob per attendee

Every payload is a snapshot taken now. Editing the event afterwards does not
change mail that is already queued.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from core.contracts import EmailJobType
from core.errors import ValidationError
from core.models import CertificateJob, EmailJob
from core.models.payloads import EventSnapshot, RegistrationSnapshot
from repositories.event_repo import EventDirectory, Registrant
from repositories.queue_store import JobQueueStore

logger = logging.getLogger(__name__)


class Recipient(BaseModel):
    """A user an announcement is mailed to."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: str = Field(validation_alias=AliasChoices("email", "user_email", "userEmail"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "user_name", "userName"))


def _event(event: Union[EventSnapshot, Mapping[str, Any]]) -> EventSnapshot:
    if isinstance(event, EventSnapshot):
        return event
    return EventSnapshot.model_validate(dict(event))


def _event_link(client_url: str, section: str, event: EventSnapshot) -> str:
    if not event.id:
        raise ValidationError(f"Cannot link to event '{event.title}' without an id")
    return f"{client_url}/{section}/{event.id}"


def _recipients(recipients: Iterable[Union[Recipient, Mapping[str, Any]]]) -> List[Recipient]:
    result = []
    for recipient in recipients:
        if not isinstance(recipient, Recipient):
            recipient = Recipient.model_validate(dict(recipient))
        if recipient.email:
            result.append(recipient)
    return result


class JobProducer:
    """Enqueues jobs for platform actions."""

    def __init__(
        self,
        email_store: JobQueueStore[EmailJob],
        certificate_store: JobQueueStore[CertificateJob],
        client_url: str = "http://localhost:5173",
        directory: Optional[EventDirectory] = None,
    ):
        """
        Args:
            email_store: store for the email family
            certificate_store: store for the certificate family
            client_url: public site root used to build links in mail
            directory: user lookup for attendees registered without an account
        """
        self.email_store = email_store
        self.certificate_store = certificate_store
        self.client_url = client_url.rstrip("/")
        self.directory = directory

    async def registration_confirmed(
        self,
        registration: Union[RegistrationSnapshot, Mapping[str, Any]],
        event: Union[EventSnapshot, Mapping[str, Any]],
    ) -> str:
        """
        Queue the ticket email for a new registration.

        Returns:
            The email job id

        Raises:
            ValidationError: no attendee email or event title
        """
        if not isinstance(registration, RegistrationSnapshot):
            registration = RegistrationSnapshot.model_validate(dict(registration))
        event = _event(event)

        ticket_link = f"{self.client_url}/ticket/{registration.token_id}" if registration.token_id else None
        data = {
            "userName": registration.user_name,
            "event": {
                "title": event.title,
                "dateTime": event.date_time.isoformat() if event.date_time else None,
                "venue": event.venue,
            },
            "tokenId": registration.token_id,
            "ticketLink": ticket_link,
            "registrationId": registration.registration_id,
        }
        job_id = await self.email_store.enqueue(EmailJob(
            recipient=registration.user_email,
            job_type=EmailJobType.REGISTRATION.value,
            payload=data,
        ))
        logger.info(f"Ticket email queued for {registration.user_email}")
        return job_id

    async def event_announced(
        self,
        event: Union[EventSnapshot, Mapping[str, Any]],
        recipients: Iterable[Union[Recipient, Mapping[str, Any]]],
    ) -> List[str]:
        """
        Queue a NEW_EVENT email to every recipient.

        Raises:
            ValidationError: the event has no id to link to
        """
        event = _event(event)
        link = _event_link(self.client_url, "events", event)
        snapshot = event.model_copy(update={"link": link}).to_payload()
        return await self._announce(EmailJobType.NEW_EVENT, snapshot, recipients, event_link=link)

    async def external_event_announced(
        self,
        event: Union[EventSnapshot, Mapping[str, Any]],
        recipients: Iterable[Union[Recipient, Mapping[str, Any]]],
    ) -> List[str]:
        """Queue an EXTERNAL_EVENT_ALERT email to every recipient; the event needs an id."""
        event = _event(event)
        link = _event_link(self.client_url, "external-events", event)
        snapshot = event.model_copy(update={"link": link}).to_payload()
        return await self._announce(EmailJobType.EXTERNAL_EVENT_ALERT, snapshot, recipients)

    async def _announce(
        self,
        job_type: EmailJobType,
        snapshot: dict,
        recipients: Iterable[Union[Recipient, Mapping[str, Any]]],
        event_link: Optional[str] = None,
    ) -> List[str]:
        jobs = []
        for recipient in _recipients(recipients):
            data = {"userName": recipient.name, "event": dict(snapshot)}
            if event_link:
                data["eventLink"] = event_link
            jobs.append(EmailJob(recipient=recipient.email, job_type=job_type.value, payload=data))

        if not jobs:
            logger.info(f"No recipients for {job_type.value} '{snapshot.get('title')}'")
            return []
        return await self.email_store.enqueue_many(jobs)

    async def certificates_requested(
        self,
        event: Union[EventSnapshot, Mapping[str, Any]],
        attendees: Iterable[Union[Registrant, Mapping[str, Any]]],
    ) -> List[str]:
        """
        Queue one certificate per attendee.

        Attendees registered without an account are matched to a user by
        email when a directory is available; otherwise user_ref stays empty.

        Raises:
            ValidationError: no attendees, or an attendee lacks name or email
        """
        event = _event(event)
        attendees = [
            a if isinstance(a, Registrant) else Registrant.model_validate(dict(a))
            for a in attendees
        ]
        if not attendees:
            raise ValidationError("No attended registrations found for this event.")

        logger.info(f"Queueing certificates for {len(attendees)} attendees")
        snapshot = event.to_payload()
        jobs = []
        for attendee in attendees:
            user_ref = attendee.user_ref
            if not user_ref and self.directory is not None and attendee.user_email:
                user_ref = await self.directory.find_user_ref(attendee.user_email)
            jobs.append(CertificateJob(
                registration_ref=attendee.registration_id,
                event_ref=event.id,
                user_ref=user_ref,
                user_name=attendee.user_name,
                user_email=attendee.user_email,
                payload={"event": dict(snapshot)},
            ))
        return await self.certificate_store.enqueue_many(jobs)


__all__ = ["JobProducer", "Recipient"]
