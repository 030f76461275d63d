# ============================================================================
# EMAIL RENDERER
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Mail - Job type + payload -> subject and HTML
# PURPOSE: One Jinja2 template per email kind
# CREATED: 19 OCT 2026
# ============================================================================
"""
Email Renderer

render_email(job_type, payload, subject=None, html=None) -> RenderedEmail

Templated kinds (REGISTRATION, NEW_EVENT, EXTERNAL_EVENT_ALERT, CERTIFICATE,
REMINDER) parse the payload into their typed variant and render the matching
template. An explicit subject overrides the generated one.

Any other kind (SIMPLE, or a type this renderer does not know) is sent only
if the job already carries both subject and html; otherwise RenderError, so a
job never goes out blank.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, get_args

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape
from pydantic import ValidationError as PydanticValidationError

from core.contracts import utcnow
from core.errors import RenderError
from core.formatting import (
    DEFAULT_DISPLAY_TIMEZONE,
    format_event_datetime,
    format_long_date,
    format_time,
)
from core.models.payloads import (
    TEMPLATED_KINDS,
    CertificateEmail,
    EmailContent,
    EventSnapshot,
    ExternalEventAlertEmail,
    NewEventEmail,
    RegistrationEmail,
    ReminderEmail,
    parse_email_content,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class RenderedEmail:
    """Rendered message content."""
    subject: str
    html: str
    text: Optional[str] = None


def build_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,  # Fail on undefined variables
        trim_blocks=True,
        lstrip_blocks=True,
    )


class EmailRenderer:
    """Renders each email kind from its typed payload."""

    def __init__(
        self,
        tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
        community_name: str = "CodeBuilders Community",
        team_name: str = "CodeBuilders Team",
        env: Optional[Environment] = None,
    ):
        self.tz_name = tz_name
        self.community_name = community_name
        self.team_name = team_name
        self.env = env or build_environment()

    # =========================================================================
    # PUBLIC
    # =========================================================================

    def render(
        self,
        job_type: str,
        payload: Optional[Mapping[str, Any]],
        subject: Optional[str] = None,
        html: Optional[str] = None,
    ) -> RenderedEmail:
        """
        Raises:
            RenderError: unknown kind without explicit content, or missing template data
        """
        if job_type not in TEMPLATED_KINDS:
            if subject and html:
                return RenderedEmail(subject=subject, html=html)
            if not html:
                raise RenderError("No HTML content available for email")
            raise RenderError(f"No subject available for {job_type} email")

        try:
            content = parse_email_content(job_type, dict(payload or {}))
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise RenderError(f"Missing template data for {job_type}: {fields}") from e

        try:
            rendered = getattr(self, _BUILDERS[type(content)])(content)
        except TemplateError as e:
            raise RenderError(f"Template error for {job_type}: {e}") from e

        if subject:
            rendered = replace(rendered, subject=subject)
        return rendered

    # =========================================================================
    # BUILDERS
    # =========================================================================

    def _page(self, template: str, subject: str, accent: str, **context) -> str:
        return self.env.get_template(template).render(
            subject=subject,
            accent=accent,
            year=utcnow().year,
            community_name=self.community_name,
            team_name=self.team_name,
            **context,
        )

    @staticmethod
    def _event_view(event: EventSnapshot) -> Dict[str, Any]:
        return {"title": event.title or "Upcoming event", "link": event.link}

    def _registration(self, content: RegistrationEmail) -> RenderedEmail:
        title = content.event.title
        if not title:
            raise RenderError("Missing event title in job data")
        subject = f"Your Ticket: {title}"
        when = format_event_datetime(content.event.date_time, self.tz_name)
        venue = content.event.venue or "Venue TBD"
        html = self._page(
            "registration.html", subject, "#3730a3",
            user_name=content.user_name,
            event=self._event_view(content.event),
            when=when,
            venue=venue,
            token_id=content.token_id,
            ticket_link=content.ticket_link,
        )
        text = f"Hi {content.user_name}, you are registered for {title} on {when} at {venue}. Token: {content.token_id or 'N/A'}."
        return RenderedEmail(subject, html, text)

    def _new_event(self, content: NewEventEmail) -> RenderedEmail:
        event = self._event_view(content.event)
        subject = f"New Event: {event['title']}"
        when = format_long_date(content.event.date_time, self.tz_name)
        venue = content.event.venue or "Venue TBD"
        html = self._page(
            "new_event.html", subject, "#2563eb",
            user_name=content.user_name,
            event=event,
            when=when,
            venue=venue,
            event_link=content.event_link,
        )
        text = f"Hi {content.user_name}, we just announced {event['title']} on {when} at {venue}."
        return RenderedEmail(subject, html, text)

    def _external_event(self, content: ExternalEventAlertEmail) -> RenderedEmail:
        event = self._event_view(content.event)
        subject = f"New Opportunity: {event['title']}"
        when = format_long_date(content.event.date_time, self.tz_name)
        venue = content.event.venue or "Online"
        html = self._page(
            "external_event.html", subject, "#0f172a",
            user_name=content.user_name,
            event=event,
            when=when,
            venue=venue,
        )
        text = f"Hi {content.user_name}, new opportunity: {event['title']} on {when} ({venue})."
        return RenderedEmail(subject, html, text)

    def _certificate(self, content: CertificateEmail) -> RenderedEmail:
        event = self._event_view(content.event)
        subject = f"Your Certificate for {event['title']}"
        html = self._page(
            "certificate.html", subject, "#3b82f6",
            user_name=content.user_name,
            event=event,
        )
        return RenderedEmail(subject, html, "Thank you for participating! Your certificate is attached.")

    def _reminder(self, content: ReminderEmail) -> RenderedEmail:
        event = self._event_view(content.event)
        subject = f"Reminder: {event['title']} is Tomorrow!"
        venue = content.event.venue or "Venue TBD"
        if content.event.start_time:
            start_time = content.event.start_time
        elif content.event.date_time is not None:
            start_time = format_time(content.event.date_time, self.tz_name)
        else:
            start_time = "TBA"
        html = self._page(
            "reminder.html", subject, "#3b82f6",
            user_name=content.user_name,
            event=event,
            venue=venue,
            start_time=start_time,
        )
        text = f"Hi {content.user_name}, reminder for {event['title']} at {venue} tomorrow at {start_time}."
        return RenderedEmail(subject, html, text)


_BUILDERS: Dict[type, str] = {
    RegistrationEmail: "_registration",
    NewEventEmail: "_new_event",
    ExternalEventAlertEmail: "_external_event",
    CertificateEmail: "_certificate",
    ReminderEmail: "_reminder",
}

# Every tagged variant needs a builder
_missing_builders = set(get_args(get_args(EmailContent)[0])) - set(_BUILDERS)
if _missing_builders:
    raise RuntimeError(f"EmailRenderer has no builder for {sorted(v.__name__ for v in _missing_builders)}")

_default_renderer: Optional[EmailRenderer] = None


def render_email(
    job_type: str,
    payload: Optional[Mapping[str, Any]],
    subject: Optional[str] = None,
    html: Optional[str] = None,
) -> RenderedEmail:
    """Render with a process-wide default renderer."""
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = EmailRenderer()
    return _default_renderer.render(job_type, payload, subject=subject, html=html)


__all__ = ["RenderedEmail", "EmailRenderer", "build_environment", "render_email"]
