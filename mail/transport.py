# ============================================================================
# MAIL TRANSPORT
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Mail - Outbound delivery
# PURPOSE: Send one message to one recipient over SMTP (or to the console)
# CREATED: 19 OCT 2026
# ============================================================================
"""
Mail Transport

    transport.send(OutboundMessage(...)) -> None, raises TransportError

SmtpMailTransport delivers through aiosmtplib. ConsoleMailTransport logs the
message (and optionally writes a .eml copy) for local runs where no relay is
configured. Both build the same MIME message, so headers and attachments can
be inspected without an SMTP server.

Every message carries the sender identity, X-Priority: 3 and a
List-Unsubscribe mailto header.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from pathlib import Path
from typing import List, Optional

import aiosmtplib

from core.config.defaults import MailDefaults
from core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class OutboundMessage:
    to: str
    subject: str
    html: str
    text: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


def build_mime_message(message: OutboundMessage, settings: MailDefaults) -> EmailMessage:
    """Assemble the MIME message: text/html alternative plus attachments."""
    mime = EmailMessage()
    mime["From"] = formataddr((settings.from_name, settings.from_address))
    mime["To"] = message.to
    mime["Subject"] = message.subject
    mime["Message-ID"] = make_msgid(domain=settings.from_address.rpartition("@")[2] or None)
    mime["X-Priority"] = "3"
    if settings.unsubscribe_address:
        mime["List-Unsubscribe"] = f"<mailto:{settings.unsubscribe_address}>"

    mime.set_content(message.text or "This message requires an HTML-capable mail client.")
    mime.add_alternative(message.html, subtype="html")

    for attachment in message.attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        mime.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return mime


class MailTransport(ABC):
    """Sends one message to one recipient."""

    def __init__(self, settings: Optional[MailDefaults] = None):
        self.settings = settings or MailDefaults()

    @abstractmethod
    async def send(self, message: OutboundMessage) -> None:
        """Deliver or raise TransportError."""

    async def close(self) -> None:
        """Release connections."""


class SmtpMailTransport(MailTransport):
    """Delivery through an SMTP relay."""

    async def send(self, message: OutboundMessage) -> None:
        if not message.to:
            raise TransportError("Recipient address is empty")

        mime = build_mime_message(message, self.settings)
        s = self.settings
        try:
            await aiosmtplib.send(
                mime,
                hostname=s.smtp_host,
                port=s.smtp_port,
                username=s.smtp_username or None,
                password=s.smtp_password or None,
                use_tls=s.smtp_port == 465,  # Implicit TLS for port 465
                start_tls=s.smtp_start_tls if s.smtp_port != 465 else False,
                timeout=s.smtp_timeout_seconds,
            )
        except aiosmtplib.SMTPException as e:
            raise TransportError(f"SMTP delivery to {message.to} failed: {e}") from e
        except OSError as e:
            raise TransportError(f"SMTP connection to {s.smtp_host}:{s.smtp_port} failed: {e}") from e

        logger.info(f"Sent '{message.subject}' to {message.to} ({len(message.attachments)} attachments)")


class ConsoleMailTransport(MailTransport):
    """Logs messages instead of delivering them."""

    def __init__(self, settings: Optional[MailDefaults] = None):
        super().__init__(settings)
        self.output_dir = Path(self.settings.console_output_dir) if self.settings.console_output_dir else None
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    async def send(self, message: OutboundMessage) -> None:
        if not message.to:
            raise TransportError("Recipient address is empty")

        mime = build_mime_message(message, self.settings)
        attachments = ", ".join(
            f"{a.filename} ({a.content_type}, {len(a.content)} bytes)" for a in message.attachments
        ) or "none"
        logger.info(f"[console mail] to={message.to} subject='{message.subject}' attachments={attachments}")

        if self.output_dir is not None:
            path = self.output_dir / f"{uuid.uuid4().hex}.eml"
            try:
                path.write_bytes(mime.as_bytes())
            except OSError as e:
                raise TransportError(f"Could not write {path}: {e}") from e


def create_transport(settings: Optional[MailDefaults] = None) -> MailTransport:
    """Transport selected by MailDefaults.transport ('smtp' or 'console')."""
    settings = settings or MailDefaults.from_env()
    if settings.transport == "smtp":
        return SmtpMailTransport(settings)
    if settings.transport == "console":
        return ConsoleMailTransport(settings)
    raise ValueError(f"Unknown MAIL_TRANSPORT: {settings.transport}")


__all__ = [
    "Attachment",
    "OutboundMessage",
    "MailTransport",
    "SmtpMailTransport",
    "ConsoleMailTransport",
    "build_mime_message",
    "create_transport",
]
