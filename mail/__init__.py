# ============================================================================
# MAIL MODULE
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Mail - Rendering and transport
# PURPOSE: Email content rendering and outbound delivery
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from mail.renderer import EmailRenderer, RenderedEmail, render_email
from mail.transport import (
    Attachment,
    ConsoleMailTransport,
    MailTransport,
    OutboundMessage,
    SmtpMailTransport,
    create_transport,
)

__all__ = [
    "EmailRenderer",
    "RenderedEmail",
    "render_email",
    "Attachment",
    "OutboundMessage",
    "MailTransport",
    "SmtpMailTransport",
    "ConsoleMailTransport",
    "create_transport",
]
