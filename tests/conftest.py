# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Tests - Fakes shared across the suite
# PURPOSE: Recording / failing mail transports and common builders
# CREATED: 19 OCT 2026
# ============================================================================
"""
Shared fixtures.

RecordingTransport keeps every OutboundMessage it is given; FailingTransport
raises TransportError on every send. Both are real MailTransport subclasses,
so processors and the reminder job use them exactly like the SMTP transport.
"""

from datetime import datetime, timezone
from typing import List, Optional, Set

import pytest

from core.config.defaults import DocumentDefaults, QueueDefaults
from core.errors import TransportError
from documents import AssetLocator, SignatureFontSource
from mail import MailTransport, OutboundMessage


class RecordingTransport(MailTransport):
    """Keeps sent messages; optionally fails for chosen recipients."""

    def __init__(self, fail_for: Optional[Set[str]] = None):
        super().__init__()
        self.sent: List[OutboundMessage] = []
        self.fail_for = set(fail_for or ())
        self.attempts = 0

    async def send(self, message: OutboundMessage) -> None:
        self.attempts += 1
        if message.to in self.fail_for:
            raise TransportError(f"Mailbox unavailable: {message.to}")
        self.sent.append(message)


class FailingTransport(MailTransport):
    """Every send fails."""

    def __init__(self, message: str = "SMTP relay refused connection"):
        super().__init__()
        self.message = message
        self.attempts = 0

    async def send(self, message: OutboundMessage) -> None:
        self.attempts += 1
        raise TransportError(self.message)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def failing_transport():
    return FailingTransport()


@pytest.fixture
def assets(tmp_path):
    """Empty assets directory: no logo, no signature artwork."""
    return AssetLocator(tmp_path)


@pytest.fixture
def no_font():
    """Font source that never touches the network."""
    return SignatureFontSource(url=None)


@pytest.fixture
def queue_settings():
    return QueueDefaults(certificate_inter_job_delay_seconds=0)


@pytest.fixture
def document_settings(tmp_path):
    return DocumentDefaults(assets_dir=str(tmp_path), font_url="")


@pytest.fixture
def devconf_event():
    return {
        "id": "evt-devconf",
        "title": "DevConf 2025",
        "dateTime": "2025-05-01T10:00:00Z",
        "venue": "Hall A",
    }


@pytest.fixture
def event_time():
    return datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc)
