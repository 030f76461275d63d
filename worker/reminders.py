# ============================================================================
# DAILY REMINDER
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Day-before reminders for registered attendees
# PURPOSE: Send "is tomorrow" mail once a day, bypassing the queue
# CREATED: 19 OCT 2026
# ============================================================================
"""
Daily Reminder

Fired by the scheduler once a day. Finds events starting on the next calendar
day (in the reminder timezone) and mails every registrant that has an email
address. Sends go straight through the transport: a failed recipient is
logged and skipped, never queued or retried.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from core.formatting import DEFAULT_DISPLAY_TIMEZONE
from core.logging import log_context
from mail import EmailRenderer, MailTransport, OutboundMessage
from repositories.event_repo import EventDirectory

logger = logging.getLogger(__name__)


@dataclass
class ReminderReport:
    """What one reminder run did."""
    window_start: datetime
    window_end: datetime
    events: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)


class ReminderJob:
    """Sends reminders for tomorrow's events."""

    def __init__(
        self,
        directory: EventDirectory,
        transport: MailTransport,
        renderer: Optional[EmailRenderer] = None,
        tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
    ):
        self.directory = directory
        self.transport = transport
        self.renderer = renderer or EmailRenderer(tz_name=tz_name)
        self.tz = ZoneInfo(tz_name)

    def window_for(self, today: Optional[date] = None):
        """[tomorrow 00:00, day after 00:00) in the reminder timezone."""
        today = today or datetime.now(self.tz).date()
        start = datetime.combine(today + timedelta(days=1), time.min, tzinfo=self.tz)
        return start, start + timedelta(days=1)

    async def run(self, today: Optional[date] = None) -> ReminderReport:
        start, end = self.window_for(today)
        report = ReminderReport(window_start=start, window_end=end)

        with log_context(operation="daily-reminder"):
            logger.info(f"Running daily reminder for events between {start.isoformat()} and {end.isoformat()}")
            events = await self.directory.events_between(start, end)
            report.events = len(events)

            for event in events:
                registrants = await self.directory.registrants(event.id)
                for registrant in registrants:
                    if not registrant.user_email:
                        report.skipped += 1
                        continue

                    try:
                        rendered = self.renderer.render(
                            "REMINDER",
                            {"userName": registrant.user_name, "event": event.to_payload()},
                        )
                        await self.transport.send(OutboundMessage(
                            to=registrant.user_email,
                            subject=rendered.subject,
                            html=rendered.html,
                            text=rendered.text,
                        ))
                    except Exception as e:
                        report.failed += 1
                        report.failures.append({"event_id": event.id, "to": registrant.user_email, "error": str(e)})
                        logger.error(f"Failed to send reminder to {registrant.user_email}: {e}")
                        continue
                    report.sent += 1

            logger.info(
                f"Daily reminder done: {report.events} events, {report.sent} sent, "
                f"{report.failed} failed, {report.skipped} skipped"
            )
        return report


__all__ = ["ReminderJob", "ReminderReport"]
