# ============================================================================
# EVENT DIRECTORY
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Repository - Read model over platform events and registrations
# PURPOSE: Lookups for the daily reminder and certificate producers
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Directory

Read-only access to the platform's events, registrations and users. The
platform owns these tables; this module never writes to them.

PostgresEventDirectory expects:
    events(id, title, date_time, venue, start_time)
    registrations(id, event_id, user_id, user_name, user_email, status)
    users(id, email)
"""

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from core.models.payloads import EventSnapshot, Ref

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class Registrant(BaseModel):
    """One registration for an event."""
    registration_id: Ref = None
    event_id: Ref = None
    user_ref: Ref = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    phone: Optional[str] = None
    token_id: Optional[str] = None
    status: str = "registered"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventDirectory(ABC):
    """Read access to events and their registrants."""

    @abstractmethod
    async def events_between(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        """Events with start >= start and < end, earliest first."""

    @abstractmethod
    async def registrants(self, event_id: str) -> List[Registrant]:
        """Registrations for an event, excluding cancelled ones."""

    @abstractmethod
    async def find_user_ref(self, email: str) -> Optional[str]:
        """User account id for an email address, if one exists."""


class InMemoryEventDirectory(EventDirectory):
    """Directory over plain Python collections."""

    def __init__(
        self,
        events: Iterable[EventSnapshot] = (),
        registrations: Iterable[Registrant] = (),
        users: Optional[Dict[str, str]] = None,
    ):
        self.events = list(events)
        self.registrations = list(registrations)
        # email (lowercase) -> user id
        self.users = {email.lower(): ref for email, ref in (users or {}).items()}

    async def events_between(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        start, end = _as_utc(start), _as_utc(end)
        found = [
            event for event in self.events
            if event.date_time is not None and start <= _as_utc(event.date_time) < end
        ]
        return sorted(found, key=lambda event: _as_utc(event.date_time))

    async def registrants(self, event_id: str) -> List[Registrant]:
        return [
            r for r in self.registrations
            if r.event_id == event_id and r.status != CANCELLED
        ]

    async def find_user_ref(self, email: str) -> Optional[str]:
        return self.users.get((email or "").lower())


class PostgresEventDirectory(EventDirectory):
    """Directory over the platform's PostgreSQL tables."""

    def __init__(self, pool: AsyncConnectionPool, schema_name: Optional[str] = None):
        self.pool = pool
        schema = schema_name or os.environ.get("PLATFORM_SCHEMA", "public")
        self.events_table = sql.Identifier(schema, "events")
        self.registrations_table = sql.Identifier(schema, "registrations")
        self.users_table = sql.Identifier(schema, "users")

    async def events_between(self, start: datetime, end: datetime) -> List[EventSnapshot]:
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    SELECT id::text AS id, title, date_time, venue, start_time
                    FROM {}
                    WHERE date_time >= %s AND date_time < %s
                    ORDER BY date_time ASC
                    """).format(self.events_table),
                    (start, end),
                )
                rows = await cur.fetchall()
        return [EventSnapshot.model_validate(row) for row in rows]

    async def registrants(self, event_id: str) -> List[Registrant]:
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("""
                    SELECT id::text AS registration_id,
                           event_id::text AS event_id,
                           user_id::text AS user_ref,
                           user_name, user_email, status
                    FROM {}
                    WHERE event_id::text = %s AND status <> %s
                    ORDER BY id
                    """).format(self.registrations_table),
                    (event_id, CANCELLED),
                )
                rows = await cur.fetchall()
        return [Registrant.model_validate(row) for row in rows]

    async def find_user_ref(self, email: str) -> Optional[str]:
        if not email:
            return None
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    sql.SQL("SELECT id::text AS id FROM {} WHERE lower(email) = lower(%s) LIMIT 1").format(
                        self.users_table
                    ),
                    (email,),
                )
                row = await cur.fetchone()
        return row["id"] if row else None


__all__ = [
    "Registrant",
    "EventDirectory",
    "InMemoryEventDirectory",
    "PostgresEventDirectory",
]
