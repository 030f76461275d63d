# ============================================================================
# DISPLAY FORMATTING
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - Date and filename helpers shared by mail and documents
# PURPOSE: Render event dates in one fixed display timezone
# CREATED: 19 OCT 2026
# ============================================================================
"""
Display formatting helpers.

Event times are stored in UTC and always displayed in a configured timezone
(Asia/Kolkata by default), never the host's local zone. Month and day names
come from fixed English tables so output does not depend on the process
locale.
"""

import re
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_DISPLAY_TIMEZONE = "Asia/Kolkata"
DATE_TBA = "Date TBA"

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def to_display_zone(value: datetime, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> datetime:
    """Convert to the display timezone. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name))


def format_time(value: datetime, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Short time, e.g. '3:30 pm'."""
    local = to_display_zone(value, tz_name)
    hour = local.hour % 12 or 12
    suffix = "am" if local.hour < 12 else "pm"
    return f"{hour}:{local.minute:02d} {suffix}"


def format_full_date(value: datetime, tz_name: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Full date, e.g. 'Thursday, 1 May 2025'."""
    local = to_display_zone(value, tz_name)
    return f"{_DAY_NAMES[local.weekday()]}, {local.day} {_MONTH_NAMES[local.month - 1]} {local.year}"


def format_event_datetime(
    value: Optional[datetime],
    tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
    missing: str = DATE_TBA,
) -> str:
    """Full date and short time, e.g. 'Thursday, 1 May 2025 at 3:30 pm'."""
    if value is None:
        return missing
    return f"{format_full_date(value, tz_name)} at {format_time(value, tz_name)}"


def format_long_date(
    value: Optional[datetime],
    tz_name: str = DEFAULT_DISPLAY_TIMEZONE,
    missing: str = DATE_TBA,
) -> str:
    """Day month year, e.g. '1 May 2025'."""
    if value is None:
        return missing
    local = to_display_zone(value, tz_name)
    return f"{local.day} {_MONTH_NAMES[local.month - 1]} {local.year}"


def safe_filename_stem(text: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", text)


__all__ = [
    "DATE_TBA",
    "DEFAULT_DISPLAY_TIMEZONE",
    "to_display_zone",
    "format_time",
    "format_full_date",
    "format_event_datetime",
    "format_long_date",
    "safe_filename_stem",
]
