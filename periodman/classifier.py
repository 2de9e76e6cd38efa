"""
Availability classification — isolated, testable, reusable.

A window is a closed interval of calendar days in the merchant's calendar.
Classification compares calendar dates only, never instants, so the last
day of a window is available until the shop's midnight.

Examples:
    window 2024-05-01 .. 2024-05-10
    - 2024-04-30 → UPCOMING
    - 2024-05-01 → ACTIVE
    - 2024-05-10 → ACTIVE
    - 2024-05-11 → EXPIRED
"""

from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from django.utils import timezone


class WindowStatus(str, Enum):
    """Where a calendar date falls relative to a window."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    EXPIRED = "expired"


def as_calendar_date(value: date) -> date:
    """Drop the time of day from a datetime (wall clock of its own zone)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def classify(today: date, window) -> WindowStatus:
    """
    Classify a window against the shop's calendar date.

    Args:
        today: Shop-local calendar date (datetimes are truncated to their date)
        window: Anything with .start and .end calendar dates

    Returns:
        WindowStatus (exactly one of UPCOMING, ACTIVE, EXPIRED)
    """
    today = as_calendar_date(today)
    if today < window.start:
        return WindowStatus.UPCOMING
    if today > window.end:
        return WindowStatus.EXPIRED
    return WindowStatus.ACTIVE


def shop_local_date(now: datetime | None = None, tz_name: str = "") -> date:
    """
    Calendar date in the shop's timezone.

    Args:
        now: Aware instant (None = timezone.now())
        tz_name: IANA zone ("" = Django's current timezone)
    """
    tz = ZoneInfo(tz_name) if tz_name else timezone.get_current_timezone()
    return timezone.localdate(now or timezone.now(), timezone=tz)
