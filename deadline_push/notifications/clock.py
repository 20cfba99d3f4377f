"""Fixed-offset reference clock shared by planning and dispatch.

All local-time reasoning happens in one fixed UTC offset (UTC+9 by default,
no daylight saving). The queue stores instants as naive UTC so the hourly
dispatch can look entries up by plain equality.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from deadline_push.config import get_settings

REFERENCE_TZ = timezone(timedelta(hours=get_settings().reference_utc_offset_hours))

END_OF_DAY = time(23, 59, 59, 999000)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(instant: datetime) -> datetime:
    # Naive values are UTC: that is how the store hands them back
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def to_reference(instant: datetime) -> datetime:
    return _aware(instant).astimezone(REFERENCE_TZ)


def truncate_to_hour(instant: datetime) -> datetime:
    """Top of the hour containing ``instant``, in the reference zone."""
    return to_reference(instant).replace(minute=0, second=0, microsecond=0)


def end_of_day(instant: datetime) -> datetime:
    """Last millisecond of the reference-zone calendar day of ``instant``."""
    return datetime.combine(to_reference(instant).date(), END_OF_DAY, tzinfo=REFERENCE_TZ)


def at_hour(day: date, hour: int) -> datetime:
    return datetime.combine(day, time(hour), tzinfo=REFERENCE_TZ)


def to_storage(instant: datetime) -> datetime:
    return _aware(instant).astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)
