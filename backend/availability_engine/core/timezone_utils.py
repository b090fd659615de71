"""
Timezone utilities for the availability engine.

Wall-clock slot bounds are anchored to the provider's local calendar, so a
09:00 slot stays at 09:00 local time across DST transitions. Instants are
persisted as naive UTC because SQLite drops tzinfo.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz
from pytz.tzinfo import BaseTzInfo

from .config import settings
from .exceptions import ValidationException


def get_timezone(name: Optional[str]) -> BaseTzInfo:
    """
    Resolve an IANA timezone name.

    Args:
        name: Timezone name, falls back to settings.default_timezone when empty

    Raises:
        ValidationException: If the name is not a known timezone
    """
    tz_name = name or settings.default_timezone
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise ValidationException(
            f"Unknown timezone '{tz_name}'",
            code="INVALID_TIMEZONE",
            details={"timezone": tz_name},
        )


def localize_wall_clock(day: date, wall_time: time, tz: BaseTzInfo) -> datetime:
    """
    Attach a wall-clock time on ``day`` to ``tz``.

    Non-existent local times (spring-forward gap) are shifted forward by the
    gap; ambiguous ones (fall-back overlap) resolve to standard time.
    """
    naive = datetime.combine(day, wall_time.replace(tzinfo=None))
    return tz.normalize(tz.localize(naive, is_dst=False))


def local_day_bounds(day: date, tz: BaseTzInfo) -> tuple[datetime, datetime]:
    """Return [local midnight of day, local midnight of next day) as aware datetimes."""
    return (
        localize_wall_clock(day, time(0, 0), tz),
        localize_wall_clock(day + timedelta(days=1), time(0, 0), tz),
    )


def ensure_aware(dt: datetime) -> datetime:
    """Assume UTC for naive datetimes."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt


def to_utc_naive(dt: datetime) -> datetime:
    """Convert an instant to naive UTC for storage."""
    return ensure_aware(dt).astimezone(pytz.UTC).replace(tzinfo=None)


def from_utc_naive(dt: datetime) -> datetime:
    """Re-attach UTC to a stored naive UTC datetime."""
    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC)
    return pytz.UTC.localize(dt)


def local_date_of(instant: datetime, tz: BaseTzInfo) -> date:
    """Calendar date of an instant in the given timezone."""
    return ensure_aware(instant).astimezone(tz).date()


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)
