# backend/availability_engine/core/enums.py
"""
Core enums for the availability engine.

These enums are stored as plain strings in the database and travel
unchanged through the pydantic schemas.
"""

from datetime import date
from enum import Enum


class DayOfWeek(str, Enum):
    """Days of the week, ordered Monday first to match date.weekday()."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        """Offset from Monday (0-6)."""
        return _DAY_ORDER.index(self)

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return _DAY_ORDER[value.weekday()]

    @classmethod
    def ordered(cls) -> list["DayOfWeek"]:
        return list(_DAY_ORDER)


_DAY_ORDER = [
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
]


class OccupancySourceType(str, Enum):
    """What created an occupancy interval."""

    APPOINTMENT = "APPOINTMENT"
    BLOCKED = "BLOCKED"
    SURGERY = "SURGERY"


class ProviderStatus(str, Enum):
    """Coarse provider status reported alongside the availability boolean."""

    CONSULTING = "CONSULTING"  # inside an occupancy interval
    AVAILABLE = "AVAILABLE"
    OFF_DUTY = "OFF_DUTY"  # no available slot in effect today
    UNAVAILABLE = "UNAVAILABLE"
