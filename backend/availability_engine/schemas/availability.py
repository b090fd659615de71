# backend/availability_engine/schemas/availability.py
"""
Schedule schemas: weekly base slots, overrides and resolved windows.

Slot bounds are wall-clock times without a date; "24:00" is accepted as an
end bound and stored as midnight. Ordering and overlap rules are enforced by
the services so they can report which slots collide.
"""

import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import END_OF_DAY_STRINGS
from ..core.enums import DayOfWeek
from ..utils.time_helpers import coerce_time, format_interval
from ._strict_base import StrictModel, StrictRequestModel

# Type aliases for clarity
DateType = datetime.date
TimeType = datetime.time
DateTimeType = datetime.datetime


class TimeSlotIn(StrictRequestModel):
    """One wall-clock slot of a day."""

    start_time: TimeType
    end_time: TimeType
    is_available: bool = True

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip() in END_OF_DAY_STRINGS:
            raise ValueError("A slot cannot start at 24:00")
        if isinstance(v, (str, datetime.time)):
            return coerce_time(v)
        return v

    @field_validator("end_time", mode="before")
    @classmethod
    def parse_end(cls, v: Any) -> Any:
        if isinstance(v, (str, datetime.time)):
            return coerce_time(v)
        return v


class TimeSlotResponse(StrictModel):
    start_time: str
    end_time: str
    is_available: bool

    @classmethod
    def from_slot(cls, slot: Any) -> "TimeSlotResponse":
        start_str, end_str = format_interval(slot.start_time, slot.end_time).split("-")
        return cls(start_time=start_str, end_time=end_str, is_available=bool(slot.is_available))


class BaseWeekSet(StrictRequestModel):
    """Full replacement of a provider's weekly base schedule."""

    slots_by_day: Dict[DayOfWeek, List[TimeSlotIn]] = Field(default_factory=dict)


class BaseWeekResponse(BaseModel):
    model_config = ConfigDict(use_enum_values=False)

    provider_id: str
    days: Dict[DayOfWeek, List[TimeSlotResponse]]

    @property
    def is_empty(self) -> bool:
        return not any(self.days.values())


class OverrideDayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: str
    week_start_date: DateType
    day_of_week: DayOfWeek
    override_date: DateType
    slots: List[TimeSlotResponse]

    @classmethod
    def from_model(cls, override: Any) -> "OverrideDayResponse":
        return cls(
            provider_id=override.provider_id,
            week_start_date=override.week_start_date,
            day_of_week=DayOfWeek(override.day_of_week),
            override_date=override.override_date,
            slots=[TimeSlotResponse.from_slot(slot) for slot in override.slots],
        )


class ResolvedWindowResponse(StrictModel):
    date: DateType
    start: DateTimeType
    end: DateTimeType
    is_available: bool

    @classmethod
    def from_window(cls, window: Any) -> "ResolvedWindowResponse":
        return cls(
            date=window.date,
            start=window.start,
            end=window.end,
            is_available=window.is_available,
        )


class DayAvailabilityResponse(StrictModel):
    date: DateType
    day_of_week: DayOfWeek
    windows: List[ResolvedWindowResponse]


class BookableWindowsResponse(StrictModel):
    date: DateType
    day_of_week: DayOfWeek
    window_minutes: int
    windows: List[ResolvedWindowResponse]


class ProviderRegister(StrictRequestModel):
    provider_id: str = Field(min_length=1, max_length=64)
    organization_id: Optional[str] = Field(default=None, max_length=64)
    timezone: str = Field(default="UTC", min_length=1, max_length=64)


class ProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: str
    organization_id: Optional[str] = None
    timezone: str
