"""Occupancy schemas."""

import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import END_OF_DAY_STRINGS
from ..core.enums import OccupancySourceType
from ._strict_base import StrictRequestModel


class OccupancyCreate(StrictRequestModel):
    """
    A booked interval.

    ``start``/``end`` are either wall-clock times on ``occupancy_date`` in the
    provider's timezone or timezone-aware instants.
    """

    occupancy_date: datetime.date
    start: Union[datetime.datetime, datetime.time]
    end: Union[datetime.datetime, datetime.time]
    source_booking_id: str = Field(min_length=1, max_length=64)
    source_type: OccupancySourceType = OccupancySourceType.APPOINTMENT

    @field_validator("end", mode="before")
    @classmethod
    def parse_end_of_day(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip() in END_OF_DAY_STRINGS:
            return datetime.time(0, 0)
        return v

    @field_validator("start", "end")
    @classmethod
    def require_aware_instants(
        cls, v: Union[datetime.datetime, datetime.time]
    ) -> Union[datetime.datetime, datetime.time]:
        if isinstance(v, datetime.datetime) and v.tzinfo is None:
            raise ValueError("Datetime bounds must be timezone-aware")
        return v


class OccupancyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    provider_id: str
    occupancy_date: datetime.date
    start: datetime.datetime
    end: datetime.datetime
    source_booking_id: str
    source_type: OccupancySourceType
    created_at: Optional[datetime.datetime] = None
