# backend/availability_engine/models/base_availability.py
"""
Weekly base schedule model.

One row per slot of a provider's recurring week. The full set of rows for a
provider is replaced wholesale on update.
"""

from sqlalchemy import Boolean, Column, DateTime, Index, String, Time
from sqlalchemy.sql import func

from ..core.ulid_helper import ULID_LENGTH, generate_ulid
from ..database import Base


class WeeklyBaseSlot(Base):
    """Recurring slot for one day of the week, wall-clock bounds."""

    __tablename__ = "weekly_base_slots"

    id = Column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    provider_id = Column(String(64), nullable=False)
    day_of_week = Column(String(9), nullable=False)
    start_time = Column(Time, nullable=False)
    # 00:00 with a non-midnight start closes the slot at the end of the day
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_weekly_base_slots_provider_day", "provider_id", "day_of_week"),)

    def __repr__(self) -> str:
        return (
            f"<WeeklyBaseSlot {self.provider_id} {self.day_of_week} "
            f"{self.start_time}-{self.end_time} available={self.is_available}>"
        )
