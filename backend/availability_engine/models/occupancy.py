# backend/availability_engine/models/occupancy.py
"""
Occupancy model.

A committed booking (or manual block) that removes time from whatever slots
are in effect. ``start_at``/``end_at`` are naive UTC instants; see
core.timezone_utils for the conversion helpers.
"""

from sqlalchemy import Column, Date, DateTime, Index, String
from sqlalchemy.sql import func

from ..core.enums import OccupancySourceType
from ..core.ulid_helper import ULID_LENGTH, generate_ulid
from ..database import Base


class Occupancy(Base):
    __tablename__ = "occupancies"

    id = Column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    provider_id = Column(String(64), nullable=False)
    occupancy_date = Column(Date, nullable=False)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    source_booking_id = Column(String(64), nullable=False, index=True)
    source_type = Column(String(16), nullable=False, default=OccupancySourceType.APPOINTMENT.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_occupancies_provider_date", "provider_id", "occupancy_date"),
        Index("ix_occupancies_provider_span", "provider_id", "start_at", "end_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Occupancy {self.provider_id} {self.start_at}-{self.end_at} "
            f"booking={self.source_booking_id}>"
        )
