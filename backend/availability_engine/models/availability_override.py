# backend/availability_engine/models/availability_override.py
"""
Date-specific override models.

An OverrideDay fully replaces the base slots of one calendar date. It is
addressed by (provider, Monday week anchor, day of week); ``override_date``
is derived from those and kept for range queries.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import ULID_LENGTH, generate_ulid
from ..database import Base


class OverrideDay(Base):
    __tablename__ = "override_days"

    id = Column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    provider_id = Column(String(64), nullable=False)
    week_start_date = Column(Date, nullable=False)
    day_of_week = Column(String(9), nullable=False)
    override_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # An empty slot list is meaningful: the provider is closed that day
    slots = relationship(
        "OverrideSlot",
        back_populates="override_day",
        cascade="all, delete-orphan",
        order_by="OverrideSlot.start_time",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint(
            "provider_id", "week_start_date", "day_of_week", name="uq_override_provider_week_day"
        ),
        Index("ix_override_days_provider_date", "provider_id", "override_date"),
    )

    def __repr__(self) -> str:
        return f"<OverrideDay {self.provider_id} {self.override_date} slots={len(self.slots)}>"


class OverrideSlot(Base):
    __tablename__ = "override_slots"

    id = Column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
    override_day_id = Column(
        String(ULID_LENGTH), ForeignKey("override_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    override_day = relationship("OverrideDay", back_populates="slots")
