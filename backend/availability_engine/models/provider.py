# backend/availability_engine/models/provider.py
"""
Provider profile model.

Holds the per-provider facts the resolver needs that are owned elsewhere
in the platform: the owning organization and the provider's IANA timezone.
"""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from ..database import Base


class ProviderProfile(Base):
    __tablename__ = "provider_profiles"

    provider_id = Column(String(64), primary_key=True)
    organization_id = Column(String(64), nullable=True, index=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<ProviderProfile {self.provider_id} tz={self.timezone}>"
