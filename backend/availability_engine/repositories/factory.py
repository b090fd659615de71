# backend/availability_engine/repositories/factory.py
"""
Repository Factory for the availability engine.

Centralizes repository creation so services share one construction path
and tests can swap implementations.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .base_availability_repository import BaseAvailabilityRepository
    from .occupancy_repository import OccupancyRepository
    from .override_repository import OverrideRepository
    from .provider_repository import ProviderRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_provider_repository(db: Session) -> "ProviderRepository":
        from .provider_repository import ProviderRepository

        return ProviderRepository(db)

    @staticmethod
    def create_base_availability_repository(db: Session) -> "BaseAvailabilityRepository":
        """Create repository for the weekly base schedule."""
        from .base_availability_repository import BaseAvailabilityRepository

        return BaseAvailabilityRepository(db)

    @staticmethod
    def create_override_repository(db: Session) -> "OverrideRepository":
        """Create repository for date-specific overrides."""
        from .override_repository import OverrideRepository

        return OverrideRepository(db)

    @staticmethod
    def create_occupancy_repository(db: Session) -> "OccupancyRepository":
        """Create repository for booked intervals."""
        from .occupancy_repository import OccupancyRepository

        return OccupancyRepository(db)
