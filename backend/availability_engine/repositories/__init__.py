"""Repository layer: one repository per store, created through RepositoryFactory."""

from .base_availability_repository import BaseAvailabilityRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .occupancy_repository import OccupancyRepository
from .override_repository import OverrideRepository
from .provider_repository import ProviderRepository

__all__ = [
    "BaseAvailabilityRepository",
    "BaseRepository",
    "OccupancyRepository",
    "OverrideRepository",
    "ProviderRepository",
    "RepositoryFactory",
]
