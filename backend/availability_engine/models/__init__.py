"""
Database models for the availability engine.

- ProviderProfile: organization and timezone of a provider
- WeeklyBaseSlot: recurring weekly base schedule
- OverrideDay / OverrideSlot: date-specific replacements of the base schedule
- Occupancy: booked intervals subtracted from availability
"""

from .availability_override import OverrideDay, OverrideSlot
from .base_availability import WeeklyBaseSlot
from .occupancy import Occupancy
from .provider import ProviderProfile

__all__ = [
    "Occupancy",
    "OverrideDay",
    "OverrideSlot",
    "ProviderProfile",
    "WeeklyBaseSlot",
]
