"""
Availability resolution engine for provider schedules.

Composes a recurring weekly base schedule, date-specific overrides and
booking occupancy into the bookable timeline of each provider.
"""

__version__ = "1.0.0"
