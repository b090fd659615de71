# backend/availability_engine/engine.py
"""
AvailabilityEngine: the single entry point for callers.

Authorization and organization scoping happen before the engine is called;
every operation trusts the provider id it receives. Results are pydantic
schemas so a transport layer can serialize them directly, and every error is
a DomainException (or RepositoryException for store failures).

Usage:
    with SessionLocal() as db:
        engine = AvailabilityEngine(db)
        engine.set_base_week("dr-smith", {"MONDAY": [{"start_time": "09:00", "end_time": "17:00"}]})
        engine.get_final_availability("dr-smith", date(2025, 6, 16))
"""

from datetime import date, datetime, time
from typing import Any, Iterable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from .core.config import settings
from .core.enums import DayOfWeek, OccupancySourceType
from .schemas.availability import (
    BaseWeekResponse,
    BaseWeekSet,
    BookableWindowsResponse,
    DayAvailabilityResponse,
    OverrideDayResponse,
    ProviderResponse,
    ResolvedWindowResponse,
)
from .schemas.occupancy import OccupancyResponse
from .schemas.status import ProviderStatusResponse
from .services.availability_service import AvailabilityService
from .services.base_availability_service import BaseAvailabilityService
from .services.cache_service import ResolvedWindowCache
from .services.occupancy_service import OccupancyInput, OccupancyService
from .services.override_service import OverrideService
from .services.provider_service import ProviderService
from .services.status_service import StatusService

_UNSET = object()


class AvailabilityEngine:
    def __init__(self, db: Session, cache: Any = _UNSET):
        """
        Args:
            db: Session used by every store; the engine commits its own writes
            cache: Resolved-window cache; defaults to a shared one when
                ``settings.availability_cache_enabled``, pass None to disable
        """
        if cache is _UNSET:
            cache = ResolvedWindowCache() if settings.availability_cache_enabled else None
        self.db = db
        self.cache: Optional[ResolvedWindowCache] = cache
        self.providers = ProviderService(db, cache)
        self.base_schedule = BaseAvailabilityService(db, cache)
        self.overrides = OverrideService(db, cache)
        self.occupancy = OccupancyService(db, cache)
        self.availability = AvailabilityService(db, cache)
        self.status = StatusService(db, cache, availability_service=self.availability)

    # Providers

    def register_provider(
        self,
        provider_id: str,
        organization_id: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> ProviderResponse:
        return self.providers.register_provider(provider_id, organization_id, timezone)

    def get_provider(self, provider_id: str) -> Optional[ProviderResponse]:
        return self.providers.get_provider(provider_id)

    # Base schedule

    def set_base_week(
        self, provider_id: str, slots_by_day: Union[BaseWeekSet, Mapping[Any, Iterable[Any]]]
    ) -> BaseWeekResponse:
        return self.base_schedule.set_week(provider_id, slots_by_day)

    def get_base_week(self, provider_id: str) -> BaseWeekResponse:
        return self.base_schedule.get_week(provider_id)

    def delete_base_week(self, provider_id: str) -> int:
        return self.base_schedule.delete_week(provider_id)

    # Overrides

    def add_override(
        self,
        provider_id: str,
        week_start_date: date,
        day_of_week: Union[DayOfWeek, str],
        slots: Iterable[Any] = (),
    ) -> OverrideDayResponse:
        return self.overrides.add_override(provider_id, week_start_date, day_of_week, slots)

    def get_overrides(
        self, provider_id: str, start_date: date, end_date: Optional[date] = None
    ) -> List[OverrideDayResponse]:
        return self.overrides.get_overrides(provider_id, start_date, end_date)

    def delete_override(
        self, provider_id: str, week_start_date: date, day_of_week: Union[DayOfWeek, str]
    ) -> bool:
        return self.overrides.delete_override(provider_id, week_start_date, day_of_week)

    # Occupancy

    def add_occupancy(
        self,
        provider_id: str,
        occupancy_date: date,
        start: Union[datetime, time, str],
        end: Union[datetime, time, str],
        source_booking_id: str,
        source_type: OccupancySourceType = OccupancySourceType.APPOINTMENT,
    ) -> OccupancyResponse:
        return self.occupancy.add_occupancy(
            provider_id, occupancy_date, start, end, source_booking_id, source_type
        )

    def add_all_occupancies(
        self, provider_id: str, intervals: Iterable[OccupancyInput]
    ) -> List[OccupancyResponse]:
        return self.occupancy.add_all_occupancies(provider_id, intervals)

    def list_occupancy(
        self, provider_id: str, start_date: date, end_date: Optional[date] = None
    ) -> List[OccupancyResponse]:
        return self.occupancy.list_occupancy(provider_id, start_date, end_date)

    def remove_occupancy(self, source_booking_id: str) -> int:
        return self.occupancy.remove_occupancy(source_booking_id)

    # Resolution

    def get_final_availability(
        self,
        provider_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        include_busy: bool = False,
    ) -> List[ResolvedWindowResponse]:
        windows = self.availability.get_final_availability(
            provider_id, start_date, end_date, include_busy=include_busy
        )
        return [ResolvedWindowResponse.from_window(w) for w in windows]

    def get_weekly_final_availability(
        self, provider_id: str, reference_date: date, include_busy: bool = False
    ) -> List[DayAvailabilityResponse]:
        by_day = self.availability.get_weekly_final_availability(
            provider_id, reference_date, include_busy=include_busy
        )
        return [
            DayAvailabilityResponse(
                date=day,
                day_of_week=DayOfWeek.from_date(day),
                windows=[ResolvedWindowResponse.from_window(w) for w in windows],
            )
            for day, windows in by_day.items()
        ]

    def get_bookable_windows(
        self, provider_id: str, target_date: date, window_minutes: int
    ) -> BookableWindowsResponse:
        windows = self.availability.get_bookable_windows(provider_id, target_date, window_minutes)
        return BookableWindowsResponse(
            date=target_date,
            day_of_week=DayOfWeek.from_date(target_date),
            window_minutes=window_minutes,
            windows=[ResolvedWindowResponse.from_window(w) for w in windows],
        )

    def get_weekly_working_hours(self, provider_id: str, reference_date: date) -> float:
        return self.availability.get_weekly_working_hours(provider_id, reference_date)

    # Status

    def is_available_now(
        self, provider_id: str, instant: Optional[datetime] = None
    ) -> ProviderStatusResponse:
        return self.status.is_available_now(provider_id, instant)

    def get_current_status(self, provider_id: str) -> ProviderStatusResponse:
        return self.status.get_current_status(provider_id)
