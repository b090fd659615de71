# backend/availability_engine/services/availability_service.py
"""
Final availability queries.

Loads one snapshot of the three stores per query, hands it to the pure
resolver and caches the per-date results. Reads never take the provider
write lock.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import ValidationException
from ..core.timezone_utils import from_utc_naive, local_day_bounds, to_utc_naive
from ..repositories.factory import RepositoryFactory
from .availability_resolver import (
    EffectiveSlot,
    ResolvedWindow,
    ScheduleSnapshot,
    free_only,
    resolve_range,
    split_into_bookable,
    total_free_hours,
)
from .base import BaseService
from .cache_service import ResolvedWindowCache, payload_to_windows, windows_to_payload
from .override_service import week_monday
from .provider_service import ProviderService, validate_provider_id

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 366


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationException(
            "End date must not be before start date",
            code="INVALID_DATE_RANGE",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise ValidationException(
            f"Date range cannot exceed {MAX_RANGE_DAYS} days",
            code="DATE_RANGE_TOO_LONG",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )


class AvailabilityService(BaseService):
    """Resolved availability for date ranges, weeks and bookable windows."""

    def __init__(self, db: Session, cache: Optional[ResolvedWindowCache] = None):
        super().__init__(db, cache)
        self.provider_service = ProviderService(db, cache)
        self.base_repository = RepositoryFactory.create_base_availability_repository(db)
        self.override_repository = RepositoryFactory.create_override_repository(db)
        self.occupancy_repository = RepositoryFactory.create_occupancy_repository(db)

    def load_snapshot(self, provider_id: str, start_date: date, end_date: date) -> ScheduleSnapshot:
        """Read base week, overrides and occupancy covering [start_date, end_date]."""
        tz = self.provider_service.get_provider_timezone(provider_id)

        base_week = {
            day: [EffectiveSlot(s.start_time, s.end_time, bool(s.is_available)) for s in slots]
            for day, slots in self.base_repository.get_week_by_day(provider_id).items()
        }
        overrides = {
            day: [EffectiveSlot(s.start_time, s.end_time, bool(s.is_available)) for s in row.slots]
            for day, row in self.override_repository.get_by_date(
                provider_id, start_date, end_date
            ).items()
        }

        range_start, _ = local_day_bounds(start_date, tz)
        _, range_end = local_day_bounds(end_date, tz)
        occupancy = [
            (from_utc_naive(row.start_at), from_utc_naive(row.end_at))
            for row in self.occupancy_repository.get_overlapping(
                provider_id, to_utc_naive(range_start), to_utc_naive(range_end)
            )
        ]

        return ScheduleSnapshot(
            provider_id=provider_id,
            tz=tz,
            base_week=base_week,
            overrides=overrides,
            occupancy=occupancy,
        )

    def resolve_windows(
        self, provider_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[ResolvedWindow]]:
        """
        Free and busy windows per date, served from the cache where possible.

        Dates missing from the cache are resolved from a single snapshot
        spanning the first to the last missing date.
        """
        validate_provider_id(provider_id)
        _check_range(start_date, end_date)
        dates = [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]

        if self.cache is None:
            snapshot = self.load_snapshot(provider_id, start_date, end_date)
            return resolve_range(snapshot, start_date, end_date, include_busy=True)

        generation = self.cache.current_generation(provider_id)
        tz = self.provider_service.get_provider_timezone(provider_id)
        resolved: Dict[date, List[ResolvedWindow]] = {}
        missing: List[date] = []
        for day in dates:
            payload = self.cache.get_day(provider_id, day, generation)
            if payload is None:
                missing.append(day)
            else:
                resolved[day] = payload_to_windows(day, payload, tz)

        if missing:
            snapshot = self.load_snapshot(provider_id, missing[0], missing[-1])
            fresh = resolve_range(snapshot, missing[0], missing[-1], include_busy=True)
            for day in missing:
                resolved[day] = fresh[day]
                self.cache.set_day(provider_id, day, generation, windows_to_payload(fresh[day]))

        return {day: resolved[day] for day in dates}

    @BaseService.measure_operation("get_final_availability")
    def get_final_availability(
        self,
        provider_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        include_busy: bool = False,
    ) -> List[ResolvedWindow]:
        """
        Resolved windows for [start_date, end_date], sorted by start.

        Only free windows are returned unless ``include_busy`` is set, in which
        case closed slots and occupied parts of open slots come back with
        ``is_available=False``.
        """
        by_day = self.resolve_windows(provider_id, start_date, end_date or start_date)
        windows: List[ResolvedWindow] = []
        for day_windows in by_day.values():
            windows.extend(day_windows if include_busy else free_only(day_windows))
        return windows

    @BaseService.measure_operation("get_weekly_final_availability")
    def get_weekly_final_availability(
        self, provider_id: str, reference_date: date, include_busy: bool = False
    ) -> Dict[date, List[ResolvedWindow]]:
        """Windows for the Monday-anchored week containing ``reference_date``."""
        monday = week_monday(reference_date)
        by_day = self.resolve_windows(provider_id, monday, monday + timedelta(days=6))
        if include_busy:
            return by_day
        return {day: free_only(windows) for day, windows in by_day.items()}

    @BaseService.measure_operation("get_bookable_windows")
    def get_bookable_windows(
        self, provider_id: str, target_date: date, window_minutes: int
    ) -> List[ResolvedWindow]:
        """Free windows of one date split into consecutive ``window_minutes`` pieces."""
        if window_minutes <= 0 or window_minutes > MINUTES_PER_DAY:
            raise ValidationException(
                "Window length must be between 1 and 1440 minutes",
                code="INVALID_WINDOW_LENGTH",
                details={"window_minutes": window_minutes},
            )
        windows = self.resolve_windows(provider_id, target_date, target_date)[target_date]
        tz = self.provider_service.get_provider_timezone(provider_id)
        return split_into_bookable(windows, window_minutes, tz)

    @BaseService.measure_operation("get_weekly_working_hours")
    def get_weekly_working_hours(self, provider_id: str, reference_date: date) -> float:
        """Total free hours in the week containing ``reference_date``."""
        by_day = self.get_weekly_final_availability(provider_id, reference_date)
        return total_free_hours(w for windows in by_day.values() for w in windows)
