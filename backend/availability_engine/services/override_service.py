# backend/availability_engine/services/override_service.py
"""
Date-specific override store.

One override per (provider, week_start_date, day_of_week). An override
fully replaces the base slots of its date; an override with no slots closes
the date. Adding an override for an existing key replaces it.
"""

import logging
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import DayOfWeek
from ..core.exceptions import ValidationException
from ..core.provider_lock import provider_write_lock
from ..models.availability_override import OverrideDay, OverrideSlot
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import OverrideDayResponse
from .base import BaseService
from .cache_service import ResolvedWindowCache
from .provider_service import validate_provider_id
from .slot_validation import parse_day_of_week, validate_day_slots

logger = logging.getLogger(__name__)


def week_monday(value: date) -> date:
    """Monday of the week containing ``value``."""
    return value - timedelta(days=value.weekday())


def override_date_for(week_start_date: date, day_of_week: DayOfWeek) -> date:
    return week_monday(week_start_date) + timedelta(days=day_of_week.index)


class OverrideService(BaseService):
    def __init__(self, db: Session, cache: Optional[ResolvedWindowCache] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_override_repository(db)

    @BaseService.measure_operation("add_override")
    def add_override(
        self,
        provider_id: str,
        week_start_date: date,
        day_of_week: Any,
        slots: Iterable[Any] = (),
    ) -> OverrideDayResponse:
        """
        Add or replace the override for one day of one week.

        ``week_start_date`` may be any date of the intended week; it is
        normalized to that week's Monday.

        Raises:
            ValidationException: Malformed, inverted or overlapping slots
        """
        validate_provider_id(provider_id)
        day = parse_day_of_week(day_of_week)
        monday = week_monday(week_start_date)
        target_date = override_date_for(monday, day)
        validated = validate_day_slots(list(slots), f"{day.value} {target_date.isoformat()}")

        with provider_write_lock(provider_id):
            with self.transaction():
                override = self.repository.get_for_key(provider_id, monday, day)
                new_slots = [
                    OverrideSlot(
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                        is_available=slot.is_available,
                    )
                    for slot in validated
                ]
                if override is None:
                    override = OverrideDay(
                        provider_id=provider_id,
                        week_start_date=monday,
                        day_of_week=day.value,
                        override_date=target_date,
                        slots=new_slots,
                    )
                    self.repository.add_all([override])
                    action = "Created"
                else:
                    override.slots = new_slots
                    self.db.flush()
                    action = "Replaced"
                response = OverrideDayResponse.from_model(override)
            self.invalidate_provider_cache(provider_id)

        logger.info(
            f"{action} override for provider {provider_id} on {target_date} "
            f"with {len(validated)} slots"
        )
        return response

    @BaseService.measure_operation("get_overrides")
    def get_overrides(
        self, provider_id: str, start_date: date, end_date: Optional[date] = None
    ) -> List[OverrideDayResponse]:
        """Overrides whose date falls in [start_date, end_date], ordered by date."""
        validate_provider_id(provider_id)
        end_date = end_date or start_date
        if end_date < start_date:
            raise ValidationException(
                "End date must not be before start date",
                code="INVALID_DATE_RANGE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        rows = self.repository.get_in_range(provider_id, start_date, end_date)
        return [OverrideDayResponse.from_model(row) for row in rows]

    @BaseService.measure_operation("delete_override")
    def delete_override(self, provider_id: str, week_start_date: date, day_of_week: Any) -> bool:
        """Revert one date to base behavior. Deleting an absent override is a no-op."""
        validate_provider_id(provider_id)
        day = parse_day_of_week(day_of_week)
        monday = week_monday(week_start_date)

        with provider_write_lock(provider_id):
            with self.transaction():
                override = self.repository.get_for_key(provider_id, monday, day)
                removed_date = override.override_date if override is not None else None
                if override is not None:
                    self.repository.delete_instance(override)
            self.invalidate_provider_cache(provider_id)

        if removed_date is None:
            logger.debug(f"No override to delete for provider {provider_id} {monday} {day.value}")
            return False
        logger.info(f"Deleted override for provider {provider_id} on {removed_date}")
        return True
