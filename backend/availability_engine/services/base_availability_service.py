# backend/availability_engine/services/base_availability_service.py
"""
Weekly base schedule store.

The whole week is the unit of change: ``set_week`` validates every day
first and then swaps the stored week in one transaction, so a rejected
payload leaves the previous week untouched.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from sqlalchemy.orm import Session

from ..core.provider_lock import provider_write_lock
from ..models.base_availability import WeeklyBaseSlot
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import BaseWeekResponse, BaseWeekSet, TimeSlotResponse
from .base import BaseService
from .cache_service import ResolvedWindowCache
from .provider_service import validate_provider_id
from .slot_validation import validate_week

logger = logging.getLogger(__name__)


class BaseAvailabilityService(BaseService):
    def __init__(self, db: Session, cache: Optional[ResolvedWindowCache] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_base_availability_repository(db)

    @BaseService.measure_operation("set_week")
    def set_week(
        self,
        provider_id: str,
        slots_by_day: Union[BaseWeekSet, Mapping[Any, Iterable[Any]]],
    ) -> BaseWeekResponse:
        """
        Replace the provider's entire weekly base schedule.

        Args:
            provider_id: Provider whose week is replaced
            slots_by_day: Day -> slots. Days left out become empty.

        Raises:
            ValidationException: Malformed, inverted or overlapping slots
            ProviderBusyException: Another write holds the provider lock too long
        """
        validate_provider_id(provider_id)
        week = validate_week(slots_by_day)

        rows = [
            WeeklyBaseSlot(
                provider_id=provider_id,
                day_of_week=day.value,
                start_time=slot.start_time,
                end_time=slot.end_time,
                is_available=slot.is_available,
            )
            for day, slots in week.items()
            for slot in slots
        ]

        with provider_write_lock(provider_id):
            with self.transaction():
                count = self.repository.replace_week(provider_id, rows)
            self.invalidate_provider_cache(provider_id)

        logger.info(f"Replaced base week for provider {provider_id} with {count} slots")
        return self.get_week(provider_id)

    @BaseService.measure_operation("get_week")
    def get_week(self, provider_id: str) -> BaseWeekResponse:
        """Return all seven days; a provider without a base week gets empty days."""
        validate_provider_id(provider_id)
        by_day = self.repository.get_week_by_day(provider_id)
        return BaseWeekResponse(
            provider_id=provider_id,
            days={
                day: [TimeSlotResponse.from_slot(slot) for slot in slots]
                for day, slots in by_day.items()
            },
        )

    @BaseService.measure_operation("delete_week")
    def delete_week(self, provider_id: str) -> int:
        """Clear all base slots. Deleting an absent week is a no-op."""
        validate_provider_id(provider_id)
        with provider_write_lock(provider_id):
            with self.transaction():
                deleted = self.repository.delete_week(provider_id)
            self.invalidate_provider_cache(provider_id)

        logger.info(f"Deleted base week for provider {provider_id} ({deleted} slots)")
        return deleted
