# backend/availability_engine/services/occupancy_service.py
"""
Occupancy tracker.

Booked intervals are checked for collisions against the provider's stored
occupancy while the provider's write lock is held, which makes the check
and the insert one atomic step per provider. A collision fails fast with
OccupancyConflictException; retrying is up to the booking layer.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError
from pytz.tzinfo import BaseTzInfo
from sqlalchemy.orm import Session

from ..core.enums import OccupancySourceType
from ..core.exceptions import InvalidTimeRangeException, OccupancyConflictException, ValidationException
from ..core.provider_lock import provider_write_lock
from ..core.timezone_utils import from_utc_naive, localize_wall_clock, to_utc_naive
from ..models.occupancy import Occupancy
from ..repositories.factory import RepositoryFactory
from ..schemas.occupancy import OccupancyCreate, OccupancyResponse
from .base import BaseService
from .cache_service import ResolvedWindowCache
from .provider_service import ProviderService, validate_provider_id
from .slot_validation import pydantic_to_validation_exception

logger = logging.getLogger(__name__)

OccupancyInput = Union[OccupancyCreate, Mapping[str, Any]]


def occupancy_instants(payload: OccupancyCreate, tz: BaseTzInfo) -> Tuple[datetime, datetime]:
    """
    Absolute bounds of an occupancy.

    Wall-clock bounds are anchored to ``occupancy_date`` in ``tz``; a 00:00
    end means midnight at the end of that date.
    """
    start = _bound(payload.occupancy_date, payload.start, tz)
    if isinstance(payload.end, time) and payload.end.replace(tzinfo=None) == time(0, 0):
        end = localize_wall_clock(payload.occupancy_date + timedelta(days=1), time(0, 0), tz)
    else:
        end = _bound(payload.occupancy_date, payload.end, tz)
    if start >= end:
        raise InvalidTimeRangeException(
            start.isoformat(), end.isoformat(), context=f"booking {payload.source_booking_id}"
        )
    return start, end


def _bound(day: date, value: Union[datetime, time], tz: BaseTzInfo) -> datetime:
    if isinstance(value, datetime):
        return value.astimezone(tz)
    return localize_wall_clock(day, value, tz)


def _span(row: Occupancy) -> str:
    return f"{from_utc_naive(row.start_at).isoformat()}/{from_utc_naive(row.end_at).isoformat()}"


def to_response(row: Occupancy) -> OccupancyResponse:
    return OccupancyResponse(
        id=row.id,
        provider_id=row.provider_id,
        occupancy_date=row.occupancy_date,
        start=from_utc_naive(row.start_at),
        end=from_utc_naive(row.end_at),
        source_booking_id=row.source_booking_id,
        source_type=OccupancySourceType(row.source_type),
        created_at=row.created_at,
    )


class OccupancyService(BaseService):
    def __init__(self, db: Session, cache: Optional[ResolvedWindowCache] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_occupancy_repository(db)
        self.provider_service = ProviderService(db, cache)

    def _parse(self, item: OccupancyInput) -> OccupancyCreate:
        if isinstance(item, OccupancyCreate):
            return item
        try:
            return OccupancyCreate.model_validate(dict(item))
        except ValidationError as exc:
            raise pydantic_to_validation_exception(exc, "Malformed occupancy interval")

    def _prepare(self, provider_id: str, items: Iterable[OccupancyInput]) -> List[Occupancy]:
        tz = self.provider_service.get_provider_timezone(provider_id)
        rows = []
        for item in items:
            payload = self._parse(item)
            start, end = occupancy_instants(payload, tz)
            rows.append(
                Occupancy(
                    provider_id=provider_id,
                    occupancy_date=payload.occupancy_date,
                    start_at=to_utc_naive(start),
                    end_at=to_utc_naive(end),
                    source_booking_id=payload.source_booking_id,
                    source_type=payload.source_type.value,
                )
            )
        return rows

    def _ensure_no_stored_conflict(self, provider_id: str, row: Occupancy) -> None:
        existing = self.repository.get_overlapping(provider_id, row.start_at, row.end_at)
        if existing:
            clash = existing[0]
            logger.warning(
                "occupancy_conflict",
                extra={
                    "provider_id": provider_id,
                    "booking_id": row.source_booking_id,
                    "conflicting_booking_id": clash.source_booking_id,
                },
            )
            raise OccupancyConflictException(
                provider_id,
                _span(row),
                _span(clash),
                conflicting_booking_id=clash.source_booking_id,
            )

    def _ensure_batch_disjoint(self, provider_id: str, rows: List[Occupancy]) -> None:
        ordered = sorted(rows, key=lambda r: (r.start_at, r.end_at))
        reach = ordered[0]
        for row in ordered[1:]:
            if row.start_at < reach.end_at:
                raise OccupancyConflictException(
                    provider_id,
                    _span(row),
                    _span(reach),
                    conflicting_booking_id=reach.source_booking_id,
                    message="Occupancy batch contains overlapping intervals",
                )
            if row.end_at > reach.end_at:
                reach = row

    @BaseService.measure_operation("add_occupancy")
    def add_occupancy(
        self,
        provider_id: str,
        occupancy_date: date,
        start: Union[datetime, time, str],
        end: Union[datetime, time, str],
        source_booking_id: str,
        source_type: OccupancySourceType = OccupancySourceType.APPOINTMENT,
    ) -> OccupancyResponse:
        """
        Record one booked interval.

        Raises:
            ValidationException: Malformed bounds or start not before end
            OccupancyConflictException: The interval overlaps stored occupancy
            ProviderBusyException: The provider lock could not be acquired in time
        """
        results = self.add_all_occupancies(
            provider_id,
            [
                {
                    "occupancy_date": occupancy_date,
                    "start": start,
                    "end": end,
                    "source_booking_id": source_booking_id,
                    "source_type": source_type,
                }
            ],
        )
        return results[0]

    @BaseService.measure_operation("add_all_occupancies")
    def add_all_occupancies(
        self, provider_id: str, intervals: Iterable[OccupancyInput]
    ) -> List[OccupancyResponse]:
        """
        Record a batch of booked intervals, all or nothing.

        The batch is checked for internal overlap first, then each interval
        against stored occupancy. Nothing is committed unless every interval
        passes.
        """
        validate_provider_id(provider_id)
        rows = self._prepare(provider_id, intervals)
        if not rows:
            raise ValidationException(
                "At least one occupancy interval is required", code="EMPTY_OCCUPANCY_BATCH"
            )

        self._ensure_batch_disjoint(provider_id, rows)

        with provider_write_lock(provider_id):
            with self.transaction():
                for row in rows:
                    self._ensure_no_stored_conflict(provider_id, row)
                self.repository.add_all(rows)
                responses = [to_response(row) for row in rows]
            self.invalidate_provider_cache(provider_id)

        logger.info(f"Recorded {len(rows)} occupancy interval(s) for provider {provider_id}")
        return responses

    @BaseService.measure_operation("list_occupancy")
    def list_occupancy(
        self, provider_id: str, start_date: date, end_date: Optional[date] = None
    ) -> List[OccupancyResponse]:
        """Occupancy dated within [start_date, end_date], sorted by start."""
        validate_provider_id(provider_id)
        end_date = end_date or start_date
        if end_date < start_date:
            raise ValidationException(
                "End date must not be before start date",
                code="INVALID_DATE_RANGE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        rows = self.repository.get_in_date_range(provider_id, start_date, end_date)
        return [to_response(row) for row in rows]

    @BaseService.measure_operation("remove_occupancy")
    def remove_occupancy(self, source_booking_id: str) -> int:
        """
        Drop every interval tied to a cancelled booking.

        Unknown booking ids are a no-op and return 0.
        """
        rows = self.repository.get_by_booking(source_booking_id)
        removed = 0
        for provider_id in sorted({row.provider_id for row in rows}):
            with provider_write_lock(provider_id):
                with self.transaction():
                    removed += self.repository.delete_by_booking(source_booking_id, provider_id)
                self.invalidate_provider_cache(provider_id)

        logger.info(f"Removed {removed} occupancy interval(s) for booking {source_booking_id}")
        return removed
