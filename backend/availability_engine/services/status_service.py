# backend/availability_engine/services/status_service.py
"""
Status evaluator: is the provider free at an instant, and if not, when next.

The forward search covers the instant's local date plus
``settings.status_horizon_days`` following dates. Finding nothing is a
normal answer (``next_available_at`` is None), not an error.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ProviderStatus
from ..core.timezone_utils import ensure_aware, local_date_of, utc_now
from ..schemas.availability import ResolvedWindowResponse
from ..schemas.status import ProviderStatusResponse
from ..utils.intervals import contains
from .availability_resolver import has_available_slot, resolve_range
from .availability_service import AvailabilityService
from .base import BaseService
from .cache_service import ResolvedWindowCache
from .provider_service import validate_provider_id


class StatusService(BaseService):
    def __init__(
        self,
        db: Session,
        cache: Optional[ResolvedWindowCache] = None,
        availability_service: Optional[AvailabilityService] = None,
    ):
        super().__init__(db, cache)
        self.availability_service = availability_service or AvailabilityService(db, cache)

    @BaseService.measure_operation("is_available_now")
    def is_available_now(
        self,
        provider_id: str,
        instant: Optional[datetime] = None,
        horizon_days: Optional[int] = None,
    ) -> ProviderStatusResponse:
        """
        Evaluate the provider at ``instant`` (defaults to now, naive means UTC).

        ``next_available_at`` is only set when the provider is not free at
        ``instant``: the start of the first later free window within the
        horizon.
        """
        validate_provider_id(provider_id)
        horizon = settings.status_horizon_days if horizon_days is None else horizon_days
        moment = ensure_aware(instant or utc_now())

        tz = self.availability_service.provider_service.get_provider_timezone(provider_id)
        today = local_date_of(moment, tz)
        last_day = today + timedelta(days=horizon)

        snapshot = self.availability_service.load_snapshot(provider_id, today, last_day)
        resolved = resolve_range(snapshot, today, last_day)

        current_window = next(
            (w for w in resolved[today] if contains((w.start, w.end), moment)), None
        )
        next_available_at = None
        if current_window is None:
            next_available_at = next(
                (w.start for windows in resolved.values() for w in windows if w.start > moment),
                None,
            )

        if any(contains(span, moment) for span in snapshot.occupancy):
            status = ProviderStatus.CONSULTING
        elif current_window is not None:
            status = ProviderStatus.AVAILABLE
        elif not has_available_slot(snapshot, today):
            status = ProviderStatus.OFF_DUTY
        else:
            status = ProviderStatus.UNAVAILABLE

        return ProviderStatusResponse(
            provider_id=provider_id,
            evaluated_at=moment.astimezone(tz),
            available=current_window is not None,
            status=status,
            current_window=(
                ResolvedWindowResponse.from_window(current_window) if current_window else None
            ),
            next_available_at=next_available_at,
        )

    def get_current_status(self, provider_id: str) -> ProviderStatusResponse:
        return self.is_available_now(provider_id, utc_now())
