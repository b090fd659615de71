from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import DayOfWeek
from ..core.exceptions import RepositoryException
from ..models.availability_override import OverrideDay
from .base_repository import BaseRepository


class OverrideRepository(BaseRepository[OverrideDay]):
    """Data access for date-specific overrides."""

    def __init__(self, db: Session):
        super().__init__(db, OverrideDay)

    def get_for_key(
        self, provider_id: str, week_start_date: date, day_of_week: DayOfWeek
    ) -> Optional[OverrideDay]:
        return self.find_one_by(
            provider_id=provider_id,
            week_start_date=week_start_date,
            day_of_week=day_of_week.value,
        )

    def get_in_range(self, provider_id: str, start_date: date, end_date: date) -> List[OverrideDay]:
        try:
            return (
                self.db.query(OverrideDay)
                .filter(
                    OverrideDay.provider_id == provider_id,
                    OverrideDay.override_date >= start_date,
                    OverrideDay.override_date <= end_date,
                )
                .order_by(OverrideDay.override_date)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading overrides for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to load overrides: {str(e)}") from e

    def get_by_date(self, provider_id: str, start_date: date, end_date: date) -> Dict[date, OverrideDay]:
        return {row.override_date: row for row in self.get_in_range(provider_id, start_date, end_date)}
