from __future__ import annotations

from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import DayOfWeek
from ..core.exceptions import RepositoryException
from ..models.base_availability import WeeklyBaseSlot
from .base_repository import BaseRepository


class BaseAvailabilityRepository(BaseRepository[WeeklyBaseSlot]):
    """Data access for the weekly base schedule store."""

    def __init__(self, db: Session):
        super().__init__(db, WeeklyBaseSlot)

    def get_week_slots(self, provider_id: str) -> List[WeeklyBaseSlot]:
        try:
            return (
                self.db.query(WeeklyBaseSlot)
                .filter(WeeklyBaseSlot.provider_id == provider_id)
                .order_by(WeeklyBaseSlot.day_of_week, WeeklyBaseSlot.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading base week for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to load base schedule: {str(e)}") from e

    def get_week_by_day(self, provider_id: str) -> Dict[DayOfWeek, List[WeeklyBaseSlot]]:
        """Return all 7 days, empty lists for days without slots."""
        week: Dict[DayOfWeek, List[WeeklyBaseSlot]] = {day: [] for day in DayOfWeek.ordered()}
        for row in self.get_week_slots(provider_id):
            week[DayOfWeek(row.day_of_week)].append(row)
        for slots in week.values():
            slots.sort(key=lambda s: s.start_time)
        return week

    def delete_week(self, provider_id: str) -> int:
        try:
            deleted = (
                self.db.query(WeeklyBaseSlot)
                .filter(WeeklyBaseSlot.provider_id == provider_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting base week for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete base schedule: {str(e)}") from e

    def replace_week(self, provider_id: str, rows: List[WeeklyBaseSlot]) -> int:
        """Delete the provider's slots and stage ``rows`` in their place."""
        self.delete_week(provider_id)
        if rows:
            self.add_all(rows)
        return len(rows)
