from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.occupancy import Occupancy
from .base_repository import BaseRepository


class OccupancyRepository(BaseRepository[Occupancy]):
    """
    Data access for booked intervals.

    Instants passed in and out are naive UTC, matching the stored columns.
    """

    def __init__(self, db: Session):
        super().__init__(db, Occupancy)

    def get_in_date_range(self, provider_id: str, start_date: date, end_date: date) -> List[Occupancy]:
        try:
            return (
                self.db.query(Occupancy)
                .filter(
                    Occupancy.provider_id == provider_id,
                    Occupancy.occupancy_date >= start_date,
                    Occupancy.occupancy_date <= end_date,
                )
                .order_by(Occupancy.start_at, Occupancy.end_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing occupancy for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to list occupancy: {str(e)}") from e

    def get_overlapping(self, provider_id: str, start_at: datetime, end_at: datetime) -> List[Occupancy]:
        """Occupancies intersecting the half-open span [start_at, end_at)."""
        try:
            return (
                self.db.query(Occupancy)
                .filter(
                    Occupancy.provider_id == provider_id,
                    Occupancy.start_at < end_at,
                    Occupancy.end_at > start_at,
                )
                .order_by(Occupancy.start_at, Occupancy.end_at)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking occupancy overlap for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to query occupancy: {str(e)}") from e

    def get_by_booking(self, source_booking_id: str) -> List[Occupancy]:
        return self.find_by(source_booking_id=source_booking_id)

    def delete_by_booking(self, source_booking_id: str, provider_id: Optional[str] = None) -> int:
        try:
            query = self.db.query(Occupancy).filter(
                Occupancy.source_booking_id == source_booking_id
            )
            if provider_id is not None:
                query = query.filter(Occupancy.provider_id == provider_id)
            deleted = query.delete(synchronize_session=False)
            self.db.flush()
            return int(deleted or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error removing occupancy for booking {source_booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to remove occupancy: {str(e)}") from e
