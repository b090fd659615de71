from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.provider import ProviderProfile
from .base_repository import BaseRepository


class ProviderRepository(BaseRepository[ProviderProfile]):
    def __init__(self, db: Session):
        super().__init__(db, ProviderProfile)

    def get(self, provider_id: str) -> Optional[ProviderProfile]:
        try:
            return self.db.get(ProviderProfile, provider_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to load provider: {str(e)}") from e

    def upsert(
        self, provider_id: str, *, organization_id: Optional[str], timezone: str
    ) -> ProviderProfile:
        row = self.get(provider_id)
        if row is None:
            return self.create(
                provider_id=provider_id, organization_id=organization_id, timezone=timezone
            )
        row.organization_id = organization_id
        row.timezone = timezone
        self.db.flush()
        return row
