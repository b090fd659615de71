"""
Provider profile registry.

The resolver needs each provider's IANA timezone. Providers without a
registered profile fall back to ``settings.default_timezone``.
"""

from typing import Optional

from pytz.tzinfo import BaseTzInfo
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import PROVIDER_ID_PATTERN
from ..core.exceptions import ValidationException
from ..core.provider_lock import provider_write_lock
from ..core.timezone_utils import get_timezone
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import ProviderRegister, ProviderResponse
from .base import BaseService
from .cache_service import ResolvedWindowCache


def validate_provider_id(provider_id: str) -> str:
    """
    Check a provider id before it reaches a store or a lock key.

    Raises:
        ValidationException: If the id is empty, too long or has unsupported characters
    """
    if not isinstance(provider_id, str) or not PROVIDER_ID_PATTERN.fullmatch(provider_id):
        raise ValidationException(
            f"Invalid provider id '{provider_id}'",
            code="INVALID_PROVIDER_ID",
            details={"provider_id": provider_id},
        )
    return provider_id


class ProviderService(BaseService):
    def __init__(self, db: Session, cache: Optional[ResolvedWindowCache] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_provider_repository(db)

    @BaseService.measure_operation("register_provider")
    def register_provider(
        self,
        provider_id: str,
        organization_id: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> ProviderResponse:
        """Create or update a provider profile. A timezone change re-anchors every slot."""
        payload = ProviderRegister(
            provider_id=validate_provider_id(provider_id),
            organization_id=organization_id,
            timezone=timezone or settings.default_timezone,
        )
        get_timezone(payload.timezone)

        with provider_write_lock(payload.provider_id):
            with self.transaction():
                profile = self.repository.upsert(
                    payload.provider_id,
                    organization_id=payload.organization_id,
                    timezone=payload.timezone,
                )
                response = ProviderResponse.model_validate(profile)
            self.invalidate_provider_cache(payload.provider_id)

        self.logger.info(
            f"Registered provider {payload.provider_id} in timezone {payload.timezone}"
        )
        return response

    @BaseService.measure_operation("get_provider")
    def get_provider(self, provider_id: str) -> Optional[ProviderResponse]:
        profile = self.repository.get(validate_provider_id(provider_id))
        if profile is None:
            return None
        return ProviderResponse.model_validate(profile)

    def get_provider_timezone(self, provider_id: str) -> BaseTzInfo:
        profile = self.repository.get(provider_id)
        return get_timezone(profile.timezone if profile else None)
