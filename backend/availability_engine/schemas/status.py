"""Current status schema."""

import datetime
from typing import Optional

from pydantic import BaseModel

from ..core.enums import ProviderStatus
from .availability import ResolvedWindowResponse


class ProviderStatusResponse(BaseModel):
    provider_id: str
    evaluated_at: datetime.datetime
    available: bool
    status: ProviderStatus
    current_window: Optional[ResolvedWindowResponse] = None
    next_available_at: Optional[datetime.datetime] = None
