"""Schema bases shared by the schedule and occupancy DTOs."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Computed results handed back to callers; read-only once built."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class StrictRequestModel(BaseModel):
    """Caller input. Unknown keys are rejected so typos in slot payloads surface."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, validate_assignment=True)
