# backend/availability_engine/core/exceptions.py
"""
Domain-specific exceptions for the availability engine.

These exceptions carry business-focused messages and a stable ``code`` so
the calling layer can translate them for its transport without knowing
engine internals.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when slot or occupancy input is malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a write collides with existing data."""

    status_code = status.HTTP_409_CONFLICT


# Specific business exceptions


class InvalidTimeRangeException(ValidationException):
    """Raised when a slot or interval does not start before it ends."""

    def __init__(self, start: str, end: str, *, context: Optional[str] = None):
        where = f" ({context})" if context else ""
        super().__init__(
            message=f"Start {start} must be before end {end}{where}",
            code="INVALID_TIME_RANGE",
            details={"start": start, "end": end, "context": context},
        )


class SlotOverlapException(ValidationException):
    """Raised when two slots of the same day overlap."""

    def __init__(self, scope: str, new_range: str, conflicting_range: str):
        super().__init__(
            message=f"Overlapping slot on {scope}: {new_range} conflicts with {conflicting_range}",
            code="SLOT_OVERLAP",
            details={
                "scope": scope,
                "new_slot": new_range,
                "conflicting_slot": conflicting_range,
            },
        )


class OccupancyConflictException(ConflictException):
    """Raised when an occupancy interval collides with another occupancy."""

    def __init__(
        self,
        provider_id: str,
        new_range: str,
        conflicting_range: str,
        *,
        conflicting_booking_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message
            or f"Occupancy {new_range} conflicts with existing occupancy {conflicting_range}",
            code="OCCUPANCY_CONFLICT",
            details={
                "provider_id": provider_id,
                "new_interval": new_range,
                "conflicting_interval": conflicting_range,
                "conflicting_booking_id": conflicting_booking_id,
            },
        )


class ProviderBusyException(ConflictException):
    """Raised when another writer holds the provider's schedule lock for too long."""

    def __init__(self, provider_id: str, timeout_s: float):
        super().__init__(
            message=f"Schedule for provider {provider_id} is being modified, try again",
            code="PROVIDER_BUSY",
            details={"provider_id": provider_id, "timeout_seconds": timeout_s},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations. Never retried internally.
    """
