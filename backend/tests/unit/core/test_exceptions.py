from fastapi import HTTPException

from availability_engine.core.exceptions import (
    ConflictException,
    DomainException,
    InvalidTimeRangeException,
    NotFoundException,
    OccupancyConflictException,
    SlotOverlapException,
    ValidationException,
)


def test_taxonomy():
    assert issubclass(SlotOverlapException, ValidationException)
    assert issubclass(InvalidTimeRangeException, ValidationException)
    assert issubclass(OccupancyConflictException, ConflictException)
    assert issubclass(NotFoundException, DomainException)


def test_to_http_exception_uses_class_status():
    exc = OccupancyConflictException(
        "dr-smith", "10:30-11:30", "10:00-11:00", conflicting_booking_id="bk-1"
    )
    http_exc = exc.to_http_exception()
    assert isinstance(http_exc, HTTPException)
    assert http_exc.status_code == 409
    assert http_exc.detail["code"] == "OCCUPANCY_CONFLICT"
    assert http_exc.detail["details"]["conflicting_booking_id"] == "bk-1"


def test_validation_defaults():
    exc = ValidationException("bad input")
    assert exc.code == "ValidationException"
    assert exc.details == {}
    assert exc.to_http_exception().status_code == 400
    assert str(exc) == "bad input"


def test_not_found_maps_to_404():
    assert NotFoundException("missing").to_http_exception().status_code == 404
