from datetime import time

import pytest

from availability_engine.core.enums import DayOfWeek
from availability_engine.core.exceptions import (
    InvalidTimeRangeException,
    SlotOverlapException,
    ValidationException,
)
from availability_engine.schemas.availability import BaseWeekSet, TimeSlotIn
from availability_engine.services.slot_validation import (
    parse_day_of_week,
    validate_day_slots,
    validate_week,
)


def test_slots_come_back_sorted():
    slots = validate_day_slots(
        [
            {"start_time": "13:00", "end_time": "17:00"},
            {"start_time": "09:00", "end_time": "12:00", "is_available": False},
        ],
        "MONDAY",
    )
    assert [s.start_time for s in slots] == [time(9, 0), time(13, 0)]
    assert slots[0].is_available is False


def test_touching_slots_are_allowed():
    slots = validate_day_slots(
        [{"start_time": "09:00", "end_time": "12:00"}, {"start_time": "12:00", "end_time": "24:00"}],
        "MONDAY",
    )
    assert slots[1].end_time == time(0, 0)


def test_overlap_is_rejected_with_both_ranges():
    with pytest.raises(SlotOverlapException) as exc_info:
        validate_day_slots(
            [
                {"start_time": "09:00", "end_time": "12:00"},
                {"start_time": "11:30", "end_time": "13:00"},
            ],
            "MONDAY",
        )
    exc = exc_info.value
    assert exc.code == "SLOT_OVERLAP"
    assert exc.details["new_slot"] == "11:30-13:00"
    assert exc.details["conflicting_slot"] == "09:00-12:00"
    assert exc.status_code == 400


def test_closed_slot_still_counts_for_overlap():
    with pytest.raises(SlotOverlapException):
        validate_day_slots(
            [
                {"start_time": "09:00", "end_time": "17:00"},
                {"start_time": "12:00", "end_time": "13:00", "is_available": False},
            ],
            "TUESDAY",
        )


@pytest.mark.parametrize(("start", "end"), [("10:00", "09:00"), ("10:00", "10:00")])
def test_inverted_or_empty_slot_is_rejected(start, end):
    with pytest.raises(InvalidTimeRangeException) as exc_info:
        validate_day_slots([{"start_time": start, "end_time": end}], "MONDAY")
    assert exc_info.value.code == "INVALID_TIME_RANGE"
    assert exc_info.value.details["context"] == "MONDAY"


def test_malformed_time_becomes_validation_exception():
    with pytest.raises(ValidationException) as exc_info:
        validate_day_slots([{"start_time": "9am", "end_time": "17:00"}], "MONDAY")
    assert exc_info.value.details["errors"]
    assert exc_info.value.details["errors"][0]["loc"][0] == 0


def test_start_at_end_of_day_is_rejected():
    with pytest.raises(ValidationException):
        validate_day_slots([{"start_time": "24:00", "end_time": "24:00"}], "MONDAY")


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationException):
        validate_day_slots([{"start_time": "09:00", "end_time": "10:00", "room": "A"}], "MONDAY")


def test_validate_week_fills_missing_days():
    week = validate_week({"monday": [TimeSlotIn(start_time="09:00", end_time="10:00")]})
    assert list(week) == DayOfWeek.ordered()
    assert len(week[DayOfWeek.MONDAY]) == 1
    assert week[DayOfWeek.SUNDAY] == []


def test_validate_week_accepts_schema():
    payload = BaseWeekSet(
        slots_by_day={DayOfWeek.FRIDAY: [{"start_time": "08:00", "end_time": "09:00"}]}
    )
    assert validate_week(payload)[DayOfWeek.FRIDAY][0].start_time == time(8, 0)


def test_unknown_day_is_rejected():
    with pytest.raises(ValidationException) as exc_info:
        parse_day_of_week("FUNDAY")
    assert exc_info.value.code == "INVALID_DAY_OF_WEEK"


def test_overlap_of_a_few_seconds_is_rejected():
    with pytest.raises(SlotOverlapException) as exc_info:
        validate_day_slots(
            [
                {"start_time": "09:00:00", "end_time": "10:00:30"},
                {"start_time": "10:00:10", "end_time": "11:00"},
            ],
            "MONDAY",
        )
    assert exc_info.value.details["new_slot"] == "10:00:10-11:00"
    assert exc_info.value.details["conflicting_slot"] == "09:00-10:00:30"


def test_sub_minute_slot_is_valid():
    slots = validate_day_slots([{"start_time": "09:00:10", "end_time": "09:00:50"}], "MONDAY")
    assert slots[0].start_time == time(9, 0, 10)
    assert slots[0].end_time == time(9, 0, 50)


def test_slots_touching_at_a_second_boundary_are_allowed():
    slots = validate_day_slots(
        [
            {"start_time": "10:00:30", "end_time": "11:00"},
            {"start_time": "09:00", "end_time": "10:00:30"},
        ],
        "MONDAY",
    )
    assert [s.start_time for s in slots] == [time(9, 0), time(10, 0, 30)]
