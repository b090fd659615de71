"""
Validation shared by the base schedule and override stores.

Slots are sorted by start before checking, so callers may submit them in any
order. A day is rejected as a whole; nothing is persisted on failure.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import TypeAdapter, ValidationError

from ..core.enums import DayOfWeek
from ..core.exceptions import InvalidTimeRangeException, SlotOverlapException, ValidationException
from ..schemas.availability import BaseWeekSet, TimeSlotIn
from ..utils.intervals import first_overlap
from ..utils.time_helpers import seconds_range, seconds_to_string, time_to_string

_SLOT_LIST = TypeAdapter(List[TimeSlotIn])

SlotInput = Union[TimeSlotIn, Mapping[str, Any]]


def pydantic_to_validation_exception(exc: ValidationError, message: str) -> ValidationException:
    """Re-express a pydantic failure in the engine's error taxonomy."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return ValidationException(message, code="INVALID_SLOT", details={"errors": errors})


def coerce_slots(raw: Iterable[SlotInput], scope: str) -> List[TimeSlotIn]:
    try:
        return _SLOT_LIST.validate_python(
            [s.model_dump() if isinstance(s, TimeSlotIn) else s for s in raw]
        )
    except ValidationError as exc:
        raise pydantic_to_validation_exception(exc, f"Malformed slot definition on {scope}")


def validate_day_slots(raw: Iterable[SlotInput], scope: str) -> List[TimeSlotIn]:
    """
    Validate one day's slots and return them sorted by start time.

    Raises:
        ValidationException: A slot could not be parsed
        InvalidTimeRangeException: A slot does not start before it ends
        SlotOverlapException: Two slots share any time
    """
    slots = coerce_slots(raw, scope)
    ranges = []
    for slot in slots:
        start_s, end_s = seconds_range(slot.start_time, slot.end_time)
        if start_s >= end_s:
            raise InvalidTimeRangeException(
                time_to_string(slot.start_time), time_to_string(slot.end_time), context=scope
            )
        ranges.append((start_s, end_s))

    collision = first_overlap(ranges)
    if collision is not None:
        earlier, later = collision
        raise SlotOverlapException(scope, _describe(later), _describe(earlier))

    return sorted(slots, key=lambda s: seconds_range(s.start_time, s.end_time))


def validate_week(
    slots_by_day: Union[BaseWeekSet, Mapping[Any, Iterable[SlotInput]]],
) -> Dict[DayOfWeek, List[TimeSlotIn]]:
    """Validate a full week; days not mentioned come back empty."""
    if isinstance(slots_by_day, BaseWeekSet):
        raw_week: Mapping[Any, Iterable[SlotInput]] = slots_by_day.slots_by_day
    else:
        raw_week = slots_by_day

    week: Dict[DayOfWeek, List[TimeSlotIn]] = {day: [] for day in DayOfWeek.ordered()}
    for key, slots in raw_week.items():
        day = parse_day_of_week(key)
        week[day] = validate_day_slots(slots or [], day.value)
    return week


def parse_day_of_week(value: Any) -> DayOfWeek:
    if isinstance(value, DayOfWeek):
        return value
    try:
        return DayOfWeek(str(value).strip().upper())
    except ValueError:
        raise ValidationException(
            f"Unknown day of week '{value}'",
            code="INVALID_DAY_OF_WEEK",
            details={"day_of_week": str(value)},
        )


def _describe(second_range: tuple[int, int]) -> str:
    start_s, end_s = second_range
    return f"{seconds_to_string(start_s)}-{seconds_to_string(end_s)}"
