# backend/availability_engine/services/availability_resolver.py
"""
Availability resolution: base schedule + override + occupancy -> windows.

Everything here is a pure function over snapshots already read from the
stores. Nothing touches the database or the cache, so any number of
resolutions may run concurrently.

Per calendar date ``d``:

1. The effective slots are the override's slots when an override exists for
   ``d`` (even an empty one), otherwise the base slots of ``d``'s weekday.
2. Wall-clock bounds are anchored to ``d`` in the provider's timezone.
3. Closed slots (``is_available=False``) never yield free time.
4. Occupancy is subtracted from the available slots.
5. Touching pieces are merged.
6. Free windows are emitted sorted; time outside every slot is busy.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from pytz.tzinfo import BaseTzInfo

from ..core.enums import DayOfWeek
from ..core.timezone_utils import localize_wall_clock
from ..utils.intervals import Interval, chop, intersect_all, merge_intervals, subtract_all
from ..utils.time_helpers import ends_at_midnight


class ResolvedWindow(NamedTuple):
    date: date
    start: datetime
    end: datetime
    is_available: bool

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class EffectiveSlot(NamedTuple):
    start_time: time
    end_time: time
    is_available: bool


@dataclass
class ScheduleSnapshot:
    """Everything the resolver needs for one provider over a date range."""

    provider_id: str
    tz: BaseTzInfo
    base_week: Dict[DayOfWeek, List[EffectiveSlot]] = field(default_factory=dict)
    overrides: Dict[date, List[EffectiveSlot]] = field(default_factory=dict)
    occupancy: List[Interval] = field(default_factory=list)


def effective_slots(snapshot: ScheduleSnapshot, day: date) -> Tuple[List[EffectiveSlot], bool]:
    """Return the slots in force on ``day`` and whether they come from an override."""
    if day in snapshot.overrides:
        return list(snapshot.overrides[day]), True
    return list(snapshot.base_week.get(DayOfWeek.from_date(day), [])), False


def slot_instants(day: date, slot: EffectiveSlot, tz: BaseTzInfo) -> Optional[Interval]:
    """
    Anchor a wall-clock slot to ``day`` in ``tz``.

    Returns None when the slot collapses to nothing, which only happens when a
    DST transition swallows it entirely.
    """
    start = localize_wall_clock(day, slot.start_time, tz)
    if ends_at_midnight(slot.start_time, slot.end_time):
        end = localize_wall_clock(day + timedelta(days=1), time(0, 0), tz)
    else:
        end = localize_wall_clock(day, slot.end_time, tz)
    if start >= end:
        return None
    return start, end


def resolve_day(
    day: date,
    slots: Sequence[EffectiveSlot],
    occupancy: Iterable[Interval],
    tz: BaseTzInfo,
    include_busy: bool = False,
) -> List[ResolvedWindow]:
    """Resolve one date. Always returns a (possibly empty) sorted list."""
    available: List[Interval] = []
    closed: List[Interval] = []
    for slot in slots:
        span = slot_instants(day, slot, tz)
        if span is None:
            continue
        (available if slot.is_available else closed).append(span)

    cuts = merge_intervals(occupancy)
    free = subtract_all(available, cuts)
    windows = [_window(day, span, True, tz) for span in free]

    if include_busy:
        busy = merge_intervals(closed + intersect_all(available, cuts))
        windows.extend(_window(day, span, False, tz) for span in busy)
        windows.sort(key=lambda w: (w.start, w.end, not w.is_available))

    return windows


def resolve_range(
    snapshot: ScheduleSnapshot,
    start_date: date,
    end_date: date,
    include_busy: bool = False,
) -> Dict[date, List[ResolvedWindow]]:
    """Resolve every date of [start_date, end_date], keyed by date in order."""
    resolved: Dict[date, List[ResolvedWindow]] = {}
    day = start_date
    while day <= end_date:
        slots, _ = effective_slots(snapshot, day)
        resolved[day] = resolve_day(day, slots, snapshot.occupancy, snapshot.tz, include_busy)
        day += timedelta(days=1)
    return resolved


def has_available_slot(snapshot: ScheduleSnapshot, day: date) -> bool:
    slots, _ = effective_slots(snapshot, day)
    return any(slot.is_available for slot in slots)


def split_into_bookable(
    windows: Iterable[ResolvedWindow], window_minutes: int, tz: BaseTzInfo
) -> List[ResolvedWindow]:
    """Chop free windows into fixed-length pieces; shorter remainders are dropped."""
    step = timedelta(minutes=window_minutes)
    pieces: List[ResolvedWindow] = []
    for window in windows:
        if not window.is_available:
            continue
        for span in chop((window.start, window.end), step):
            pieces.append(_window(window.date, span, True, tz))
    return pieces


def free_only(windows: Iterable[ResolvedWindow]) -> List[ResolvedWindow]:
    return [w for w in windows if w.is_available]


def total_free_hours(windows: Iterable[ResolvedWindow]) -> float:
    seconds = sum(w.duration.total_seconds() for w in windows if w.is_available)
    return round(seconds / 3600.0, 2)


def _window(day: date, span: Interval, is_available: bool, tz: BaseTzInfo) -> ResolvedWindow:
    start, end = span
    return ResolvedWindow(day, start.astimezone(tz), end.astimezone(tz), is_available)
