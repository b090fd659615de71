"""
Half-open interval algebra used by the availability resolver.

Intervals are ``(start, end)`` tuples of mutually comparable values
(aware datetimes in practice) with ``start < end``. ``end`` is exclusive, so
intervals that merely touch do not overlap.
"""

from datetime import timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")
Interval = Tuple[T, T]


def overlaps(a: Interval, b: Interval) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def contains(interval: Interval, point: T) -> bool:
    return interval[0] <= point < interval[1]


def intersect(a: Interval, b: Interval) -> Optional[Interval]:
    start = max(a[0], b[0])
    end = min(a[1], b[1])
    if start < end:
        return (start, end)
    return None


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort and merge overlapping or touching intervals."""
    ordered = sorted((s, e) for s, e in intervals if s < e)
    if not ordered:
        return []

    merged: List[Interval] = [ordered[0]]
    for start, end in ordered[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            if end > last_end:
                merged[-1] = (last_start, end)
        else:
            merged.append((start, end))
    return merged


def subtract_interval(interval: Interval, cuts: Sequence[Interval]) -> List[Interval]:
    """
    Remove every cut from one interval.

    Returns the remaining pieces (0..len(cuts)+1 of them), sorted.
    """
    segments: List[Interval] = [interval]
    for cut_start, cut_end in merge_intervals(cuts):
        remaining: List[Interval] = []
        for seg_start, seg_end in segments:
            if cut_end <= seg_start or cut_start >= seg_end:
                remaining.append((seg_start, seg_end))
                continue
            if seg_start < cut_start:
                remaining.append((seg_start, cut_start))
            if cut_end < seg_end:
                remaining.append((cut_end, seg_end))
        segments = remaining
        if not segments:
            break
    return segments


def subtract_all(bases: Iterable[Interval], cuts: Sequence[Interval]) -> List[Interval]:
    out: List[Interval] = []
    for base in bases:
        out.extend(subtract_interval(base, cuts))
    return merge_intervals(out)


def intersect_all(bases: Iterable[Interval], masks: Sequence[Interval]) -> List[Interval]:
    """Portions of ``bases`` covered by any of ``masks``."""
    merged_masks = merge_intervals(masks)
    out: List[Interval] = []
    for base in bases:
        for mask in merged_masks:
            piece = intersect(base, mask)
            if piece:
                out.append(piece)
    return merge_intervals(out)


def first_overlap(intervals: Iterable[Interval]) -> Optional[Tuple[Interval, Interval]]:
    """
    Return the first pair of overlapping intervals in start order, if any.

    The returned pair is ``(earlier, later)``.
    """
    ordered = sorted(intervals)
    active: Optional[Interval] = None
    for current in ordered:
        if active is not None and current[0] < active[1]:
            return active, current
        if active is None or current[1] > active[1]:
            active = current
    return None


def chop(interval: Interval, step: timedelta) -> List[Interval]:
    """Split into consecutive ``step``-long pieces from the start, dropping the remainder."""
    pieces: List[Interval] = []
    cursor, end = interval
    while cursor + step <= end:
        pieces.append((cursor, cursor + step))
        cursor = cursor + step
    return pieces
