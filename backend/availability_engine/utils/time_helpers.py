from datetime import datetime, time
from typing import Union

from ..core.constants import END_OF_DAY_STRINGS, SECONDS_PER_DAY, TIME_OF_DAY_PATTERN


def time_to_string(t: time) -> str:
    """HH:MM, with :SS appended only when the bound carries seconds."""
    if t.second:
        return t.strftime("%H:%M:%S")
    return t.strftime("%H:%M")


def string_to_time(time_str: str) -> time:
    """Parse 'HH:MM[:SS]' strings, mapping the '24:00' sentinel to midnight."""
    normalized = time_str.strip()
    if normalized in END_OF_DAY_STRINGS:
        return time(0, 0)
    if not TIME_OF_DAY_PATTERN.match(normalized):
        raise ValueError(f"invalid time format: {time_str}")
    if len(normalized) == 5:
        normalized += ":00"
    return datetime.strptime(normalized, "%H:%M:%S").time()


def coerce_time(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)
    if isinstance(value, str):
        return string_to_time(value)
    raise ValueError(f"Cannot convert {type(value).__name__} to time")


def seconds_range(start: time, end: time) -> tuple[int, int]:
    """Seconds since midnight for a wall-clock slot; a 00:00 end closes the day."""
    start_s = start.hour * 3600 + start.minute * 60 + start.second
    end_s = end.hour * 3600 + end.minute * 60 + end.second
    if ends_at_midnight(start, end):
        end_s = SECONDS_PER_DAY
    return start_s, end_s


def seconds_to_string(value: int) -> str:
    """Inverse of ``seconds_range`` for one bound; 86400 renders as 24:00."""
    hours, rest = divmod(value, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{hours:02d}:{minutes:02d}"
    return f"{text}:{seconds:02d}" if seconds else text


def ends_at_midnight(start: time, end: time) -> bool:
    # An end bound can never sit at the start of its own day
    return end == time(0, 0)


def format_interval(start: time, end: time) -> str:
    end_str = "24:00" if ends_at_midnight(start, end) else time_to_string(end)
    return f"{time_to_string(start)}-{end_str}"
