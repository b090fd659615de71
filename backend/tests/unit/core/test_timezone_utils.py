from datetime import date, datetime, time

import pytest
import pytz

from availability_engine.core.exceptions import ValidationException
from availability_engine.core.timezone_utils import (
    ensure_aware,
    from_utc_naive,
    get_timezone,
    local_date_of,
    local_day_bounds,
    localize_wall_clock,
    to_utc_naive,
)

NEW_YORK = pytz.timezone("America/New_York")


def test_unknown_timezone_raises_validation_exception():
    with pytest.raises(ValidationException) as exc_info:
        get_timezone("Mars/Olympus")
    assert exc_info.value.code == "INVALID_TIMEZONE"


def test_empty_timezone_uses_default():
    assert get_timezone(None).zone == "UTC"


def test_nonexistent_time_shifts_forward():
    local = localize_wall_clock(date(2025, 3, 9), time(2, 30), NEW_YORK)
    assert (local.hour, local.minute) == (3, 30)
    assert local.utcoffset().total_seconds() == -4 * 3600


def test_ambiguous_time_is_standard_time():
    local = localize_wall_clock(date(2025, 11, 2), time(1, 30), NEW_YORK)
    assert local.utcoffset().total_seconds() == -5 * 3600


def test_day_bounds_on_fall_back_day():
    start, end = local_day_bounds(date(2025, 11, 2), NEW_YORK)
    assert (end - start).total_seconds() == 25 * 3600


def test_utc_naive_round_trip():
    aware = NEW_YORK.localize(datetime(2025, 6, 16, 9, 0))
    stored = to_utc_naive(aware)
    assert stored == datetime(2025, 6, 16, 13, 0)
    assert from_utc_naive(stored) == aware


def test_naive_means_utc():
    assert ensure_aware(datetime(2025, 6, 16, 1, 0)).tzinfo is pytz.UTC
    assert local_date_of(datetime(2025, 6, 16, 1, 0), NEW_YORK) == date(2025, 6, 15)
