from datetime import time

import pytest
import pytz

from availability_engine.utils.time_helpers import (
    coerce_time,
    format_interval,
    seconds_range,
    seconds_to_string,
    string_to_time,
    time_to_string,
)


def test_string_to_time_accepts_minutes_and_seconds():
    assert string_to_time("09:30") == time(9, 30)
    assert string_to_time("09:30:15") == time(9, 30, 15)


def test_end_of_day_sentinel_maps_to_midnight():
    assert string_to_time("24:00") == time(0, 0)
    assert string_to_time("24:00:00") == time(0, 0)


@pytest.mark.parametrize("bad", ["9:00", "25:00", "12:60", "noon", ""])
def test_string_to_time_rejects_garbage(bad):
    with pytest.raises(ValueError):
        string_to_time(bad)


def test_coerce_time_strips_tzinfo():
    assert coerce_time(time(8, 0, tzinfo=pytz.UTC)).tzinfo is None
    with pytest.raises(ValueError):
        coerce_time(930)


def test_midnight_end_closes_the_day():
    assert seconds_range(time(22, 0), time(0, 0)) == (22 * 3600, 86400)
    assert seconds_range(time(0, 0), time(0, 0)) == (0, 86400)
    assert seconds_range(time(9, 0), time(17, 30)) == (32400, 63000)


def test_seconds_range_keeps_sub_minute_precision():
    assert seconds_range(time(9, 0, 10), time(9, 0, 50)) == (32410, 32450)
    assert seconds_to_string(32410) == "09:00:10"
    assert seconds_to_string(86400) == "24:00"


def test_format_interval():
    assert format_interval(time(9, 0), time(17, 0)) == "09:00-17:00"
    assert format_interval(time(18, 0), time(0, 0)) == "18:00-24:00"
    assert time_to_string(time(7, 5, 59)) == "07:05:59"
    assert time_to_string(time(7, 5)) == "07:05"
