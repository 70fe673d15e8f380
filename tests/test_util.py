import datetime

import pytest
import pytz
from freezegun import freeze_time

from tidecache import util

TOKYO = pytz.timezone("Asia/Tokyo")

# 2025-05-01 06:00 JST
SIX_AM_JST_SECONDS = 1746046800


def test_now() -> None:
    """Test that utc_now() returns naive datetime without timezone information."""
    now = util.utc_now()
    assert isinstance(now, datetime.datetime)
    assert now.tzinfo is None

    utc_now = datetime.datetime.now(tz=datetime.timezone.utc).replace(tzinfo=None)
    assert abs((utc_now - now).total_seconds()) < 1


@freeze_time("2025-05-01 03:04:05")
def test_now_frozen() -> None:
    assert util.utc_now() == datetime.datetime(2025, 5, 1, 3, 4, 5)


@pytest.mark.parametrize(
    "value,expected_ms",
    [
        (999_999_999_999, 999_999_999_999_000),  # just below the threshold: seconds
        (1e12, 1e12),  # at the threshold: already milliseconds
        (SIX_AM_JST_SECONDS, SIX_AM_JST_SECONDS * 1000),
        (SIX_AM_JST_SECONDS * 1000, SIX_AM_JST_SECONDS * 1000),
        (0, 0),
    ],
)
def test_epoch_to_ms_threshold(value: float, expected_ms: float) -> None:
    assert util.epoch_to_ms(value) == expected_ms


def test_epoch_to_minute_of_day_either_unit() -> None:
    assert util.epoch_to_minute_of_day(SIX_AM_JST_SECONDS, TOKYO) == 360
    assert util.epoch_to_minute_of_day(SIX_AM_JST_SECONDS * 1000, TOKYO) == 360
    # Same instant in UTC is 21:00 the previous day
    assert util.epoch_to_minute_of_day(SIX_AM_JST_SECONDS, pytz.utc) == 21 * 60


@pytest.mark.parametrize(
    "value,expected",
    [
        ("00:00", 0),
        ("06:30", 390),
        ("6:05", 365),
        ("24:00", 1440),
        (" 12:15 ", 735),
        ("12:15:30", 735),  # seconds are ignored
        ("1230", None),
        ("ab:cd", None),
        ("", None),
    ],
)
def test_parse_clock(value: str, expected: int | None) -> None:
    assert util.parse_clock(value) == expected


@pytest.mark.parametrize(
    "minute,expected",
    [(-5, 0), (0, 0), (720, 720), (1440, 1440), (1500, 1440)],
)
def test_clamp_minute(minute: int, expected: int) -> None:
    assert util.clamp_minute(minute) == expected


@pytest.mark.parametrize(
    "minute,expected",
    [(0, "00:00"), (65, "01:05"), (719.6, "12:00"), (1440, "24:00"), (2000, "24:00")],
)
def test_format_hm(minute: float, expected: str) -> None:
    assert util.format_hm(minute) == expected


def test_keys() -> None:
    day = datetime.date(2025, 5, 1)
    assert util.day_key(day) == "2025-05-01"
    assert util.cache_key("28", "1", day) == "28:1:2025-05-01"


def test_minutes_since_midnight_naive_and_aware() -> None:
    day = datetime.date(2025, 5, 1)
    naive = datetime.datetime(2025, 5, 1, 6, 30)
    assert util.minutes_since_midnight(naive, day, TOKYO) == 390

    aware = datetime.datetime(2025, 4, 30, 21, 30, tzinfo=datetime.timezone.utc)
    assert util.minutes_since_midnight(aware, day, TOKYO) == 390

    # Instants on other days fall outside [0, 1440]
    next_day = datetime.datetime(2025, 5, 2, 1, 0)
    assert util.minutes_since_midnight(next_day, day, TOKYO) == 1500
