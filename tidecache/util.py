"""Shared utilities."""

# Standard library imports
import datetime
from typing import Optional

# Epoch values below this are seconds, at or above it milliseconds.
# 1e12 ms is September 2001; 1e12 s is far beyond any tide table.
EPOCH_MS_THRESHOLD = 1e12

MINUTES_PER_DAY = 1440


def utc_now() -> datetime.datetime:
    """Returns the current time in UTC as a naive datetime (without timezone information).

    Cache timestamps are stored as naive UTC datetimes.
    """
    # Get timezone-aware UTC time, then strip the timezone to make it naive
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def epoch_to_ms(value: float) -> float:
    """Resolve an epoch value of ambiguous unit to milliseconds.

    tide736 points may carry their timestamp in seconds or in milliseconds.
    Anything below EPOCH_MS_THRESHOLD is taken as seconds.
    """
    if value < EPOCH_MS_THRESHOLD:
        return value * 1000
    return value


def epoch_to_minute_of_day(value: float, timezone: datetime.tzinfo) -> int:
    """Convert an epoch value to minutes since local midnight in `timezone`."""
    ms = epoch_to_ms(value)
    utc = datetime.datetime.fromtimestamp(ms / 1000, tz=datetime.timezone.utc)
    local = utc.astimezone(timezone)
    return local.hour * 60 + local.minute


def parse_clock(value: str) -> Optional[int]:
    """Parse an "HH:MM" clock string into minutes since midnight.

    Returns None when the string does not hold two numeric fields. Values are
    not range-checked here; callers clamp to the day.
    """
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    return hours * 60 + minutes


def clamp_minute(minute: int) -> int:
    """Clamp a minute value to [0, 1440]."""
    return max(0, min(MINUTES_PER_DAY, minute))


def format_hm(minute: float) -> str:
    """Format minutes since midnight as "HH:MM" (24:00 for the end of day)."""
    m = clamp_minute(int(round(minute)))
    return f"{m // 60:02d}:{m % 60:02d}"


def day_key(day: datetime.date) -> str:
    """Return the YYYY-MM-DD key used both by tide736 charts and the cache."""
    return day.strftime("%Y-%m-%d")


def cache_key(pc: str, hc: str, day: datetime.date) -> str:
    """Return the cache primary key for a station and day."""
    return f"{pc}:{hc}:{day_key(day)}"


def to_local_naive(
    when: datetime.datetime, timezone: datetime.tzinfo
) -> datetime.datetime:
    """Convert an instant to a naive wall-clock datetime in `timezone`.

    Naive inputs are assumed to already be local wall-clock times.
    """
    if when.tzinfo is None:
        return when
    return when.astimezone(timezone).replace(tzinfo=None)


def minutes_since_midnight(
    when: datetime.datetime, day: datetime.date, timezone: datetime.tzinfo
) -> float:
    """Minutes from local midnight of `day` to `when` (may fall outside the day)."""
    local = to_local_naive(when, timezone)
    delta = local - datetime.datetime.combine(day, datetime.time())
    return delta.total_seconds() / 60
