"""Utility functions for tests."""

import datetime
import json
from typing import Any, Iterable, List, Optional, Tuple

from tidecache.types import CacheEntry, Station, TidePoint
from tidecache.util import cache_key

STATION = Station(pc="28", hc="1")
DAY = datetime.date(2025, 5, 1)

# Low at 03:00 and 15:00, high at 09:00 and 21:00, one sample per hour
HOURLY_HEIGHTS = [
    60, 45, 35, 30, 35, 50, 70, 90, 105, 110, 105, 90,
    70, 50, 35, 30, 35, 50, 70, 90, 105, 110, 105, 90,
]


def points_from_clock(samples: Iterable[Tuple[str, float]]) -> List[TidePoint]:
    """Build TidePoints from ("HH:MM", cm) pairs."""
    return [TidePoint(time=t, cm=cm) for t, cm in samples]


def hourly_points(heights: Iterable[float] = HOURLY_HEIGHTS) -> List[TidePoint]:
    return [TidePoint(time=f"{h:02d}:00", cm=cm) for h, cm in enumerate(heights)]


def make_entry(
    fetched_at: datetime.datetime,
    station: Station = STATION,
    day: datetime.date = DAY,
    series: Optional[List[TidePoint]] = None,
    tide_name: Optional[str] = "大潮",
) -> CacheEntry:
    return CacheEntry(
        key=cache_key(station.pc, station.hc, day),
        station=station,
        day=day,
        series=series if series is not None else hourly_points(),
        tide_name=tide_name,
        fetched_at=fetched_at,
    )


def tide736_payload(
    day: datetime.date,
    samples: Iterable[Tuple[str, float]],
    tide_name: Optional[str] = "大潮",
) -> dict[str, Any]:
    """Build a tide736 response with the series under tide.chart[day]."""
    day_chart: dict[str, Any] = {
        "tide": [{"time": t, "cm": cm} for t, cm in samples],
    }
    if tide_name is not None:
        day_chart["moon"] = {"title": tide_name}
    return {"status": True, "tide": {"chart": {day.isoformat(): day_chart}}}


def assert_json_serializable(obj: Any) -> None:
    """Assert that an object is JSON serializable.

    Raises:
        AssertionError: If the object is not JSON serializable.
    """
    try:
        json.dumps(obj)
    except (TypeError, ValueError) as e:
        raise AssertionError(f"Object is not JSON serializable: {e}") from e
