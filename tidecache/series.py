"""Normalization of raw tide736 samples into a day series.

A raw TidePoint carries its time either as a local "HH:MM" clock string or as
an epoch value. Normalization maps it onto minutes since local midnight,
preferring the clock string and falling back to the epoch. The resulting
DaySeries is a DataFrame with columns minute, height_cm and synthetic, sorted
by minute with duplicate minutes resolved last-write-wins.
"""

# Standard library imports
import datetime
from typing import Iterable, List, Optional

# Third-party imports
import pandas as pd

# Local imports
from tidecache.config import DEFAULT_TIMEZONE
from tidecache.dataframe_models import DaySeriesDataModel
from tidecache.types import NormalizedPoint, TidePoint
from tidecache.util import (
    MINUTES_PER_DAY,
    clamp_minute,
    epoch_to_minute_of_day,
    parse_clock,
)


def normalize_point(
    point: TidePoint, timezone: datetime.tzinfo = DEFAULT_TIMEZONE
) -> Optional[NormalizedPoint]:
    """Map a raw sample onto the day, or return None if its time is unusable."""
    minute: Optional[int] = None
    if point.time is not None:
        minute = parse_clock(point.time)
    if minute is None and point.unix is not None:
        try:
            minute = epoch_to_minute_of_day(point.unix, timezone)
        except (OverflowError, OSError, ValueError):
            minute = None
    if minute is None:
        return None
    return NormalizedPoint(minute=clamp_minute(minute), height_cm=point.height_cm)


def normalize_points(
    points: Iterable[TidePoint], timezone: datetime.tzinfo = DEFAULT_TIMEZONE
) -> List[NormalizedPoint]:
    """Normalize samples in input order, dropping unusable ones."""
    normalized = (normalize_point(p, timezone) for p in points)
    return [p for p in normalized if p is not None]


def build_day_series(
    points: Iterable[TidePoint],
    timezone: datetime.tzinfo = DEFAULT_TIMEZONE,
    with_bounds: bool = False,
) -> pd.DataFrame:
    """Build a validated DaySeries frame from raw samples.

    Args:
        points: Raw samples in provider order
        timezone: Zone used to place epoch samples on the day
        with_bounds: Add synthetic points at minute 0 and 1440

    Returns:
        DataFrame with columns minute (int), height_cm (float), synthetic (bool)
    """
    normalized = normalize_points(points, timezone)
    frame = pd.DataFrame(
        {
            "minute": pd.Series([p.minute for p in normalized], dtype="int64"),
            "height_cm": pd.Series([p.height_cm for p in normalized], dtype="float64"),
        }
    )
    frame = (
        # Stable sort keeps provider order within a minute so "last" means last written
        frame.sort_values("minute", kind="stable")
        .drop_duplicates("minute", keep="last")
        .reset_index(drop=True)
        .assign(synthetic=False)
    )
    if with_bounds:
        frame = add_day_bounds(frame)
    return DaySeriesDataModel.validate(frame)


def add_day_bounds(frame: pd.DataFrame) -> pd.DataFrame:
    """Extend a DaySeries to cover minute 0 and minute 1440.

    Missing ends are flat-extrapolated from the nearest real sample and marked
    synthetic. An empty frame is returned unchanged.
    """
    if frame.empty:
        return frame

    parts = [frame]
    first = frame.iloc[0]
    last = frame.iloc[-1]
    if first["minute"] > 0:
        parts.insert(0, _synthetic_row(0, float(first["height_cm"])))
    if last["minute"] < MINUTES_PER_DAY:
        parts.append(_synthetic_row(MINUTES_PER_DAY, float(last["height_cm"])))
    if len(parts) == 1:
        return frame
    return pd.concat(parts, ignore_index=True)


def _synthetic_row(minute: int, height_cm: float) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "minute": pd.Series([minute], dtype="int64"),
            "height_cm": pd.Series([height_cm], dtype="float64"),
            "synthetic": pd.Series([True], dtype="bool"),
        }
    )
