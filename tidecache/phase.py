"""Qualitative tide phase at an instant.

The phase combines the local direction of the curve around the instant with
the distance to the surrounding extrema, e.g. "rising, and the low was less
than an hour ago" is RISING_START. Extrema come from the same extractor the
display uses, without the per-kind cap.
"""

# Standard library imports
import datetime
import math
from typing import Iterable, List, Optional

# Third-party imports
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidecache.config import DEFAULT_TIMEZONE
from tidecache.extrema import UNBOUNDED_OPTIONS, ExtremaOptions, extract_extrema
from tidecache.series import build_day_series
from tidecache.types import (
    PhaseLabel,
    TideExtreme,
    TideKind,
    TidePoint,
    TideReading,
    TideTrend,
)
from tidecache.util import minutes_since_midnight


class PhaseWindows(BaseModel, frozen=True):
    """Minute windows around extrema that refine the rising/falling labels."""

    model_config = ConfigDict(extra="forbid")

    after_low_min: float = Field(60, ge=0, description="RISING_START after a low")
    before_high_min: float = Field(90, ge=0, description="BEFORE_HIGH ahead of a high")
    after_high_min: float = Field(60, ge=0, description="FALLING_START after a high")
    before_low_min: float = Field(90, ge=0, description="BEFORE_LOW ahead of a low")


DEFAULT_WINDOWS = PhaseWindows()


def _trend(delta: float, eps_cm: float) -> TideTrend:
    if abs(delta) <= eps_cm:
        return TideTrend.FLAT
    return TideTrend.RISING if delta > 0 else TideTrend.FALLING


def _previous(
    extrema: List[TideExtreme], kind: TideKind, query: float
) -> Optional[TideExtreme]:
    candidates = [e for e in extrema if e.kind is kind and e.minute <= query]
    return candidates[-1] if candidates else None


def _following(
    extrema: List[TideExtreme], kind: TideKind, query: float
) -> Optional[TideExtreme]:
    return next((e for e in extrema if e.kind is kind and e.minute >= query), None)


def classify_phase(
    points: Iterable[TidePoint],
    anchor_date: datetime.date,
    at: datetime.datetime,
    windows: PhaseWindows = DEFAULT_WINDOWS,
    options: ExtremaOptions = UNBOUNDED_OPTIONS,
    timezone: datetime.tzinfo = DEFAULT_TIMEZONE,
) -> PhaseLabel:
    """Label the tide phase at `at` from one day of samples.

    Args:
        points: Raw samples of anchor_date
        anchor_date: Local calendar day the samples belong to
        at: Query instant; naive values are local wall-clock time
        windows: Minute windows for the refined labels
        options: Epsilon and merge window; the per-kind cap is ignored
        timezone: Zone of the samples and of naive query instants

    Returns:
        The phase label, UNKNOWN when fewer than two samples are usable
    """
    points = list(points)
    frame = build_day_series(points, timezone)
    if len(frame) < 2:
        return PhaseLabel.UNKNOWN

    extrema = extract_extrema(
        points, options.model_copy(update={"max_per_kind": None}), timezone
    )
    query = minutes_since_midnight(at, anchor_date, timezone)

    minutes = frame["minute"].to_numpy(dtype=float)
    heights = frame["height_cm"].to_numpy(dtype=float)
    nearest = int(np.argmin(np.abs(minutes - query)))
    before = heights[max(0, nearest - 1)]
    after = heights[min(len(heights) - 1, nearest + 1)]
    trend = _trend(after - before, options.eps_cm)

    prev_high = _previous(extrema, TideKind.HIGH, query)
    next_high = _following(extrema, TideKind.HIGH, query)
    prev_low = _previous(extrema, TideKind.LOW, query)
    next_low = _following(extrema, TideKind.LOW, query)

    since_high = query - prev_high.minute if prev_high else math.inf
    until_high = next_high.minute - query if next_high else math.inf
    since_low = query - prev_low.minute if prev_low else math.inf
    until_low = next_low.minute - query if next_low else math.inf

    if trend is TideTrend.RISING:
        if since_low <= windows.after_low_min:
            return PhaseLabel.RISING_START
        if until_high <= windows.before_high_min:
            return PhaseLabel.BEFORE_HIGH
        return PhaseLabel.RISING

    if trend is TideTrend.FALLING:
        if since_high <= windows.after_high_min:
            return PhaseLabel.FALLING_START
        if until_low <= windows.before_low_min:
            return PhaseLabel.BEFORE_LOW
        return PhaseLabel.FALLING

    near_high = min(since_high, until_high)
    near_low = min(since_low, until_low)
    if near_high < near_low:
        return PhaseLabel.NEAR_HIGH
    if near_low < near_high:
        return PhaseLabel.NEAR_LOW
    return PhaseLabel.STALLED


def tide_at(
    points: Iterable[TidePoint],
    anchor_date: datetime.date,
    at: datetime.datetime,
    timezone: datetime.tzinfo = DEFAULT_TIMEZONE,
) -> Optional[TideReading]:
    """Return the sample nearest to `at` with the direction of the curve there.

    The direction is the sign of the height change between the neighbouring
    samples, without an epsilon. Returns None when no sample is usable.
    """
    frame = build_day_series(points, timezone)
    if frame.empty:
        return None

    query = minutes_since_midnight(at, anchor_date, timezone)
    minutes = frame["minute"].to_numpy(dtype=float)
    heights = frame["height_cm"].to_numpy(dtype=float)
    nearest = int(np.argmin(np.abs(minutes - query)))
    delta = heights[min(len(heights) - 1, nearest + 1)] - heights[max(0, nearest - 1)]
    return TideReading(
        minute=int(minutes[nearest]),
        height_cm=float(heights[nearest]),
        trend=_trend(delta, 0.0),
    )
