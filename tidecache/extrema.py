"""High/low tide extraction from a sampled day curve.

The curve is a handful to a few hundred irregular samples. Extrema are found
by slope reversal between consecutive samples rather than by peak fitting:

1. Samples are normalized and deduplicated into a DaySeries (see series.py).
2. Fewer than three samples cannot hold a reversal; the result is empty.
3. The day is closed with flat synthetic points at 00:00 and 24:00.
4. A slope whose magnitude is within eps_cm counts as flat. Flats do not reset
   the direction of travel: the next real move is compared with the last one.
5. A rise followed by a fall records a HIGH at the turning sample; the mirror
   records a LOW. A run still moving when it meets the synthetic end of the
   day is closed there, at the sample where the height last moved. The start
   of the day is never closed; entering the data is not a turning point.
6. Same-kind extrema within merge_window_min of each other are collapsed into
   the more extreme one, which absorbs double-counted plateau shoulders.
7. With max_per_kind set, only the chronologically first highs and lows are
   kept (the display cut); with None, every merged extremum is kept.

The same function serves the display graph, the day summary and the phase
classifier, which only differ in their ExtremaOptions.
"""

# Standard library imports
import datetime
import math
from typing import Dict, Iterable, List, Optional

# Third-party imports
import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidecache.config import DEFAULT_TIMEZONE
from tidecache.series import add_day_bounds, build_day_series
from tidecache.types import (
    SummaryEvent,
    TideDaySummary,
    TideExtreme,
    TideKind,
    TidePoint,
)


class ExtremaOptions(BaseModel, frozen=True):
    """Tuning knobs for extract_extrema."""

    model_config = ConfigDict(extra="forbid")

    eps_cm: float = Field(1.0, ge=0, description="Height change treated as flat")
    merge_window_min: int = Field(
        5, ge=0, description="Same-kind extrema this close are merged"
    )
    max_per_kind: Optional[int] = Field(
        2, ge=0, description="Keep the first N highs and N lows; None keeps all"
    )


DISPLAY_OPTIONS = ExtremaOptions()
UNBOUNDED_OPTIONS = ExtremaOptions(max_per_kind=None)


def slope_signs(heights: np.ndarray, eps_cm: float) -> np.ndarray:
    """Return the sign of each step between consecutive heights.

    Steps with magnitude <= eps_cm are 0 (flat).
    """
    deltas = np.diff(heights)
    signs = np.sign(deltas).astype(int)
    signs[np.abs(deltas) <= eps_cm] = 0
    return signs


def extract_extrema(
    points: Iterable[TidePoint],
    options: ExtremaOptions = DISPLAY_OPTIONS,
    timezone: datetime.tzinfo = DEFAULT_TIMEZONE,
) -> List[TideExtreme]:
    """Derive high/low tide events from a day of raw samples.

    Never raises on bad samples; unusable input yields an empty list.

    Args:
        points: Raw samples as returned by tide736
        options: Epsilon, merge window and per-kind cap
        timezone: Zone used to place epoch samples on the day

    Returns:
        Time-ordered list of highs and lows
    """
    frame = build_day_series(points, timezone)
    if len(frame) < 3:
        return []
    frame = add_day_bounds(frame)

    turning = find_turning_points(frame, options.eps_cm)
    merged = merge_nearby(turning, options.merge_window_min)
    return select_per_kind(merged, options.max_per_kind)


def find_turning_points(frame: pd.DataFrame, eps_cm: float) -> List[TideExtreme]:
    """Find slope reversals in a bounded DaySeries, in time order."""
    minutes = frame["minute"].to_numpy()
    heights = frame["height_cm"].to_numpy(dtype=float)
    synthetic = frame["synthetic"].to_numpy(dtype=bool)
    signs = slope_signs(heights, eps_cm)

    def at(i: int, kind: TideKind) -> TideExtreme:
        return TideExtreme(
            kind=kind, minute=int(minutes[i]), height_cm=float(heights[i])
        )

    found: List[TideExtreme] = []
    carried = 0
    last_move: Optional[int] = None
    # signs[k] is the step from sample k to sample k + 1
    for k, step in enumerate(signs):
        if k >= 1:
            if carried > 0 and step < 0:
                found.append(at(k, TideKind.HIGH))
            elif carried < 0 and step > 0:
                found.append(at(k, TideKind.LOW))
        if step != 0:
            carried = int(step)
            last_move = k

    if last_move is not None and synthetic[-1]:
        kind = TideKind.HIGH if carried > 0 else TideKind.LOW
        found.append(at(last_move + 1, kind))
    return found


def _more_extreme(candidate: TideExtreme, kept: TideExtreme) -> bool:
    # Ties go to the later sample
    if candidate.kind is TideKind.HIGH:
        return candidate.height_cm >= kept.height_cm
    return candidate.height_cm <= kept.height_cm


def merge_nearby(
    extrema: List[TideExtreme], window_min: int
) -> List[TideExtreme]:
    """Collapse same-kind extrema closer than window_min into the more extreme one."""
    merged: List[TideExtreme] = []
    last_of_kind: Dict[TideKind, int] = {}
    for extreme in extrema:
        idx = last_of_kind.get(extreme.kind)
        if idx is not None and abs(extreme.minute - merged[idx].minute) <= window_min:
            if _more_extreme(extreme, merged[idx]):
                merged[idx] = extreme
            continue
        last_of_kind[extreme.kind] = len(merged)
        merged.append(extreme)
    return sorted(merged, key=lambda e: e.minute)


def select_per_kind(
    extrema: List[TideExtreme], max_per_kind: Optional[int]
) -> List[TideExtreme]:
    """Keep the chronologically first max_per_kind highs and lows."""
    if max_per_kind is None:
        return list(extrema)
    highs = [e for e in extrema if e.kind is TideKind.HIGH][:max_per_kind]
    lows = [e for e in extrema if e.kind is TideKind.LOW][:max_per_kind]
    return sorted(highs + lows, key=lambda e: e.minute)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize_day(
    points: Iterable[TidePoint],
    options: ExtremaOptions = DISPLAY_OPTIONS,
    timezone: datetime.tzinfo = DEFAULT_TIMEZONE,
) -> TideDaySummary:
    """Return the day's highs and lows as "HH:MM" times with rounded heights."""
    extrema = extract_extrema(points, options, timezone)

    def events(kind: TideKind) -> List[SummaryEvent]:
        return [
            SummaryEvent(time=e.time_label, cm=_round_half_up(e.height_cm))
            for e in extrema
            if e.kind is kind
        ]

    return TideDaySummary(highs=events(TideKind.HIGH), lows=events(TideKind.LOW))


def format_summary(summary: TideDaySummary) -> str:
    """Render a summary as one line, e.g. "満潮：06:00（120cm） / 干潮：12:00（40cm）"."""

    def fmt(label: str, events: List[SummaryEvent]) -> str:
        if not events:
            return f"{label}：-"
        return f"{label}：" + " / ".join(f"{e.time}（{e.cm}cm）" for e in events)

    return f"{fmt('満潮', summary.highs)} / {fmt('干潮', summary.lows)}"
