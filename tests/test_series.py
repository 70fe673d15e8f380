"""Tests for normalization of raw samples into a DaySeries."""

import pandas as pd
import pandera.errors
import pytest
import pytz

from tidecache.dataframe_models import DaySeriesDataModel
from tidecache.series import (
    add_day_bounds,
    build_day_series,
    normalize_point,
    normalize_points,
)
from tidecache.types import NormalizedPoint, TidePoint

TOKYO = pytz.timezone("Asia/Tokyo")

# 2025-05-01 06:00 JST
SIX_AM_JST_SECONDS = 1746046800


def test_normalize_prefers_clock_string() -> None:
    point = TidePoint(time="07:15", unix=SIX_AM_JST_SECONDS, cm=80)
    assert normalize_point(point, TOKYO) == NormalizedPoint(minute=435, height_cm=80)


def test_normalize_falls_back_to_epoch() -> None:
    seconds = TidePoint(unix=SIX_AM_JST_SECONDS, cm=80)
    millis = TidePoint(unix=SIX_AM_JST_SECONDS * 1000, cm=80)
    bad_clock = TidePoint(time="--", unix=SIX_AM_JST_SECONDS, cm=80)
    for point in (seconds, millis, bad_clock):
        normalized = normalize_point(point, TOKYO)
        assert normalized is not None
        assert normalized.minute == 360


def test_normalize_clamps_to_day() -> None:
    point = TidePoint(time="25:30", cm=10)
    normalized = normalize_point(point, TOKYO)
    assert normalized is not None
    assert normalized.minute == 1440


def test_normalize_drops_unusable_points() -> None:
    points = [
        TidePoint(time="nope", cm=10),
        TidePoint(unix=1e300, cm=10),  # beyond any representable date
        TidePoint(time="12:00", cm=55),
    ]
    assert normalize_points(points, TOKYO) == [NormalizedPoint(minute=720, height_cm=55)]


def test_tide_point_requires_a_time_reference() -> None:
    with pytest.raises(ValueError):
        TidePoint(cm=10)


def test_tide_point_rejects_non_finite_height() -> None:
    with pytest.raises(ValueError):
        TidePoint(time="01:00", cm=float("nan"))


def test_build_day_series_sorts_and_dedups_last_wins() -> None:
    points = [
        TidePoint(time="12:00", cm=40),
        TidePoint(time="06:00", cm=120),
        TidePoint(time="12:00", cm=45),  # later duplicate of 12:00 wins
        TidePoint(time="00:00", cm=50),
    ]
    frame = build_day_series(points, TOKYO)
    assert frame["minute"].tolist() == [0, 360, 720]
    assert frame["height_cm"].tolist() == [50.0, 120.0, 45.0]
    assert not frame["synthetic"].any()


def test_build_day_series_empty() -> None:
    frame = build_day_series([], TOKYO)
    assert frame.empty
    assert list(frame.columns) == ["minute", "height_cm", "synthetic"]


def test_add_day_bounds_extrapolates_flat() -> None:
    points = [TidePoint(time="03:00", cm=70), TidePoint(time="21:00", cm=90)]
    frame = build_day_series(points, TOKYO, with_bounds=True)
    assert frame["minute"].tolist() == [0, 180, 1260, 1440]
    assert frame["height_cm"].tolist() == [70.0, 70.0, 90.0, 90.0]
    assert frame["synthetic"].tolist() == [True, False, False, True]


def test_add_day_bounds_keeps_real_edges() -> None:
    points = [TidePoint(time="00:00", cm=70), TidePoint(time="24:00", cm=90)]
    frame = build_day_series(points, TOKYO)
    bounded = add_day_bounds(frame)
    assert bounded["minute"].tolist() == [0, 1440]
    assert not bounded["synthetic"].any()


def test_add_day_bounds_empty_frame_unchanged() -> None:
    frame = build_day_series([], TOKYO)
    assert add_day_bounds(frame).empty


def test_day_series_model_rejects_unsorted_minutes() -> None:
    frame = pd.DataFrame(
        {
            "minute": pd.Series([10, 5], dtype="int64"),
            "height_cm": pd.Series([1.0, 2.0], dtype="float64"),
            "synthetic": pd.Series([False, False], dtype="bool"),
        }
    )
    with pytest.raises(pandera.errors.SchemaError):
        DaySeriesDataModel.validate(frame)
