"""Pandera DataFrame models for validating internal data structures."""

import pandas as pd
import pandera.pandas as pa
import pandera.typing as pa_typing

from tidecache.util import MINUTES_PER_DAY


class DaySeriesDataModel(pa.DataFrameModel):
    """Pandera DataFrameModel for one day of normalized tide samples."""

    minute: pa_typing.Series[int] = pa.Field(
        ge=0, le=MINUTES_PER_DAY, nullable=False
    )
    height_cm: pa_typing.Series[float] = pa.Field(nullable=False)
    # True for the flat-extrapolated points added at minute 0 and 1440
    synthetic: pa_typing.Series[bool] = pa.Field(nullable=False)

    @pa.check("minute", error="minute must be strictly increasing")
    def check_minute_strictly_increasing(cls, series: pd.Series) -> bool:
        return bool(series.is_monotonic_increasing and series.is_unique)

    class Config:
        """Pandera model configuration."""

        strict = True  # Disallow columns not specified in the schema
        coerce = False
