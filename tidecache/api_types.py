"""API Type definitions for tidecache.

This module contains type definitions used for API request/response handling
via Pydantic models. Internal types are defined in types.py.
"""

# Standard library imports
import datetime
from typing import List, Optional

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidecache.types import (
    PhaseLabel,
    Provenance,
    TideDaySummary,
    TideKind,
    TidePoint,
    TideTrend,
)

#############################################################
# API TYPES - Used for external API request/response models  #
#############################################################


class StationInfo(BaseModel):
    """Station information for API responses."""

    model_config = ConfigDict(extra="forbid")

    pc: str = Field(..., description="Prefecture code")
    hc: str = Field(..., description="Harbour code")


class ExtremeEntry(BaseModel):
    """A high or low tide for API responses."""

    model_config = ConfigDict(extra="forbid")

    kind: TideKind = Field(..., description="'high' or 'low'")
    time: str = Field(..., description="Local clock time, HH:MM (24:00 for day end)")
    minute: int = Field(..., description="Minutes since local midnight")
    height_cm: float = Field(..., description="Water level in cm")


class TideDayResponse(BaseModel):
    """One day of tide data with its extrema and display summary."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., description="Cache key '{pc}:{hc}:{YYYY-MM-DD}'")
    station: StationInfo
    day: datetime.date
    tide_name: Optional[str] = Field(
        None, description="Lunar tide name (e.g. 大潮), if known"
    )
    provenance: Provenance = Field(
        ..., description="fresh, cache_hit or stale_fallback"
    )
    is_stale: bool = Field(
        ..., description="True if the data is older than the requested TTL or missing"
    )
    series: List[TidePoint] = Field(
        ..., description="Raw samples as returned by tide736"
    )
    extrema: List[ExtremeEntry] = Field(
        ..., description="Display extrema: the first two highs and lows"
    )
    summary: TideDaySummary
    summary_text: str = Field(..., description="One-line rendering of the summary")


class TideReadingInfo(BaseModel):
    """Water level at the sample nearest to the requested instant."""

    model_config = ConfigDict(extra="forbid")

    time: str = Field(..., description="Local clock time of the sample, HH:MM")
    height_cm: float
    trend: TideTrend


class PhaseResponse(BaseModel):
    """Tide phase at an instant."""

    model_config = ConfigDict(extra="forbid")

    key: str
    at: datetime.datetime = Field(..., description="Query instant (local time)")
    phase: PhaseLabel
    phase_name: str = Field(..., description="Japanese display label of the phase")
    reading: Optional[TideReadingInfo] = Field(
        None, description="Nearest sample, None when the series is empty"
    )
    provenance: Provenance
    is_stale: bool


class DeleteResponse(BaseModel):
    """Result of a cache deletion."""

    model_config = ConfigDict(extra="forbid")

    deleted: int = Field(..., description="Number of entries removed")


class CacheEntryInfo(BaseModel):
    """A cached day, without its series, for listings."""

    model_config = ConfigDict(extra="forbid")

    key: str
    station: StationInfo
    day: datetime.date
    tide_name: Optional[str] = None
    points: int = Field(..., description="Number of stored samples")
    fetched_at: datetime.datetime = Field(..., description="Fetch time (naive UTC)")


class HealthResponse(BaseModel):
    """Service health."""

    model_config = ConfigDict(extra="forbid")

    online: bool = Field(..., description="Whether upstream fetches are attempted")
    cached_days: int
