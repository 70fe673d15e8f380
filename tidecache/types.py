"""Type definitions for tidecache.

This module contains the models shared across the package, separated into
two main categories:
1. Internal types - Raw provider points, normalized points and extrema
2. Cache types - Entries, lookup results and statistics returned to callers
"""

# Standard library imports
import datetime
import enum
from typing import List, Optional

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Local imports
from tidecache.util import format_hm


#############################################################
# INTERNAL TYPES - Used for tide series processing           #
#############################################################


class TideKind(enum.Enum):
    HIGH = "high"
    LOW = "low"


class TideTrend(enum.Enum):
    """Coarse direction of the water level around a sample."""

    RISING = "rising"
    FALLING = "falling"
    FLAT = "flat"


class PhaseLabel(enum.Enum):
    """Qualitative tide phase relative to the surrounding extrema."""

    UNKNOWN = "unknown"
    RISING_START = "rising_start"
    BEFORE_HIGH = "before_high"
    RISING = "rising"
    FALLING_START = "falling_start"
    BEFORE_LOW = "before_low"
    FALLING = "falling"
    NEAR_HIGH = "near_high"
    NEAR_LOW = "near_low"
    STALLED = "stalled"

    @property
    def display_name(self) -> str:
        """Japanese label used by the tide736 consumer UI."""
        return _PHASE_DISPLAY_NAMES[self]


_PHASE_DISPLAY_NAMES = {
    PhaseLabel.UNKNOWN: "不明",
    PhaseLabel.RISING_START: "上げ始め",
    PhaseLabel.BEFORE_HIGH: "満潮前",
    PhaseLabel.RISING: "上げ",
    PhaseLabel.FALLING_START: "下げ始め",
    PhaseLabel.BEFORE_LOW: "干潮前",
    PhaseLabel.FALLING: "下げ",
    PhaseLabel.NEAR_HIGH: "満潮付近",
    PhaseLabel.NEAR_LOW: "干潮付近",
    PhaseLabel.STALLED: "止まり",
}


class TidePoint(BaseModel):
    """One raw sample as returned by tide736.

    The time reference is either a local clock string ("HH:MM") or an epoch
    value whose unit is ambiguous (see util.epoch_to_ms).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    height_cm: float = Field(
        ..., alias="cm", allow_inf_nan=False, description="Water level in cm"
    )
    time: Optional[str] = Field(None, description="Local clock time, HH:MM")
    unix: Optional[float] = Field(
        None, description="Epoch timestamp in seconds or milliseconds"
    )

    @model_validator(mode="after")
    def check_has_time_reference(self) -> "TidePoint":
        if self.time is None and self.unix is None:
            raise ValueError("TidePoint needs either 'time' or 'unix'")
        return self


class NormalizedPoint(BaseModel):
    """A sample mapped onto minutes since local midnight."""

    model_config = ConfigDict(frozen=True)

    minute: int = Field(..., ge=0, le=1440)
    height_cm: float


class TideExtreme(BaseModel):
    """A local high or low of the day's curve (internal representation)."""

    model_config = ConfigDict(frozen=True)

    kind: TideKind
    minute: int = Field(..., ge=0, le=1440)
    height_cm: float

    @property
    def time_label(self) -> str:
        return format_hm(self.minute)


class SeriesShape(enum.Enum):
    """Where (if anywhere) the tide array was found in a tide736 response."""

    FOUND_DIRECT = "found_direct"
    FOUND_CHART = "found_chart"
    NOT_FOUND_FOR_DATE = "not_found_for_date"
    SHAPE_UNRECOGNIZED = "shape_unrecognized"

    @property
    def found(self) -> bool:
        return self in (SeriesShape.FOUND_DIRECT, SeriesShape.FOUND_CHART)


class TideDayPayload(BaseModel):
    """Parsed tide736 response for one station and day."""

    series: List[TidePoint]
    tide_name: Optional[str] = None
    shape: SeriesShape


class TideReading(BaseModel):
    """Water level at the sample nearest to a requested instant."""

    minute: int
    height_cm: float
    trend: TideTrend


class SummaryEvent(BaseModel):
    """A high or low formatted for display."""

    time: str = Field(..., description="Local clock time, HH:MM")
    cm: int = Field(..., description="Rounded height in cm")


class TideDaySummary(BaseModel):
    """The day's first highs and lows, as shown next to the tide graph."""

    highs: List[SummaryEvent]
    lows: List[SummaryEvent]


#############################################################
# CACHE TYPES - Persisted entries and lookup results         #
#############################################################


class Station(BaseModel):
    """A tide736 station, selected by prefecture code and harbour code."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pc: str = Field(..., min_length=1, description="Prefecture code")
    hc: str = Field(..., min_length=1, description="Harbour code")

    def __str__(self) -> str:
        return f"{self.pc}:{self.hc}"


class Provenance(enum.Enum):
    """Where the data of a lookup result came from."""

    FRESH = "fresh"
    CACHE_HIT = "cache_hit"
    STALE_FALLBACK = "stale_fallback"


class CacheEntry(BaseModel):
    """One cached day of tide data for a station."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., description="'{pc}:{hc}:{YYYY-MM-DD}'")
    station: Station
    day: datetime.date
    series: List[TidePoint] = Field(
        default_factory=list, description="Raw series as returned by tide736"
    )
    tide_name: Optional[str] = Field(
        None, description="Lunar tide name (e.g. 大潮), if the provider sent one"
    )
    fetched_at: datetime.datetime = Field(
        ..., description="Time of the successful fetch (naive UTC)"
    )

    @field_validator("fetched_at")
    @classmethod
    def to_naive_utc(cls, value: datetime.datetime) -> datetime.datetime:
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        return value


class CacheLookupResult(BaseModel):
    """Result of a cached day lookup."""

    series: List[TidePoint]
    tide_name: Optional[str] = None
    provenance: Provenance
    is_stale: bool


class CacheStats(BaseModel):
    """Aggregate statistics over the cache table."""

    model_config = ConfigDict(extra="forbid")

    count: int = Field(..., description="Number of cached days")
    approx_size_bytes: int = Field(
        ..., description="Serialized-length estimate of the stored data"
    )
    newest_fetched_at: Optional[datetime.datetime] = None
    oldest_fetched_at: Optional[datetime.datetime] = None
