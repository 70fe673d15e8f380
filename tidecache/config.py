"""Application configuration.

This module defines the runtime configuration of the tide cache service: where
the tide736 API lives, how long requests may take, how long cached days stay
fresh, where the DuckDB cache file is kept and which timezone tide736 clock
times are expressed in.

Configuration is held in an immutable AppConfig. Defaults suit the public
tide736 API; every field can be overridden through TIDECACHE_* environment
variables via AppConfig.from_env().
"""

# Standard library imports
import datetime
import os
from datetime import tzinfo
from typing import Annotated, Mapping, Optional

# Third-party imports
import pytz
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidecache import util

DEFAULT_BASE_URL = "https://api.tide736.net/get_tide.php"
DEFAULT_TIMEZONE = pytz.timezone("Asia/Tokyo")
DEFAULT_TTL_DAYS = 30
DEFAULT_DB_PATH = "data/tidecache.duckdb"

ENV_PREFIX = "TIDECACHE_"


class AppConfig(BaseModel, frozen=True):
    """Configuration for the tide cache service.

    AppConfig objects are immutable (frozen=True) and are passed explicitly to
    the components that need them; there is no process-wide instance.

    Typical usage:
        cfg = AppConfig.from_env()
        store = CacheStore(cfg.db_path)
        client = Tide736Api(session, base_url=cfg.base_url,
                            timeout=cfg.request_timeout_sec)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    base_url: Annotated[
        str,
        Field(
            min_length=1,
            description="tide736 get_tide.php endpoint (or a same-origin proxy of it)",
        ),
    ] = DEFAULT_BASE_URL

    request_timeout_sec: Annotated[
        float,
        Field(
            gt=0,
            description="Total timeout for one upstream request, in seconds",
        ),
    ] = 15.0

    default_ttl_days: Annotated[
        float,
        Field(
            ge=0,
            description="Days a cached day stays fresh before it is refetched",
        ),
    ] = DEFAULT_TTL_DAYS

    db_path: Annotated[
        str,
        Field(
            min_length=1,
            description="DuckDB file holding the tide cache (':memory:' for a transient cache)",
        ),
    ] = DEFAULT_DB_PATH

    timezone: Annotated[
        tzinfo,
        Field(
            description="Timezone of tide736 clock times, used to place epoch samples on the day (e.g., pytz.timezone('Asia/Tokyo'))"
        ),
    ] = DEFAULT_TIMEZONE

    list_limit: Annotated[
        int,
        Field(ge=1, description="Default number of entries returned by cache listings"),
    ] = 50

    def local_now(self) -> datetime.datetime:
        """Return the current time in the configured timezone as a naive datetime."""
        now_utc_with_tz = util.utc_now().replace(tzinfo=datetime.timezone.utc)
        return now_utc_with_tz.astimezone(self.timezone).replace(tzinfo=None)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build a config from TIDECACHE_* environment variables.

        Recognized variables: TIDECACHE_BASE_URL, TIDECACHE_REQUEST_TIMEOUT_SEC,
        TIDECACHE_DEFAULT_TTL_DAYS, TIDECACHE_DB_PATH, TIDECACHE_TIMEZONE,
        TIDECACHE_LIST_LIMIT. Unset variables keep their defaults.

        Raises:
            pydantic.ValidationError: If a value is out of range
            pytz.UnknownTimeZoneError: If TIDECACHE_TIMEZONE is not a known zone
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for field in ("base_url", "request_timeout_sec", "default_ttl_days", "db_path"):
            raw = env.get(ENV_PREFIX + field.upper())
            if raw is not None:
                values[field] = raw
        if (tz_name := env.get(ENV_PREFIX + "TIMEZONE")) is not None:
            values["timezone"] = pytz.timezone(tz_name)
        if (limit := env.get(ENV_PREFIX + "LIST_LIMIT")) is not None:
            values["list_limit"] = limit
        return cls.model_validate(values)
