"""API handlers for the tide cache service.

This module contains FastAPI route handlers for tide lookups and cache
maintenance. The cache itself lives in app.state.tide_cache and the service
configuration in app.state.config; both are set up by the app lifespan.
"""

# Standard library imports
import datetime
import logging
from typing import List, Optional

# Third-party imports
import fastapi
import pydantic
from fastapi import HTTPException, Query

# Local imports
from tidecache import extrema as extrema_lib
from tidecache import phase as phase_lib
from tidecache.api_types import (
    CacheEntryInfo,
    DeleteResponse,
    ExtremeEntry,
    HealthResponse,
    PhaseResponse,
    StationInfo,
    TideDayResponse,
    TideReadingInfo,
)
from tidecache.cache import TideDayCache
from tidecache.clients.tide736 import TideClientError
from tidecache.config import AppConfig
from tidecache.types import CacheLookupResult, CacheStats, Station
from tidecache.util import cache_key, format_hm


def register_routes(app: fastapi.FastAPI) -> None:
    """Register API routes with the FastAPI application.

    Args:
        app: The FastAPI application
    """

    def get_cache() -> TideDayCache:
        cache: TideDayCache = app.state.tide_cache
        return cache

    def get_config() -> AppConfig:
        cfg: AppConfig = app.state.config
        return cfg

    # Helper function to validate station codes
    def validate_station(pc: str, hc: str) -> Station:
        try:
            return Station(pc=pc, hc=hc)
        except pydantic.ValidationError as e:
            logging.warning(f"[{pc}:{hc}] Bad station request")
            raise HTTPException(
                status_code=400, detail=f"Invalid station '{pc}:{hc}'"
            ) from e

    def upstream_error(key: str, e: TideClientError) -> HTTPException:
        if not get_cache().network.is_online:
            return HTTPException(status_code=503, detail=f"Offline: {e}")
        logging.warning(f"[{key}] Upstream error: {e}")
        return HTTPException(status_code=502, detail=f"tide736 error: {e}")

    def day_response(
        station: Station, day: datetime.date, result: CacheLookupResult
    ) -> TideDayResponse:
        cfg = get_config()
        extrema = extrema_lib.extract_extrema(
            result.series, extrema_lib.DISPLAY_OPTIONS, cfg.timezone
        )
        summary = extrema_lib.summarize_day(
            result.series, extrema_lib.DISPLAY_OPTIONS, cfg.timezone
        )
        return TideDayResponse(
            key=cache_key(station.pc, station.hc, day),
            station=StationInfo(pc=station.pc, hc=station.hc),
            day=day,
            tide_name=result.tide_name,
            provenance=result.provenance,
            is_stale=result.is_stale,
            series=result.series,
            extrema=[
                ExtremeEntry(
                    kind=e.kind,
                    time=e.time_label,
                    minute=e.minute,
                    height_cm=e.height_cm,
                )
                for e in extrema
            ],
            summary=summary,
            summary_text=extrema_lib.format_summary(summary),
        )

    @app.get("/api/tides/{pc}/{hc}/{day}", response_model=TideDayResponse)
    async def tide_day(
        pc: str,
        hc: str,
        day: datetime.date,
        ttl_days: Optional[float] = Query(None, ge=0),
    ) -> TideDayResponse:
        """Return one day of tide data for a station, from the cache when possible.

        Args:
            pc: Prefecture code
            hc: Harbour code
            day: Local calendar day (YYYY-MM-DD)
            ttl_days: Maximum age of a usable cached entry

        Returns:
            Series, tide name, provenance, display extrema and summary

        Raises:
            HTTPException: 400 for a bad station, 502 if tide736 fails
        """
        station = validate_station(pc, hc)
        key = cache_key(pc, hc, day)
        logging.info(f"[{key}] Processing tide day request")
        try:
            result = await get_cache().get_day(station, day, ttl_days=ttl_days)
        except TideClientError as e:
            raise upstream_error(key, e) from e
        return day_response(station, day, result)

    @app.post("/api/tides/{pc}/{hc}/{day}/refresh", response_model=TideDayResponse)
    async def refresh_tide_day(pc: str, hc: str, day: datetime.date) -> TideDayResponse:
        """Refetch a day from tide736 regardless of the cached entry's age.

        Raises:
            HTTPException: 503 while offline, 502 if tide736 fails
        """
        station = validate_station(pc, hc)
        key = cache_key(pc, hc, day)
        logging.info(f"[{key}] Processing forced refresh request")
        try:
            result = await get_cache().force_refresh(station, day)
        except TideClientError as e:
            raise upstream_error(key, e) from e
        return day_response(station, day, result)

    @app.get("/api/tides/{pc}/{hc}/{day}/phase", response_model=PhaseResponse)
    async def tide_phase(
        pc: str,
        hc: str,
        day: datetime.date,
        at: Optional[datetime.datetime] = None,
    ) -> PhaseResponse:
        """Classify the tide phase at an instant of the given day.

        Args:
            pc: Prefecture code
            hc: Harbour code
            day: Local calendar day the series is taken from
            at: Query instant; naive values are local time. Defaults to now.
        """
        station = validate_station(pc, hc)
        cfg = get_config()
        key = cache_key(pc, hc, day)
        at = at or cfg.local_now()
        logging.info(f"[{key}] Processing phase request at {at.isoformat()}")
        try:
            result = await get_cache().get_day(station, day)
        except TideClientError as e:
            raise upstream_error(key, e) from e

        label = phase_lib.classify_phase(
            result.series, day, at, timezone=cfg.timezone
        )
        reading = phase_lib.tide_at(result.series, day, at, timezone=cfg.timezone)
        return PhaseResponse(
            key=key,
            at=at,
            phase=label,
            phase_name=label.display_name,
            reading=(
                TideReadingInfo(
                    time=format_hm(reading.minute),
                    height_cm=reading.height_cm,
                    trend=reading.trend,
                )
                if reading
                else None
            ),
            provenance=result.provenance,
            is_stale=result.is_stale,
        )

    # ======================================================================
    # Cache maintenance
    # ======================================================================

    @app.get("/api/cache/stats", response_model=CacheStats)
    async def cache_stats() -> CacheStats:
        """Return entry count, approximate size and fetch-time range."""
        logging.info("[api] Processing cache stats request")
        return get_cache().stats()

    @app.get("/api/cache/entries", response_model=List[CacheEntryInfo])
    async def cache_entries(
        limit: Optional[int] = Query(None, ge=1),
    ) -> List[CacheEntryInfo]:
        """List cached days, most recently fetched first."""
        logging.info(f"[api] Processing cache listing request (limit={limit})")
        return [
            CacheEntryInfo(
                key=entry.key,
                station=StationInfo(pc=entry.station.pc, hc=entry.station.hc),
                day=entry.day,
                tide_name=entry.tide_name,
                points=len(entry.series),
                fetched_at=entry.fetched_at,
            )
            for entry in get_cache().list_entries(limit)
        ]

    @app.delete("/api/cache/entries/{key}", response_model=DeleteResponse)
    async def delete_cache_entry(key: str) -> DeleteResponse:
        """Delete one cached day. Deleting a missing key is not an error."""
        logging.info(f"[{key}] Processing cache delete request")
        return DeleteResponse(deleted=get_cache().delete_by_key(key))

    @app.delete("/api/cache/entries", response_model=DeleteResponse)
    async def delete_all_cache_entries() -> DeleteResponse:
        """Delete every cached day."""
        logging.info("[api] Processing cache clear request")
        return DeleteResponse(deleted=get_cache().delete_all())

    @app.post("/api/cache/purge", response_model=DeleteResponse)
    async def purge_cache(
        older_than_days: float = Query(..., ge=0),
    ) -> DeleteResponse:
        """Delete cached days fetched more than older_than_days ago."""
        logging.info(f"[api] Processing cache purge request ({older_than_days} days)")
        return DeleteResponse(deleted=get_cache().delete_older_than(older_than_days))

    # ======================================================================
    # Service status
    # ======================================================================

    @app.put("/api/network", response_model=HealthResponse)
    async def set_network(online: bool) -> HealthResponse:
        """Mark the upstream as reachable or not.

        While offline, lookups serve cached data only and never contact tide736.
        """
        cache = get_cache()
        cache.network.set_online(online)
        return HealthResponse(online=cache.network.is_online, cached_days=cache.stats().count)

    @app.get("/api/healthy", response_model=HealthResponse)
    async def healthy_status() -> HealthResponse:
        """API endpoint for service health check (used by Cloud Run)."""
        cache = get_cache()
        return HealthResponse(online=cache.network.is_online, cached_days=cache.stats().count)
