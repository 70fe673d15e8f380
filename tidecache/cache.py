"""Cached access to tide736 days.

TideDayCache decides, per (station, day), whether to serve the stored entry,
serve it stale because the network is down, or fetch a fresh copy and write
it back:

    entry fresh (age <= ttl)              -> stored entry, CACHE_HIT
    entry expired, offline                -> stored entry, STALE_FALLBACK
    entry expired, online                 -> fetch, overwrite, FRESH
    no entry, offline                     -> empty series, CACHE_HIT, stale
    no entry, online                      -> fetch, store, FRESH

A failed fetch is logged and re-raised and never touches the stored entry.
Concurrent lookups that need the same key share one in-flight fetch.
"""

# Standard library imports
import asyncio
import datetime
import functools
import logging
from typing import Dict, List, Optional

# Local imports
from tidecache.clients.tide736 import NetworkError, Tide736Api
from tidecache.config import DEFAULT_TTL_DAYS
from tidecache.network import NetworkMonitor
from tidecache.store import CacheStore
from tidecache.types import (
    CacheEntry,
    CacheLookupResult,
    CacheStats,
    Provenance,
    Station,
)
from tidecache.util import cache_key, day_key, utc_now


class TideDayCache:
    """Persistent, TTL-bound, offline-tolerant cache of tide736 days.

    The store, client and network monitor are passed in by the caller, so
    independent caches (e.g. in tests) never share state.
    """

    def __init__(
        self,
        store: CacheStore,
        client: Tide736Api,
        network: Optional[NetworkMonitor] = None,
        default_ttl_days: float = DEFAULT_TTL_DAYS,
        list_limit: int = 50,
    ):
        """Initialize the cache.

        Args:
            store: Persistent entry table
            client: tide736 API client used for fetches
            network: Availability signal; always online when omitted
            default_ttl_days: TTL used when a lookup does not pass one
            list_limit: Default number of entries returned by list_entries
        """
        self.store = store
        self.client = client
        self.network = network or NetworkMonitor()
        self.default_ttl_days = default_ttl_days
        self.list_limit = list_limit
        # Fetches currently running, keyed by cache key
        self._in_flight: Dict[str, asyncio.Task[CacheEntry]] = {}

    def log(self, message: str, level: int = logging.INFO, key: str = "") -> None:
        """Log a message prefixed with the cache key it concerns."""
        prefix = f"[{key}][cache] " if key else "[cache] "
        logging.log(level, prefix + message)

    async def get_day(
        self,
        station: Station,
        day: datetime.date,
        ttl_days: Optional[float] = None,
    ) -> CacheLookupResult:
        """Return one day of tide data, from the cache when possible.

        Args:
            station: tide736 station codes
            day: Local calendar day
            ttl_days: Maximum age of a usable entry; defaults to default_ttl_days

        Returns:
            CacheLookupResult with the series, tide name and provenance

        Raises:
            TideClientError: If a fetch was attempted and failed. The stored
                entry, if any, is left as it was.
        """
        ttl = datetime.timedelta(
            days=self.default_ttl_days if ttl_days is None else ttl_days
        )
        key = cache_key(station.pc, station.hc, day)
        entry = self.store.get(key)
        online = self.network.is_online

        if entry is not None:
            age = utc_now() - entry.fetched_at
            if age <= ttl:
                self.log(f"Cache hit (age {age})", logging.DEBUG, key)
                return CacheLookupResult(
                    series=entry.series,
                    tide_name=entry.tide_name,
                    provenance=Provenance.CACHE_HIT,
                    is_stale=False,
                )
            if not online:
                self.log(f"Offline, serving expired entry (age {age})", key=key)
                return CacheLookupResult(
                    series=entry.series,
                    tide_name=entry.tide_name,
                    provenance=Provenance.STALE_FALLBACK,
                    is_stale=True,
                )
            self.log(f"Entry expired (age {age}), refetching", key=key)
        elif not online:
            self.log("Offline and not cached, returning empty series", key=key)
            return CacheLookupResult(
                series=[],
                tide_name=None,
                provenance=Provenance.CACHE_HIT,
                is_stale=True,
            )

        fresh = await self._fetch_shared(station, day, key)
        return self._fresh_result(fresh)

    async def force_refresh(
        self, station: Station, day: datetime.date
    ) -> CacheLookupResult:
        """Fetch and store a day regardless of the cached entry's age.

        Raises:
            NetworkError: If the network is marked offline (no request is made)
            TideClientError: If the fetch fails; the stored entry is untouched
        """
        key = cache_key(station.pc, station.hc, day)
        if not self.network.is_online:
            self.log("Forced refresh refused while offline", logging.WARNING, key)
            raise NetworkError(f"Offline: cannot refresh {key}")
        self.log("Forced refresh", key=key)
        fresh = await self._fetch_shared(station, day, key)
        return self._fresh_result(fresh)

    @staticmethod
    def _fresh_result(entry: CacheEntry) -> CacheLookupResult:
        return CacheLookupResult(
            series=entry.series,
            tide_name=entry.tide_name,
            provenance=Provenance.FRESH,
            is_stale=False,
        )

    async def _fetch_shared(
        self, station: Station, day: datetime.date, key: str
    ) -> CacheEntry:
        """Run one fetch per key at a time; later callers await the running one."""
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(station, day, key))
            self._in_flight[key] = task
            task.add_done_callback(functools.partial(self._forget, key))
        else:
            self.log("Joining in-flight fetch", logging.DEBUG, key)
        # A cancelled caller must not cancel the fetch other callers are awaiting
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Task[CacheEntry]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the exception retrieved; awaiting callers re-raise it themselves
            task.exception()

    async def _fetch_and_store(
        self, station: Station, day: datetime.date, key: str
    ) -> CacheEntry:
        try:
            payload = await self.client.fetch_day(station, day)
        except Exception as e:
            # Surface the error to the caller; the stored entry stays as it was
            self.log(f"Fetch for {day_key(day)} failed: {e}", logging.ERROR, key)
            raise

        entry = CacheEntry(
            key=key,
            station=station,
            day=day,
            series=payload.series,
            tide_name=payload.tide_name,
            fetched_at=utc_now(),
        )
        self.store.put(entry)
        self.log(
            f"Stored {len(entry.series)} points ({payload.shape.value}, tide name {entry.tide_name!r})",
            key=key,
        )
        return entry

    # -------------------------------------------------------------------------
    # Cache maintenance
    # -------------------------------------------------------------------------

    def stats(self) -> CacheStats:
        return self.store.stats()

    def list_entries(self, limit: Optional[int] = None) -> List[CacheEntry]:
        """Return cached entries, most recently fetched first."""
        if limit is None:
            limit = self.list_limit
        return self.store.list(limit=limit, newest_first=True)

    def delete_by_key(self, key: str) -> int:
        deleted = self.store.delete(key)
        self.log(f"Deleted {deleted} entry", key=key)
        return deleted

    def delete_all(self) -> int:
        return self.store.delete_all()

    def delete_older_than(self, days: float) -> int:
        """Delete entries fetched more than `days` days ago; returns the count."""
        return self.store.delete_older_than(days)
