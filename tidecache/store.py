"""DuckDB-backed persistent store for cached tide days.

One row per (station, calendar day), keyed "{pc}:{hc}:{YYYY-MM-DD}". The row
holds the raw series exactly as fetched (JSON text), the lunar tide name and
the fetch timestamp. Writes replace whole rows; there is no versioning, so the
last put for a key wins.

Every operation is total: missing keys give None or a zero count, never an
error.
"""

# Standard library imports
import datetime
import logging
from pathlib import Path
from types import TracebackType
from typing import Any, List, Optional, Sequence, Type, Union

# Third-party imports
import duckdb
from pydantic import TypeAdapter

# Local imports
from tidecache.types import CacheEntry, CacheStats, Station, TidePoint
from tidecache.util import utc_now

MEMORY_DB = ":memory:"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tide_cache (
    key VARCHAR PRIMARY KEY,
    pc VARCHAR NOT NULL,
    hc VARCHAR NOT NULL,
    day DATE NOT NULL,
    series VARCHAR NOT NULL,
    tide_name VARCHAR,
    fetched_at TIMESTAMP NOT NULL
)
"""

_ENTRY_COLUMNS = "key, pc, hc, day, series, tide_name, fetched_at"

_series_adapter = TypeAdapter(List[TidePoint])


def serialize_series(series: Sequence[TidePoint]) -> str:
    """Serialize a series with the provider's field names ("cm", "time", "unix")."""
    return _series_adapter.dump_json(
        list(series), by_alias=True, exclude_none=True
    ).decode()


def _row_to_entry(row: Sequence[Any]) -> CacheEntry:
    key, pc, hc, day, series, tide_name, fetched_at = row
    return CacheEntry(
        key=key,
        station=Station(pc=pc, hc=hc),
        day=day,
        series=_series_adapter.validate_json(series),
        tide_name=tide_name,
        fetched_at=fetched_at,
    )


class CacheStore:
    """Persistent key -> CacheEntry table.

    Each store owns its own DuckDB connection; construct one per cache file
    and pass it to the components that need it.

    Example:
        >>> with CacheStore(":memory:") as store:
        ...     store.get("28:1:2025-05-01") is None
        True
    """

    def __init__(self, db_path: Union[str, Path] = MEMORY_DB):
        """Open (and create if needed) the cache database.

        Args:
            db_path: DuckDB file path, or ":memory:" for a transient store
        """
        self.db_path = str(db_path)
        if self.db_path != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(self.db_path)
        self._init_schema()

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise RuntimeError("CacheStore is closed")
        return self._conn

    def _init_schema(self) -> None:
        for statement in SCHEMA_SQL.split(";"):
            statement = statement.strip()
            if statement:
                self.conn.execute(statement)
        logging.info(f"Tide cache store opened at {self.db_path}")

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CacheStore":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, or None if it is not cached."""
        row = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM tide_cache WHERE key = ?", [key]
        ).fetchone()
        if row is None:
            return None
        return _row_to_entry(row)

    def put(self, entry: CacheEntry) -> None:
        """Insert or fully overwrite the entry with the same key."""
        self.conn.execute(
            f"""
            INSERT INTO tide_cache ({_ENTRY_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (key)
            DO UPDATE SET
                pc = EXCLUDED.pc,
                hc = EXCLUDED.hc,
                day = EXCLUDED.day,
                series = EXCLUDED.series,
                tide_name = EXCLUDED.tide_name,
                fetched_at = EXCLUDED.fetched_at
            """,
            [
                entry.key,
                entry.station.pc,
                entry.station.hc,
                entry.day,
                serialize_series(entry.series),
                entry.tide_name,
                entry.fetched_at,
            ],
        )

    def delete(self, key: str) -> int:
        """Delete one entry. Returns the number of rows removed (0 or 1)."""
        return self._deleted_count(
            self.conn.execute("DELETE FROM tide_cache WHERE key = ?", [key])
        )

    def delete_all(self) -> int:
        """Delete every entry. Returns the number of rows removed."""
        deleted = self._deleted_count(self.conn.execute("DELETE FROM tide_cache"))
        logging.info(f"Cleared tide cache ({deleted} entries)")
        return deleted

    def delete_older_than(
        self, max_age_days: float, now: Optional[datetime.datetime] = None
    ) -> int:
        """Delete entries fetched more than max_age_days ago.

        Args:
            max_age_days: Entries strictly older than this are removed
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            Number of rows removed
        """
        cutoff = (now or utc_now()) - datetime.timedelta(days=max_age_days)
        deleted = self._deleted_count(
            self.conn.execute("DELETE FROM tide_cache WHERE fetched_at < ?", [cutoff])
        )
        logging.info(
            f"Removed {deleted} tide cache entries older than {max_age_days} days"
        )
        return deleted

    @staticmethod
    def _deleted_count(result: duckdb.DuckDBPyConnection) -> int:
        row = result.fetchone()
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # Listing and statistics
    # -------------------------------------------------------------------------

    def list(self, limit: int = 50, newest_first: bool = True) -> List[CacheEntry]:
        """Return up to `limit` entries ordered by fetch time."""
        order = "DESC" if newest_first else "ASC"
        rows = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM tide_cache ORDER BY fetched_at {order}, key LIMIT ?",
            [limit],
        ).fetchall()
        return [_row_to_entry(row) for row in rows]

    def stats(self) -> CacheStats:
        """Return entry count, size estimate and fetch-time range.

        approx_size_bytes is the byte length of the stored series JSON plus the
        tide names; it is an estimate, not storage accounting.
        """
        row = self.conn.execute(
            """
            SELECT
                COUNT(*),
                COALESCE(SUM(strlen(series) + strlen(COALESCE(tide_name, ''))), 0),
                MAX(fetched_at),
                MIN(fetched_at)
            FROM tide_cache
            """
        ).fetchone()
        assert row is not None  # aggregate query always returns one row
        count, size, newest, oldest = row
        return CacheStats(
            count=int(count),
            approx_size_bytes=int(size),
            newest_fetched_at=newest,
            oldest_fetched_at=oldest,
        )
