"""Tests for the service configuration."""

import datetime

import pydantic
import pytest
import pytz
from freezegun import freeze_time

from tidecache.config import (
    DEFAULT_BASE_URL,
    DEFAULT_DB_PATH,
    DEFAULT_TTL_DAYS,
    AppConfig,
)


def test_defaults() -> None:
    cfg = AppConfig()
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.request_timeout_sec == 15.0
    assert cfg.default_ttl_days == DEFAULT_TTL_DAYS
    assert cfg.db_path == DEFAULT_DB_PATH
    assert cfg.timezone.zone == "Asia/Tokyo"  # type: ignore[attr-defined]
    assert cfg.list_limit == 50


def test_config_is_frozen() -> None:
    cfg = AppConfig()
    with pytest.raises(pydantic.ValidationError):
        cfg.db_path = "other.duckdb"  # type: ignore[misc]


def test_extra_fields_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        AppConfig(unknown="x")  # type: ignore[call-arg]


def test_from_env_overrides() -> None:
    cfg = AppConfig.from_env(
        {
            "TIDECACHE_BASE_URL": "http://localhost:9000/get_tide.php",
            "TIDECACHE_REQUEST_TIMEOUT_SEC": "5",
            "TIDECACHE_DEFAULT_TTL_DAYS": "7.5",
            "TIDECACHE_DB_PATH": ":memory:",
            "TIDECACHE_TIMEZONE": "UTC",
            "TIDECACHE_LIST_LIMIT": "10",
            "UNRELATED": "ignored",
        }
    )
    assert cfg.base_url == "http://localhost:9000/get_tide.php"
    assert cfg.request_timeout_sec == 5.0
    assert cfg.default_ttl_days == 7.5
    assert cfg.db_path == ":memory:"
    assert cfg.timezone is pytz.utc
    assert cfg.list_limit == 10


def test_from_env_empty_keeps_defaults() -> None:
    assert AppConfig.from_env({}) == AppConfig()


@pytest.mark.parametrize(
    "name,value",
    [
        ("TIDECACHE_REQUEST_TIMEOUT_SEC", "0"),
        ("TIDECACHE_DEFAULT_TTL_DAYS", "-1"),
        ("TIDECACHE_LIST_LIMIT", "0"),
    ],
)
def test_from_env_rejects_out_of_range(name: str, value: str) -> None:
    with pytest.raises(pydantic.ValidationError):
        AppConfig.from_env({name: value})


def test_from_env_unknown_timezone() -> None:
    with pytest.raises(pytz.UnknownTimeZoneError):
        AppConfig.from_env({"TIDECACHE_TIMEZONE": "Mars/Olympus"})


@freeze_time("2025-04-30 15:30:00")
def test_local_now() -> None:
    cfg = AppConfig()
    # 15:30 UTC is 00:30 the next day in Tokyo
    assert cfg.local_now() == datetime.datetime(2025, 5, 1, 0, 30)
