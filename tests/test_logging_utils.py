"""Tests for logging setup."""

import logging
import os
from typing import Iterator
from unittest.mock import MagicMock, patch

import pytest

from tidecache import logging_utils


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize(
    "level,expected",
    [
        (logging.WARNING, logging.WARNING),
        ("debug", logging.DEBUG),
        (" Error ", logging.ERROR),
        ("bogus", logging.INFO),
    ],
)
def test_resolve_level(level: int | str, expected: int) -> None:
    assert logging_utils.resolve_level(level) == expected


def test_resolve_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(logging_utils.LOG_LEVEL_ENV, "WARNING")
    assert logging_utils.resolve_level() == logging.WARNING
    monkeypatch.delenv(logging_utils.LOG_LEVEL_ENV)
    assert logging_utils.resolve_level() == logging.INFO


def test_relative_path_filter() -> None:
    record = logging.LogRecord(
        "test",
        logging.INFO,
        os.path.join(logging_utils.PROJECT_ROOT, "tidecache", "cache.py"),
        1,
        "msg",
        None,
        None,
    )
    assert logging_utils.RelativePathFilter().filter(record)
    assert record.relativepath == os.path.join("tidecache", "cache.py")


def test_setup_logging_local(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("K_SERVICE", raising=False)
    logging_utils.setup_logging("DEBUG")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert any(isinstance(f, logging_utils.RelativePathFilter) for f in handler.filters)


def test_setup_logging_cloud_run(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("K_SERVICE", "tidecache")
    with patch.object(
        logging_utils.google.cloud.logging, "Client", return_value=MagicMock()
    ) as mock_client_cls:
        logging_utils.setup_logging()

    mock_client_cls.return_value.setup_logging.assert_called_once_with(
        log_level=logging.INFO
    )
