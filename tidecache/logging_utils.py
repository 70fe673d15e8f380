"""Logging setup for the tide cache service.

Locally, records go to stderr tagged with the path of the emitting module
relative to the project root. On Cloud Run (K_SERVICE is set) they go to
Google Cloud Logging instead.
"""

import logging
import os
from typing import Union

import google.cloud.logging  # type: ignore[import]

# Project root for relative log paths (parent of the tidecache package)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

LOG_LEVEL_ENV = "TIDECACHE_LOG_LEVEL"
LOCAL_LOG_FORMAT = "%(levelname)s:%(relativepath)s:%(lineno)d: %(message)s"


class RelativePathFilter(logging.Filter):
    """Adds a 'relativepath' attribute to LogRecords."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.relativepath = os.path.relpath(
                os.path.normpath(record.pathname), PROJECT_ROOT
            )
        except ValueError:
            # e.g. a different drive on Windows
            record.relativepath = record.pathname
        return True


def _configure_local_handler(root_logger: logging.Logger) -> logging.Handler:
    """Replace the root handlers with one stderr handler using relative paths.

    The filter sits on the handler so records propagated from named loggers
    (uvicorn, aiohttp) are formatted too.
    """
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RelativePathFilter())
    handler.setFormatter(logging.Formatter(LOCAL_LOG_FORMAT))
    root_logger.addHandler(handler)
    return handler


def resolve_level(level: Union[int, str, None] = None) -> int:
    """Return a numeric log level from an int, a level name or the environment.

    Unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str, None] = None) -> None:
    """Configure logging for Cloud Run or local execution.

    Args:
        level: Root log level; defaults to TIDECACHE_LOG_LEVEL or INFO
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))

    if "K_SERVICE" in os.environ:
        log_client = google.cloud.logging.Client()  # type: ignore[no-untyped-call]
        log_client.setup_logging(log_level=root_logger.level)  # type: ignore[no-untyped-call]
        logging.info("Using google cloud logging")
    else:
        _configure_local_handler(root_logger)
        logging.info("Using standard stream handler with relative path format")
