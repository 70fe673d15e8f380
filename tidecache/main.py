#!/usr/bin/env python3
"""
tidecache - FastAPI service that caches tide736 daily tide curves

This module contains the FastAPI application: it wires the DuckDB cache store,
the tide736 client and the network monitor into one TideDayCache and serves
tide days, extrema, phases and cache maintenance under /api.
"""

# Standard library imports
import contextlib
import logging
import os
import signal
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

# Third-party imports
import aiohttp
import fastapi
import uvicorn
from fastapi import Request, Response

# Local imports
from tidecache import api
from tidecache.cache import TideDayCache
from tidecache.clients.tide736 import Tide736Api
from tidecache.config import AppConfig
from tidecache.logging_utils import setup_logging
from tidecache.network import NetworkMonitor
from tidecache.store import CacheStore

# API response headers for preventing caching
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def create_app(cfg: Optional[AppConfig] = None) -> fastapi.FastAPI:
    """Build the FastAPI application.

    Args:
        cfg: Service configuration; read from the environment when omitted

    Returns:
        Application whose lifespan opens the cache store and HTTP session
    """
    cfg = cfg or AppConfig.from_env()

    @contextlib.asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
        """Open the cache store and the shared HTTP session for the app's lifetime."""
        app.state.config = cfg
        session = aiohttp.ClientSession()
        store = CacheStore(cfg.db_path)
        app.state.http_session = session
        app.state.tide_cache = TideDayCache(
            store=store,
            client=Tide736Api(
                session, base_url=cfg.base_url, timeout=cfg.request_timeout_sec
            ),
            network=NetworkMonitor(),
            default_ttl_days=cfg.default_ttl_days,
            list_limit=cfg.list_limit,
        )
        logging.info(f"Tide cache ready (db={cfg.db_path}, ttl={cfg.default_ttl_days}d)")
        yield
        # Shutdown handling
        logging.info("-----------------------------------------------")
        logging.info("Shutting down app")
        await session.close()
        store.close()

    app = fastapi.FastAPI(title="tidecache", lifespan=lifespan)

    # Add a response header modifier for API routes
    @app.middleware("http")
    async def add_cache_control_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add cache control headers to API responses to prevent caching."""
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            for name, value in NO_CACHE_HEADERS.items():
                response.headers[name] = value
        return response

    api.register_routes(app)
    return app


def setup_signal_handlers() -> None:
    """Log SIGTERM before handing it to the previous handler.

    SIGINT is left alone so uvicorn keeps its Ctrl+C handling.
    """
    original_sigterm_handler = signal.getsignal(signal.SIGTERM)

    def sigterm_handler(sig: int, frame: Any) -> None:
        logging.warning("Received SIGTERM signal, beginning shutdown")
        if callable(original_sigterm_handler):
            original_sigterm_handler(sig, frame)

    signal.signal(signal.SIGTERM, sigterm_handler)


def start_app() -> fastapi.FastAPI:
    """Initialize logging and return the FastAPI application (uvicorn factory)."""
    setup_logging()
    logging.info("***********************************************")
    logging.info("Starting app")
    setup_signal_handlers()
    return create_app()


if __name__ == "__main__":
    """Run the application directly with uvicorn when executed as a script."""
    logging.info("Running uvicorn app")
    uvicorn.run(
        "tidecache.main:start_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        log_level="info",
    )
