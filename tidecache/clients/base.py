"""Base class for API clients."""

import abc
import asyncio
import logging
from typing import Optional, Tuple, Type

import aiohttp


class BaseClientError(Exception):
    """Base exception for all API client errors."""


class BaseApiClient(abc.ABC):
    """Abstract base class for API clients.

    Holds the shared aiohttp session and the per-request timeout, and performs
    single GET requests, turning transport failures and non-2xx answers into
    the client's `connection_error` type. Requests are never retried here.
    """

    DEFAULT_TIMEOUT = 15.0  # seconds

    # Raised for transport failures, timeouts and non-2xx statuses
    connection_error: Type[BaseClientError] = BaseClientError

    _session: aiohttp.ClientSession

    @property
    @abc.abstractmethod
    def client_type(self) -> str:
        """Return the string identifier for the client type (e.g., 'tide736')."""
        raise NotImplementedError

    def __init__(
        self, session: aiohttp.ClientSession, timeout: Optional[float] = None
    ) -> None:
        """Initialize the base client with an aiohttp session.

        Args:
            session: The aiohttp client session to use for requests.
            timeout: Total timeout per request in seconds.
        """
        self._session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout or self.DEFAULT_TIMEOUT)

    def log(
        self,
        message: str,
        level: int = logging.INFO,
        station_code: Optional[str] = None,
    ) -> None:
        """Log a message, automatically prepending client type and optional station code."""
        if station_code:
            prefix = f"[{station_code}][{self.client_type}]"
        else:
            prefix = f"[{self.client_type}]"
        logging.log(level, f"{prefix} {message}")

    async def _get_text(
        self, url: str, station_code: Optional[str] = None
    ) -> Tuple[str, str]:
        """GET a URL and return its content type and body.

        Raises:
            connection_error: If the request fails, times out or returns non-2xx
        """
        try:
            async with self._session.get(url, timeout=self.timeout) as response:
                content_type = response.headers.get("content-type", "")
                text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error_msg = f"Failed to connect to {self.client_type} API: {e!r}"
            self.log(error_msg, logging.ERROR, station_code=station_code)
            raise self.connection_error(error_msg) from e

        if not 200 <= status < 300:
            error_msg = f"HTTP {status} ({content_type}): {text[:120]}"
            self.log(error_msg, logging.ERROR, station_code=station_code)
            raise self.connection_error(error_msg)
        return content_type, text
