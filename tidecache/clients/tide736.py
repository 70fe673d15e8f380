"""tide736.net tide API client.

tide736 publishes pre-computed daily tide curves for Japanese harbours. One
GET request per (station, day) returns the sampled water level and the lunar
tide name (大潮, 中潮, ...) for that day.

API endpoint: https://api.tide736.net/get_tide.php
"""

# Standard library imports
import datetime
import json
import logging
import urllib.parse
from typing import Any, List, Optional, Tuple, TypedDict

# Third-party imports
import aiohttp
import pydantic

# Local imports
from tidecache.types import SeriesShape, Station, TideDayPayload, TidePoint
from tidecache.util import day_key, parse_clock
from .base import BaseApiClient, BaseClientError


class Tide736RequestParams(TypedDict):
    """Parameters for tide736 get_tide.php requests."""

    pc: str
    hc: str
    yr: int
    mn: int
    dy: int
    rg: str


class TideClientError(BaseClientError):
    """Base error for tide736 API calls."""


class NetworkError(TideClientError):
    """Transport failure, timeout or non-2xx response from tide736."""


class ParseError(TideClientError):
    """Response body from tide736 is not valid JSON."""


class UpstreamStatusError(TideClientError):
    """tide736 answered with valid JSON carrying status=false."""


class Tide736Api(BaseApiClient):
    """Client for the tide736 daily tide API.

    The tide array appears in one of two places in the response and both are
    tried in order:
        tide.tide                       - direct array
        tide.chart["YYYY-MM-DD"].tide   - array keyed by the requested day

    Requests are never retried here; retrying is the caller's decision.
    """

    BASE_URL = "https://api.tide736.net/get_tide.php"
    connection_error = NetworkError

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Tide736Api with an aiohttp client session.

        Args:
            session: Shared aiohttp session
            base_url: Override for the get_tide.php endpoint (e.g. a proxy)
            timeout: Total timeout per request in seconds
        """
        super().__init__(session=session, timeout=timeout)
        self.base_url = base_url or self.BASE_URL

    @property
    def client_type(self) -> str:
        return "tide736"

    def _build_params(
        self, station: Station, day: datetime.date
    ) -> Tide736RequestParams:
        return {
            "pc": station.pc,
            "hc": station.hc,
            "yr": day.year,
            "mn": day.month,
            "dy": day.day,
            "rg": "day",
        }

    async def _execute_request(
        self, params: Tide736RequestParams, station_code: str = "unknown"
    ) -> Any:
        """Make a single request to tide736 and decode the JSON body.

        Args:
            params: API request parameters
            station_code: Station code for logging

        Returns:
            The decoded JSON document

        Raises:
            NetworkError: If the request fails, times out or returns non-2xx
            ParseError: If the body is not valid JSON
        """
        url = self.base_url + "?" + urllib.parse.urlencode(params)
        self.log(f"tide736 API request: {url}", station_code=station_code)
        content_type, text = await self._get_text(url, station_code)
        try:
            return json.loads(text)
        except ValueError as e:
            # Content type is unreliable; only the body decides
            error_msg = f"JSON parse failed ({content_type}): {text[:120]}"
            self.log(error_msg, logging.ERROR, station_code=station_code)
            raise ParseError(error_msg) from e

    async def fetch_day(self, station: Station, day: datetime.date) -> TideDayPayload:
        """Fetch one day of tide data for a station.

        Args:
            station: tide736 station codes
            day: Calendar day in the station's local time

        Returns:
            TideDayPayload with the parsed series (possibly empty), the tide
            name if present, and where the series was found

        Raises:
            NetworkError: Transport failure or non-2xx status
            ParseError: Body is not valid JSON
            UpstreamStatusError: Body carries status=false
        """
        station_code = str(station)
        self.log(f"Fetching tide curve for {day_key(day)}", station_code=station_code)
        payload = await self._execute_request(
            self._build_params(station, day), station_code
        )

        if not isinstance(payload, dict) or not payload.get("status"):
            detail = ""
            if isinstance(payload, dict) and isinstance(payload.get("error"), str):
                detail = f": {payload['error']}"
            error_msg = f"tide736 status=false{detail}"
            self.log(error_msg, logging.WARNING, station_code=station_code)
            raise UpstreamStatusError(error_msg)

        raw_points, shape = extract_series(payload, day)
        series = parse_points(raw_points)
        if len(series) < len(raw_points):
            self.log(
                f"Dropped {len(raw_points) - len(series)} of {len(raw_points)} points without a usable time",
                logging.WARNING,
                station_code=station_code,
            )
        if shape is SeriesShape.SHAPE_UNRECOGNIZED:
            self.log(
                "Response has no tide array in any known shape",
                logging.WARNING,
                station_code=station_code,
            )

        return TideDayPayload(
            series=series,
            tide_name=extract_tide_name(payload, day),
            shape=shape,
        )


def extract_series(payload: dict[str, Any], day: datetime.date) -> Tuple[List[Any], SeriesShape]:
    """Locate the raw tide array of a tide736 response.

    Returns:
        The raw array (empty if none) and the shape it was found in
    """
    tide = payload.get("tide")
    if not isinstance(tide, dict):
        return [], SeriesShape.SHAPE_UNRECOGNIZED

    direct = tide.get("tide")
    if isinstance(direct, list) and direct:
        return direct, SeriesShape.FOUND_DIRECT

    chart = tide.get("chart")
    if isinstance(chart, dict):
        day_chart = chart.get(day_key(day))
        if isinstance(day_chart, dict):
            points = day_chart.get("tide")
            if isinstance(points, list) and points:
                return points, SeriesShape.FOUND_CHART
        return [], SeriesShape.NOT_FOUND_FOR_DATE

    if isinstance(direct, list):
        # Known shape, just no samples for the day
        return [], SeriesShape.NOT_FOUND_FOR_DATE
    return [], SeriesShape.SHAPE_UNRECOGNIZED


def extract_tide_name(payload: dict[str, Any], day: datetime.date) -> Optional[str]:
    """Return the lunar tide name (e.g. 大潮) of a tide736 response, if any."""
    tide = payload.get("tide")
    if not isinstance(tide, dict):
        return None

    chart = tide.get("chart")
    if isinstance(chart, dict):
        day_chart = chart.get(day_key(day))
        if isinstance(day_chart, dict):
            title = _moon_title(day_chart)
            if title:
                return title

    return _moon_title(tide)


def _moon_title(container: dict[str, Any]) -> Optional[str]:
    moon = container.get("moon")
    if isinstance(moon, dict):
        title = moon.get("title")
        if isinstance(title, str) and title:
            return title
    return None


def parse_points(raw_points: List[Any]) -> List[TidePoint]:
    """Validate raw samples, dropping those without a usable time reference."""
    points: List[TidePoint] = []
    for raw in raw_points:
        if not isinstance(raw, dict):
            continue
        try:
            point = TidePoint.model_validate(raw)
        except pydantic.ValidationError:
            continue
        if point.unix is None and (point.time is None or parse_clock(point.time) is None):
            continue
        points.append(point)
    return points
