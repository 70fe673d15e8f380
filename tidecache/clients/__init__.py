# noqa

from .base import BaseApiClient, BaseClientError
from .tide736 import (
    NetworkError,
    ParseError,
    Tide736Api,
    TideClientError,
    UpstreamStatusError,
)

__all__ = [
    "BaseApiClient",
    "BaseClientError",
    "NetworkError",
    "ParseError",
    "Tide736Api",
    "TideClientError",
    "UpstreamStatusError",
]
