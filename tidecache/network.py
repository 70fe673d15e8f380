"""Network-availability signal consulted before any upstream fetch."""

import logging


class NetworkMonitor:
    """Holds whether the upstream provider is currently reachable.

    The owner of the process (the app lifespan, a connectivity probe, or a
    test) flips the state; the cache only reads it. While offline the cache
    serves what it has and never attempts a request.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online != self._online:
            logging.info(f"Network marked {'online' if online else 'offline'}")
        self._online = online
