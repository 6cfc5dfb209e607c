"""Per-client request rate limiting."""

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from cachetools import TTLCache
from prometheus_client import Counter

from citycast.config import Settings

logger = structlog.get_logger()

# Metrics
rate_limited = Counter("rate_limited_total", "Requests rejected by the rate limiter")


class RateLimitExceeded(Exception):
    """Raised when a client has used up its request window."""

    def __init__(self, retry_after: int) -> None:
        super().__init__("Rate limit exceeded")
        self.retry_after = retry_after


@dataclass
class _Window:
    count: int = 0


class RateLimiter:
    """Fixed-window request counter keyed by client.

    A window opens on a client's first request and lasts ``window_seconds``.
    Windows live in a TTL cache, so an expired window is simply absent and the
    next request opens a new one. The counter is mutated in place because
    reassigning a key would restart its TTL.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: TTLCache[str, _Window] = TTLCache(
            maxsize=max_clients,
            ttl=window_seconds,
            timer=clock,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiter":
        return cls(settings.rate_limit_requests, settings.rate_limit_window_seconds)

    def consume(self, key: str) -> None:
        """Count one request for ``key``.

        Raises:
            RateLimitExceeded: If the window already holds ``max_requests``
        """
        window = self._windows.get(key)
        if window is None:
            window = _Window()
            self._windows[key] = window

        if window.count >= self._max_requests:
            rate_limited.inc()
            logger.warning("Rate limit exceeded", client=key, limit=self._max_requests)
            raise RateLimitExceeded(self._window_seconds)

        window.count += 1
