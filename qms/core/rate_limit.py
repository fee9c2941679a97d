"""
Request rate limiting
Fixed-window counters keyed by client identity
"""
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from .config import settings


class RateLimiter:
    """
    Interface for request budgets.

    hit() records one request for a key and reports whether it is allowed
    and, when it is not, how many seconds until the window resets.
    """

    def hit(self, key: str) -> Tuple[bool, int]:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local fixed-window limiter.

    Counters are lost on restart and are not shared between processes; a
    multi-instance deployment needs a shared-store implementation of the
    same interface.
    """

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int]:
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)

            if len(self._windows) > 10000:
                self._evict_expired(now)

        if count > self.max_requests:
            retry_after = max(1, int(started + self.window_seconds - now))
            return False, retry_after
        return True, 0

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


rate_limiter = InMemoryRateLimiter(
    max_requests=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


def is_exempt(path: str) -> bool:
    """Health checks are never limited; auth routes are free in development"""
    if path in ("/health", f"{settings.API_V1_STR}/health"):
        return True
    if settings.is_development and path.startswith(f"{settings.API_V1_STR}/auth"):
        return True
    return False


def client_key(host: Optional[str], forwarded_for: Optional[str] = None) -> str:
    """
    Identity a request is counted against

    The socket address, unless the connection comes from one of
    settings.TRUSTED_PROXIES, in which case the first forwarded address.
    """
    if forwarded_for and host in settings.TRUSTED_PROXIES:
        return forwarded_for.split(",")[0].strip() or host
    return host or "unknown"
