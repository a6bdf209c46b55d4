"""Fixed-window rate limiter keyed by client identity.

Each client gets a counter that resets entirely once its window has passed.
State lives in process memory only, so a restart clears every counter and
several server instances do not share quotas.

Guarded by a threading.Lock so the same limiter can be shared by requests
running on worker threads as well as on the event loop.
"""

import logging
import math
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from coach_relay.relay.config import get_relay_config

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

DEFAULT_WINDOW_SECONDS = 5 * 60
DEFAULT_MAX_REQUESTS = 20


@dataclass
class RateLimitEntry:
    """Counter for one client within its current window."""

    count: int
    reset_at: float  # clock() value at which the window ends


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes:
        limited: True when the request must be rejected.
        retry_after: Whole seconds until the window resets, never below 1.
    """

    limited: bool
    retry_after: int


class RateLimiter:
    """Per-client fixed-window request counter.

    Usage:
        limiter = RateLimiter(window_seconds=300, max_requests=20)

        result = limiter.check(client_id)
        if result.limited:
            ...  # reject, tell the client to wait result.retry_after seconds
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")

        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._next_sweep: float | None = None
        self._lock = threading.Lock()

    def _sweep_expired(self, now: float) -> None:
        """Drop expired entries at most once per window. Caller holds the lock."""
        if self._next_sweep is not None and now < self._next_sweep:
            return
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired rate limit entries")
        self._next_sweep = now + self.window_seconds

    def check(self, client_id: str) -> RateLimitResult:
        """Count a request from ``client_id`` and report whether it is allowed.

        A limited request is not counted. Entries of clients whose window has
        passed are dropped once per window, so the table only holds clients
        seen within roughly the last two windows.
        """
        with self._lock:
            now = self._clock()
            self._sweep_expired(now)
            entry = self._entries.get(client_id)

            if entry is None or now > entry.reset_at:
                self._entries[client_id] = RateLimitEntry(
                    count=1, reset_at=now + self.window_seconds
                )
                return RateLimitResult(
                    limited=False, retry_after=math.ceil(self.window_seconds)
                )

            retry_after = max(1, math.ceil(entry.reset_at - now))

            if entry.count >= self.max_requests:
                logger.warning(
                    f"Rate limit exceeded for {client_id} "
                    f"({entry.count}/{self.max_requests}), retry in {retry_after}s"
                )
                return RateLimitResult(limited=True, retry_after=retry_after)

            entry.count += 1
            return RateLimitResult(limited=False, retry_after=retry_after)

    def get_entry(self, client_id: str) -> RateLimitEntry | None:
        """Return a copy of the stored entry for ``client_id``, if any."""
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, reset_at=entry.reset_at)

    def reset(self) -> None:
        """Forget every client's counter."""
        with self._lock:
            self._entries.clear()


def resolve_client_id(
    forwarded_for: str | Iterable[str] | None,
    peer_host: str | None,
) -> str:
    """Derive the identity used to key the rate limiter.

    Prefers the first address of ``X-Forwarded-For``. The header may be given
    as a single string or as a sequence of header values, in which case the
    first value is used. Falls back to the transport peer address, then to
    the ``"unknown"`` sentinel.

    Args:
        forwarded_for: Raw X-Forwarded-For value(s), if present.
        peer_host: Address of the directly connected peer.

    Returns:
        The client identity string.
    """
    if forwarded_for is not None and not isinstance(forwarded_for, str):
        forwarded_for = next(iter(forwarded_for), None)

    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return peer_host or UNKNOWN_CLIENT


# Module-level singleton instance
_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the process-wide rate limiter.

    Window and quota come from RelayConfig.

    Returns:
        The RateLimiter instance.
    """
    global _rate_limiter
    if _rate_limiter is None:
        config = get_relay_config()
        _rate_limiter = RateLimiter(
            window_seconds=config.rate_limit_window_seconds,
            max_requests=config.rate_limit_max_requests,
        )
    return _rate_limiter
