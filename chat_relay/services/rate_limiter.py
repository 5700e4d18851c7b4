"""In-memory, per-client-address rate limiting.

A :class:`RateLimiter` enforces a minimum interval between accepted
requests from the same client address.  One instance is owned by the
application (``app.state.rate_limiter``) and handed to the relay service,
so tests can build their own with a fake clock.

The table is bounded.  Entries older than the window can no longer reject
anyone, so they are swept periodically; on top of that the table is capped
at ``max_entries`` and the least recently accepted address is evicted
first.  The table lives in a single process: several server instances
would each keep their own.
"""

from __future__ import annotations

from collections import OrderedDict
import threading
import time
from typing import Callable

from loguru import logger

from ..config.app_config import AppConfig
from ..utils.error_handler import RateLimitExceeded


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """Tracks the last accepted request time (epoch ms) per client address."""

    def __init__(
        self,
        window_ms: int = 2000,
        max_entries: int = 10_000,
        sweep_interval: int = 1000,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self.window_ms = window_ms
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._last_seen: OrderedDict[str, int] = OrderedDict()
        self._accepted_since_sweep = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "RateLimiter":
        return cls(
            window_ms=app_config.rate_limit_window_ms,
            max_entries=app_config.rate_limit_max_entries,
            sweep_interval=app_config.rate_limit_sweep_interval,
        )

    def check(self, client_address: str) -> None:
        """Accept a request from ``client_address`` or raise.

        An address with no recorded request is always accepted.  A request
        arriving less than ``window_ms`` after the last accepted one raises
        :class:`RateLimitExceeded` and leaves the recorded timestamp alone.
        On acceptance the current time is recorded for the address.
        """
        with self._lock:
            now = self._clock()
            last = self._last_seen.get(client_address)
            if last is not None:
                elapsed = now - last
                if elapsed < self.window_ms:
                    raise RateLimitExceeded(retry_after_ms=self.window_ms - elapsed)

            self._last_seen[client_address] = now
            self._last_seen.move_to_end(client_address)

            self._accepted_since_sweep += 1
            if self._accepted_since_sweep >= self.sweep_interval:
                self._sweep_unlocked(now)
            while len(self._last_seen) > self.max_entries:
                evicted, _ = self._last_seen.popitem(last=False)
                logger.debug("Rate-limit table full, evicted {}", evicted)

    def last_request(self, client_address: str) -> int | None:
        """Return the recorded timestamp for ``client_address``, if any."""
        with self._lock:
            return self._last_seen.get(client_address)

    def sweep(self) -> int:
        """Drop entries whose window has expired; return how many were dropped."""
        with self._lock:
            return self._sweep_unlocked(self._clock())

    def _sweep_unlocked(self, now: int) -> int:
        self._accepted_since_sweep = 0
        # Insertion order follows acceptance time, so expired entries sit at the front.
        dropped = 0
        while self._last_seen:
            address, last = next(iter(self._last_seen.items()))
            if now - last < self.window_ms:
                break
            del self._last_seen[address]
            dropped += 1
        if dropped:
            logger.debug("Swept {} expired rate-limit entries", dropped)
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_seen)
