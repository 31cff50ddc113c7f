"""Fixed-window rate governor keyed by caller identity.

Purpose
-------
Admit at most ``max_requests`` chat invocations per identity in each window of
``window`` length, with lazy expiry so correctness never depends on cleanup.

Contents
--------
* :class:`FixedWindowRateGovernor` - thread-safe implementation of
  :class:`RateGovernorPort`.

System Role
-----------
First gate of every chat request. The check-then-increment sequence runs under
one lock, so parallel workers sharing an instance cannot both take the last
slot. A counter window may admit up to ``2 * max_requests`` requests across a
window boundary; that is the accepted cost of the fixed-window scheme.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta

from chat_governor.application.ports.rate_governor import RateGovernorPort
from chat_governor.application.ports.time import ClockPort
from chat_governor.domain.errors import ConfigurationError
from chat_governor.domain.rate import RateDecision, RateEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 20
DEFAULT_WINDOW = timedelta(seconds=60)
MAX_WINDOW = timedelta(days=3660)


class FixedWindowRateGovernor(RateGovernorPort):
    """Limit requests per identity within a fixed time window.

    Examples
    --------
    >>> from datetime import timezone
    >>> class FrozenClock:
    ...     def now(self):
    ...         return datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> governor = FixedWindowRateGovernor(max_requests=2, window=timedelta(seconds=60), clock=FrozenClock())
    >>> [governor.check("u1").remaining for _ in range(2)]
    [1, 0]
    >>> governor.check("u1").allowed
    False
    """

    def __init__(
        self,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window: timedelta = DEFAULT_WINDOW,
        clock: ClockPort,
    ) -> None:
        if isinstance(max_requests, bool) or not isinstance(max_requests, int) or max_requests <= 0:
            raise ConfigurationError("max_requests must be a positive integer")
        if not isinstance(window, timedelta) or window <= timedelta(0):
            raise ConfigurationError("window must be a positive timedelta")
        if window > MAX_WINDOW:
            raise ConfigurationError(f"window must not exceed {MAX_WINDOW.days} days")
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._entries: dict[str, RateEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window(self) -> timedelta:
        return self._window

    @property
    def clock(self) -> ClockPort:
        return self._clock

    def check(self, identity: str) -> RateDecision:
        """Consume one slot for ``identity`` when its window has capacity."""

        with self._lock:
            now = self._clock.now()
            entry = self._entries.get(identity)
            if entry is None or entry.is_expired(now):
                entry = RateEntry(identity=identity, count=1, reset_at=now + self._window)
                self._entries[identity] = entry
                return RateDecision(allowed=True, remaining=self._max_requests - 1, reset_at=entry.reset_at)

            if entry.count >= self._max_requests:
                LOGGER.debug("Rate limit reached for %s until %s", identity, entry.reset_at.isoformat())
                return RateDecision(allowed=False, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            return RateDecision(allowed=True, remaining=self._max_requests - entry.count, reset_at=entry.reset_at)

    def evict_expired(self, now: datetime | None = None) -> list[str]:
        """Delete entries whose window has lapsed and return their identities."""

        with self._lock:
            current = now if now is not None else self._clock.now()
            expired = [identity for identity, entry in self._entries.items() if entry.is_expired(current)]
            for identity in expired:
                del self._entries[identity]
        return expired

    def reset(self, identity: str | None = None) -> None:
        """Forget ``identity`` (or every identity when ``None``)."""

        with self._lock:
            if identity is None:
                self._entries.clear()
            else:
                self._entries.pop(identity, None)

    def snapshot(self) -> dict[str, RateEntry]:
        """Return copies of the stored entries keyed by identity."""

        with self._lock:
            return {
                identity: RateEntry(identity=entry.identity, count=entry.count, reset_at=entry.reset_at)
                for identity, entry in self._entries.items()
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["DEFAULT_MAX_REQUESTS", "DEFAULT_WINDOW", "MAX_WINDOW", "FixedWindowRateGovernor"]
