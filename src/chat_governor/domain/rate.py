"""Value objects describing per-identity admission state.

Purpose
-------
Capture the fixed-window counter kept for every identity and the decision
returned to callers when they ask for admission.

Contents
--------
* :class:`RateEntry` - mutable counter for one identity's current window.
* :class:`RateDecision` - immutable admission outcome.

System Role
-----------
Pure data used by :class:`chat_governor.adapters.rate_governor.FixedWindowRateGovernor`
and the admission use case; contains no locking or clock access.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class RateEntry:
    """Counter for the requests admitted to ``identity`` in the current window.

    Attributes
    ----------
    identity:
        Key scoping the limit (user id, session id, ...).
    count:
        Requests admitted inside the window; never exceeds the configured maximum.
    reset_at:
        Instant the window lapses. The entry is live only while ``now < reset_at``.
    """

    identity: str
    count: int
    reset_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` has reached ``reset_at``."""

        return now >= self.reset_at


@dataclass(slots=True, frozen=True)
class RateDecision:
    """Outcome of a single admission check.

    ``allowed=False`` is the over-capacity signal: an expected result the
    caller answers with a "retry shortly" response, not an error.
    """

    allowed: bool
    remaining: int
    reset_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.remaining < 0:
            raise ValueError("remaining must not be negative")

    def retry_after(self, now: datetime) -> int:
        """Return whole seconds until the window lapses, at least ``1``.

        Examples
        --------
        >>> from datetime import timedelta, timezone
        >>> start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        >>> RateDecision(False, 0, start + timedelta(seconds=49.2)).retry_after(start)
        50
        """

        if self.reset_at is None:
            return 1
        seconds = (self.reset_at - now).total_seconds()
        return max(1, math.ceil(seconds))

    def to_dict(self) -> dict[str, Any]:
        """Serialise the decision with an ISO8601 ``reset_at``."""

        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "reset_at": self.reset_at.isoformat() if self.reset_at is not None else None,
        }


__all__ = ["RateDecision", "RateEntry"]
