"""Wall-clock adapter for :class:`ClockPort`."""

from __future__ import annotations

from datetime import datetime, timezone

from chat_governor.application.ports.time import ClockPort


class SystemClock(ClockPort):
    """Concrete clock port returning timezone-aware UTC timestamps."""

    def now(self) -> datetime:
        """Return the current UTC timestamp with timezone info."""
        return datetime.now(timezone.utc)


__all__ = ["SystemClock"]
