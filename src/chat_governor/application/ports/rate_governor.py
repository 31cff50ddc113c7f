"""Port for per-identity admission control."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chat_governor.domain.rate import RateDecision


@runtime_checkable
class RateGovernorPort(Protocol):
    """Decide whether ``identity`` may invoke the assistant now."""

    def check(self, identity: str) -> RateDecision:
        """Return the admission decision, consuming a slot when allowed."""


__all__ = ["RateGovernorPort"]
