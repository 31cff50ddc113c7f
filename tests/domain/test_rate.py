from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chat_governor.domain.rate import RateDecision, RateEntry

START = datetime(2025, 9, 23, tzinfo=timezone.utc)


def test_entry_expires_exactly_at_reset() -> None:
    entry = RateEntry(identity="u1", count=3, reset_at=START + timedelta(seconds=60))

    assert entry.is_expired(START + timedelta(seconds=59, microseconds=999999)) is False
    assert entry.is_expired(START + timedelta(seconds=60)) is True


def test_decision_rejects_negative_remaining() -> None:
    with pytest.raises(ValueError, match="negative"):
        RateDecision(allowed=False, remaining=-1)


def test_retry_after_rounds_up_and_never_drops_below_one() -> None:
    decision = RateDecision(allowed=False, remaining=0, reset_at=START + timedelta(seconds=10, milliseconds=1))

    assert decision.retry_after(START) == 11
    assert decision.retry_after(START + timedelta(seconds=30)) == 1
    assert RateDecision(allowed=False, remaining=0).retry_after(START) == 1


def test_decision_to_dict() -> None:
    decision = RateDecision(allowed=True, remaining=19, reset_at=START)

    assert decision.to_dict() == {"allowed": True, "remaining": 19, "reset_at": "2025-09-23T00:00:00+00:00"}
    assert RateDecision(allowed=False, remaining=0).to_dict()["reset_at"] is None
