from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from chat_governor.adapters.rate_governor import FixedWindowRateGovernor
from chat_governor.adapters.reaper import StaleEntryReaper
from chat_governor.domain.errors import ConfigurationError


class _FakeClock:
    def __init__(self) -> None:
        self.current = datetime(2025, 9, 23, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current


class _CountingStore:
    def __init__(self, evicted: list[str] | None = None, fail: bool = False) -> None:
        self.calls = 0
        self.evicted = evicted or []
        self.fail = fail
        self.called = threading.Event()

    def evict_expired(self) -> list[str]:
        self.calls += 1
        self.called.set()
        if self.fail:
            raise RuntimeError("store exploded")
        return list(self.evicted)


def test_sweep_evicts_expired_entries_and_reports() -> None:
    clock = _FakeClock()
    governor = FixedWindowRateGovernor(max_requests=3, window=timedelta(seconds=60), clock=clock)
    governor.check("u1")
    governor.check("u2")
    clock.current += timedelta(seconds=61)
    events: list[tuple[str, dict[str, Any]]] = []

    reaper = StaleEntryReaper(governor, interval=300, diagnostic=lambda name, payload: events.append((name, payload)))

    assert reaper.sweep() == 2
    assert len(governor) == 0
    assert events == [("rate_entries_reaped", {"count": 2})]


def test_sweep_does_not_change_admission_for_live_entries() -> None:
    clock = _FakeClock()
    governor = FixedWindowRateGovernor(max_requests=1, window=timedelta(seconds=60), clock=clock)
    governor.check("u1")

    StaleEntryReaper(governor, interval=1).sweep()

    assert governor.check("u1").allowed is False


def test_background_thread_sweeps_until_stopped() -> None:
    store = _CountingStore(evicted=["u1"])
    reaper = StaleEntryReaper(store, interval=0.01)

    reaper.start()
    assert store.called.wait(2.0)
    reaper.stop(timeout=2.0)

    assert reaper.running is False
    assert store.calls >= 1


def test_start_is_idempotent_and_stop_without_start_is_noop() -> None:
    reaper = StaleEntryReaper(_CountingStore(), interval=60)
    reaper.stop()

    reaper.start()
    first_running = reaper.running
    reaper.start()
    reaper.stop(timeout=2.0)

    assert first_running is True
    assert reaper.running is False


def test_sweep_failures_are_reported_and_thread_survives() -> None:
    store = _CountingStore(fail=True)
    events: list[str] = []
    reaper = StaleEntryReaper(store, interval=0.01, diagnostic=lambda name, payload: events.append(name))

    reaper.start()
    assert store.called.wait(2.0)
    still_running = reaper.running
    reaper.stop(timeout=2.0)

    assert still_running is True
    assert "reaper_error" in events


def test_failing_diagnostic_hook_does_not_break_sweep() -> None:
    def hook(name: str, payload: dict[str, Any]) -> None:
        raise RuntimeError("hook failure")

    reaper = StaleEntryReaper(_CountingStore(evicted=["a", "b"]), interval=60, diagnostic=hook)

    assert reaper.sweep() == 2


@pytest.mark.parametrize("interval", [0, -5])
def test_non_positive_interval_is_rejected(interval: float) -> None:
    with pytest.raises(ConfigurationError):
        StaleEntryReaper(_CountingStore(), interval=interval)
