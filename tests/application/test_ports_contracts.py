from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import pytest

from chat_governor.application.ports import ClockPort, RateGovernorPort, SummaryGeneratorPort, emit_diagnostic
from chat_governor.domain.rate import RateDecision


class _FakeClock(ClockPort):
    def now(self) -> datetime:
        return datetime(2025, 9, 23, tzinfo=timezone.utc)


class _FakeGovernor(RateGovernorPort):
    def check(self, identity: str) -> RateDecision:
        return RateDecision(allowed=True, remaining=3)


class _FakeGenerator(SummaryGeneratorPort):
    async def generate_summary(self, system_instruction: str, prompt: str, max_output_tokens: int) -> str:
        return f"{len(prompt)}:{max_output_tokens}"


def test_fakes_satisfy_runtime_checkable_ports() -> None:
    assert isinstance(_FakeClock(), ClockPort)
    assert isinstance(_FakeGovernor(), RateGovernorPort)
    assert isinstance(_FakeGenerator(), SummaryGeneratorPort)


def test_unrelated_objects_do_not_satisfy_ports() -> None:
    assert not isinstance(object(), ClockPort)
    assert not isinstance(object(), SummaryGeneratorPort)


def test_generator_port_contract_is_awaitable() -> None:
    assert asyncio.run(_FakeGenerator().generate_summary("sys", "abc", 10)) == "3:10"


def test_emit_diagnostic_ignores_missing_hook() -> None:
    emit_diagnostic(None, "noop", {}, logger=logging.getLogger("tests"))


def test_emit_diagnostic_forwards_payload() -> None:
    events: list[tuple[str, dict[str, Any]]] = []

    emit_diagnostic(lambda name, payload: events.append((name, payload)), "evt", {"a": 1}, logger=logging.getLogger("tests"))

    assert events == [("evt", {"a": 1})]


def test_emit_diagnostic_logs_hook_failures(caplog: pytest.LogCaptureFixture) -> None:
    def hook(name: str, payload: dict[str, Any]) -> None:
        raise RuntimeError("broken hook")

    with caplog.at_level(logging.ERROR, logger="tests.diagnostics"):
        emit_diagnostic(hook, "evt", {}, logger=logging.getLogger("tests.diagnostics"))

    assert "Diagnostic hook raised while reporting evt" in caplog.text
