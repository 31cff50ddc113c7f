"""Runtime composition wiring clock, governor, reaper, and windower.

Purpose
-------
Translate :class:`GovernorSettings` into a live :class:`GovernorRuntime`. The
helpers here keep wiring small, declarative, and testable; callers may inject
fakes for the clock and the summary generator.
"""

from __future__ import annotations

from chat_governor.adapters import FixedWindowRateGovernor, OpenRouterSummaryGenerator, StaleEntryReaper, SystemClock
from chat_governor.application.ports import ClockPort, DiagnosticHook, SummaryGeneratorPort
from chat_governor.application.use_cases import ContextWindower, create_admit_chat_request
from chat_governor.config import GovernorSettings

from ._runtime import GovernorRuntime


def build_runtime(
    settings: GovernorSettings,
    *,
    clock: ClockPort | None = None,
    generator: SummaryGeneratorPort | None = None,
    diagnostic: DiagnosticHook = None,
) -> GovernorRuntime:
    """Assemble the governor runtime from resolved settings.

    The reaper is created but not started; call :meth:`GovernorRuntime.start`.
    """

    resolved_clock: ClockPort = clock if clock is not None else SystemClock()
    governor = FixedWindowRateGovernor(
        max_requests=settings.max_requests,
        window=settings.window,
        clock=resolved_clock,
    )
    reaper = StaleEntryReaper(governor, interval=settings.reaper_interval, diagnostic=diagnostic)
    owns_generator = generator is None
    resolved_generator = generator if generator is not None else _create_generator(settings)
    windower = ContextWindower(
        resolved_generator,
        timeout=settings.summary_timeout,
        transcript_max_chars=settings.transcript_max_chars,
        max_output_tokens=settings.summary_max_tokens,
        diagnostic=diagnostic,
    )
    admit = create_admit_chat_request(
        governor=governor,
        windower=windower,
        clock=resolved_clock,
        max_messages=settings.max_messages,
        diagnostic=diagnostic,
    )
    return GovernorRuntime(
        settings=settings,
        clock=resolved_clock,
        governor=governor,
        reaper=reaper,
        windower=windower,
        generator=resolved_generator,
        admit=admit,
        owns_generator=owns_generator,
    )


def _create_generator(settings: GovernorSettings) -> OpenRouterSummaryGenerator:
    return OpenRouterSummaryGenerator(
        api_key=settings.api_key,
        model=settings.model,
        api_base=settings.api_base,
    )


__all__ = ["build_runtime"]
