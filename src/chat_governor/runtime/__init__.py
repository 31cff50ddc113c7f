"""Runtime façade assembling the governor from configuration.

Purpose
-------
Expose a stable entry point (:func:`init`, :func:`build_runtime`) that host
applications use instead of wiring adapters and use cases themselves.

Contents
--------
* :func:`init` - resolve settings (arguments plus ``CHAT_*`` overrides) and
  build a runtime, optionally starting the reaper.
* :func:`build_runtime` - composition from an explicit :class:`GovernorSettings`.
* :class:`GovernorRuntime` - the live aggregate with start/shutdown.

System Role
-----------
Every call returns a new, independent runtime; there is no process-wide
singleton, so tests and multi-tenant hosts can hold several side by side.
"""

from __future__ import annotations

from chat_governor.application.ports import ClockPort, DiagnosticHook, SummaryGeneratorPort
from chat_governor.config import UNSET, GovernorSettings, build_settings

from ._composition import build_runtime
from ._runtime import GovernorRuntime


def init(
    *,
    rate_limit: tuple[int, float] | None = None,
    reaper_interval: float | None = None,
    max_messages: int | None = None,
    summary_timeout: float | None = UNSET,
    api_key: str | None = None,
    model: str | None = None,
    clock: ClockPort | None = None,
    generator: SummaryGeneratorPort | None = None,
    diagnostic: DiagnosticHook = None,
    start: bool = True,
) -> GovernorRuntime:
    """Compose a governor runtime according to configuration inputs.

    Inputs
    ------
    rate_limit:
        ``(max_requests, window_seconds)``; ``CHAT_RATE_LIMIT`` overrides it.
    reaper_interval, max_messages, summary_timeout, api_key, model:
        Defaults for the matching ``CHAT_*`` / ``OPENROUTER_API_KEY`` settings.
        ``summary_timeout=None`` disables the summary deadline.
    clock, generator:
        Optional collaborators replacing the system clock and the OpenRouter
        adapter.
    diagnostic:
        Hook receiving ``(event_name, payload)`` for summary failures, rate
        rejections, and reaper sweeps.
    start:
        Start the reaper thread before returning.

    Side Effects
    ------------
    Raises :class:`chat_governor.domain.ConfigurationError` on invalid
    settings. Spawns the reaper thread when ``start`` is ``True``.
    """

    settings = build_settings(
        rate_limit=rate_limit,
        reaper_interval=reaper_interval,
        max_messages=max_messages,
        summary_timeout=summary_timeout,
        api_key=api_key,
        model=model,
    )
    runtime = build_runtime(settings, clock=clock, generator=generator, diagnostic=diagnostic)
    if start:
        runtime.start()
    return runtime


def summary_info() -> str:
    """Return the metadata banner used by the CLI entry point."""

    from .. import __init__conf__

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


__all__ = ["GovernorRuntime", "GovernorSettings", "build_runtime", "init", "summary_info"]
