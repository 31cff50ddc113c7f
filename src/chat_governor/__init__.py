"""Public package surface of the chat governor.

``chat_governor`` throttles how often an identity may invoke a chat assistant
and bounds the conversational context sent to the language model by folding
older messages into a summary. Hosts typically call :func:`init` once and keep
the returned :class:`GovernorRuntime` for the lifetime of the process.
"""

from __future__ import annotations

from .adapters import FixedWindowRateGovernor, OpenRouterSummaryGenerator, StaleEntryReaper, SystemClock
from .application.use_cases import ChatAdmission, ContextWindower, create_admit_chat_request, render_summary_section
from .domain import (
    ConfigurationError,
    ContentPart,
    ConversationMessage,
    ExternalCallError,
    RateDecision,
    RateEntry,
    WindowResult,
)
from .runtime import GovernorRuntime, GovernorSettings, build_runtime, init, summary_info

__all__ = [
    "ChatAdmission",
    "ConfigurationError",
    "ContentPart",
    "ContextWindower",
    "ConversationMessage",
    "ExternalCallError",
    "FixedWindowRateGovernor",
    "GovernorRuntime",
    "GovernorSettings",
    "OpenRouterSummaryGenerator",
    "RateDecision",
    "RateEntry",
    "StaleEntryReaper",
    "SystemClock",
    "WindowResult",
    "build_runtime",
    "create_admit_chat_request",
    "init",
    "render_summary_section",
    "summary_info",
]
