"""Use case composing admission control and context windowing for a chat turn.

Purpose
-------
Mirror the inbound chat flow: check the caller's quota first and, only when the
request is admitted, window the conversation history before the host builds its
model prompt.

Contents
--------
* :class:`ChatAdmission` - structured outcome handed back to the host.
* :func:`create_admit_chat_request` - factory returning the async callable.
* :func:`render_summary_section` - system-prompt fragment for a summary.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from chat_governor.application.ports import ClockPort, DiagnosticHook, RateGovernorPort, emit_diagnostic
from chat_governor.domain.errors import ConfigurationError
from chat_governor.domain.messages import ConversationMessage, WindowResult

from .window_context import DEFAULT_MAX_MESSAGES, ContextWindower

LOGGER = logging.getLogger(__name__)

RATE_LIMITED_STATUS = 429
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please wait a moment before sending more messages."
SUMMARY_SECTION_HEADING = "## Previous conversation summary"

AdmitCallable = Callable[[str, Sequence[ConversationMessage]], Awaitable["ChatAdmission"]]


@dataclass(slots=True, frozen=True)
class ChatAdmission:
    """Result of admitting (or refusing) one chat request.

    Attributes
    ----------
    admitted:
        ``False`` when the identity is over capacity.
    status:
        HTTP-style status the host can return directly (``200`` or ``429``).
    remaining:
        Requests left in the identity's current window.
    retry_after:
        Seconds until the window lapses; only set for refusals.
    error:
        Human-readable refusal message; ``None`` when admitted.
    window:
        Windowed conversation; ``None`` for refusals.
    """

    admitted: bool
    status: int
    remaining: int
    retry_after: int | None = None
    error: str | None = None
    window: WindowResult | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "admitted": self.admitted,
            "status": self.status,
            "remaining": self.remaining,
        }
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        if self.error is not None:
            data["error"] = self.error
        if self.window is not None:
            data["window"] = self.window.to_dict()
        return data


def render_summary_section(summary: str | None) -> str:
    """Return the system-prompt section carrying ``summary`` or ``""``.

    Examples
    --------
    >>> render_summary_section(None)
    ''
    >>> render_summary_section("We discussed thumbnails.")
    '## Previous conversation summary\\nWe discussed thumbnails.'
    """

    if summary is None or not summary.strip():
        return ""
    return f"{SUMMARY_SECTION_HEADING}\n{summary.strip()}"


def create_admit_chat_request(
    *,
    governor: RateGovernorPort,
    windower: ContextWindower,
    clock: ClockPort,
    max_messages: int = DEFAULT_MAX_MESSAGES,
    diagnostic: DiagnosticHook = None,
) -> AdmitCallable:
    """Build the admission callable bound to ``governor`` and ``windower``.

    The returned coroutine function never raises for over-capacity identities
    or failed summaries; both surface as fields of :class:`ChatAdmission`.
    """

    if max_messages <= 0:
        raise ConfigurationError("max_messages must be positive")

    async def admit(identity: str, messages: Sequence[ConversationMessage]) -> ChatAdmission:
        decision = governor.check(identity)
        if not decision.allowed:
            retry_after = decision.retry_after(clock.now())
            LOGGER.debug("Identity %s over capacity; retry in %ss", identity, retry_after)
            emit_diagnostic(
                diagnostic,
                "rate_limited",
                {
                    "identity": identity,
                    "reset_at": decision.reset_at.isoformat() if decision.reset_at is not None else None,
                },
                logger=LOGGER,
            )
            return ChatAdmission(
                admitted=False,
                status=RATE_LIMITED_STATUS,
                remaining=0,
                retry_after=retry_after,
                error=RATE_LIMITED_MESSAGE,
            )

        window = await windower.reduce(messages, max_messages)
        return ChatAdmission(admitted=True, status=200, remaining=decision.remaining, window=window)

    return admit


__all__ = [
    "AdmitCallable",
    "ChatAdmission",
    "RATE_LIMITED_MESSAGE",
    "RATE_LIMITED_STATUS",
    "create_admit_chat_request",
    "render_summary_section",
]
