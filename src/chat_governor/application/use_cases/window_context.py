"""Use case bounding the conversational context sent to the language model.

Purpose
-------
Keep the most recent messages verbatim and fold everything older into a short
summary produced by an external text generator.

Contents
--------
* :class:`ContextWindower` - the windowing policy with its degradation rules.
* :func:`build_transcript` - transcript rendering used for the summary prompt.
* Constants for the default window size, budgets, and system instruction.

System Role
-----------
Application-layer policy. The only suspension point of the governor lives here
(the summary call); every failure of that call is absorbed so a conversation is
never refused because its summary could not be produced.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence

from chat_governor.application.ports import DiagnosticHook, SummaryGeneratorPort, emit_diagnostic
from chat_governor.domain.errors import ConfigurationError
from chat_governor.domain.messages import ConversationMessage, WindowResult

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 20
DEFAULT_SUMMARY_TIMEOUT = 30.0
DEFAULT_TRANSCRIPT_MAX_CHARS = 6000
DEFAULT_SUMMARY_MAX_TOKENS = 300
MIN_TRANSCRIPT_CONTENT_CHARS = 1
"""Messages whose stripped text is shorter than this are left out of the transcript."""

SUMMARY_SYSTEM_INSTRUCTION = (
    "Summarize the preceding conversation concisely in 3-5 sentences, "
    "written in the same language the conversation uses.\n"
    "Include: topics discussed, decisions made, and problems resolved or still open.\n"
    "Reply ONLY with the summary, without any additional formatting."
)

DEFAULT_ROLE_LABELS: Mapping[str, str] = {
    "user": "User",
    "assistant": "Assistant",
}

_UNSET = object()


def build_transcript(
    messages: Sequence[ConversationMessage],
    *,
    role_labels: Mapping[str, str] = DEFAULT_ROLE_LABELS,
    min_content_chars: int = MIN_TRANSCRIPT_CONTENT_CHARS,
) -> str:
    """Render ``messages`` as ``"<Label>: <text>"`` lines.

    Roles other than ``user`` are rendered with the assistant label. Messages
    whose stripped text has fewer than ``min_content_chars`` characters are
    dropped; the threshold applies to the text, never to the label, so short
    answers such as "Yes." survive whatever the labels are.

    Examples
    --------
    >>> msgs = [ConversationMessage("user", "ok"), ConversationMessage("assistant", " ")]
    >>> build_transcript(msgs + [ConversationMessage("assistant", "Rendering starts now")])
    'User: ok\\nAssistant: Rendering starts now'
    """

    fallback = role_labels.get("assistant", "Assistant")
    lines = []
    for message in messages:
        text = message.text()
        if len(text.strip()) < min_content_chars:
            continue
        lines.append(f"{role_labels.get(message.role, fallback)}: {text}")
    return "\n".join(lines)


class ContextWindower:
    """Reduce long conversations to a summary plus the trailing messages.

    Parameters
    ----------
    generator:
        Text-generation capability used only when older messages must be
        summarised.
    timeout:
        Default deadline (seconds) for the summary call; ``None`` waits
        indefinitely.
    transcript_max_chars:
        Character budget applied to the transcript sent as prompt.
    max_output_tokens:
        Output budget passed to the generator.
    role_labels:
        Labels used when rendering the transcript.
    diagnostic:
        Optional hook receiving ``summary_failed`` / ``summary_skipped`` events.

    Examples
    --------
    >>> class Echo:
    ...     async def generate_summary(self, system_instruction, prompt, max_output_tokens):
    ...         return "summary"
    >>> windower = ContextWindower(Echo())
    >>> msgs = [ConversationMessage("user", f"question number {i}") for i in range(3)]
    >>> result = asyncio.run(windower.reduce(msgs, max_messages=2))
    >>> result.summary, len(result.messages)
    ('summary', 2)
    """

    def __init__(
        self,
        generator: SummaryGeneratorPort,
        *,
        timeout: float | None = DEFAULT_SUMMARY_TIMEOUT,
        transcript_max_chars: int = DEFAULT_TRANSCRIPT_MAX_CHARS,
        max_output_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS,
        role_labels: Mapping[str, str] | None = None,
        system_instruction: str = SUMMARY_SYSTEM_INSTRUCTION,
        diagnostic: DiagnosticHook = None,
    ) -> None:
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("summary timeout must be positive")
        if transcript_max_chars <= 0:
            raise ConfigurationError("transcript_max_chars must be positive")
        if max_output_tokens <= 0:
            raise ConfigurationError("max_output_tokens must be positive")
        self._generator = generator
        self._timeout = timeout
        self._transcript_max_chars = transcript_max_chars
        self._max_output_tokens = max_output_tokens
        self._role_labels = dict(role_labels) if role_labels is not None else dict(DEFAULT_ROLE_LABELS)
        self._system_instruction = system_instruction
        self._diagnostic = diagnostic

    async def reduce(
        self,
        messages: Sequence[ConversationMessage],
        max_messages: int = DEFAULT_MAX_MESSAGES,
        *,
        timeout: float | None | object = _UNSET,
    ) -> WindowResult:
        """Return ``messages`` unchanged or a summary plus the last ``max_messages``.

        ``timeout`` overrides the configured deadline for this call only. The
        returned messages always form a suffix of the input of length
        ``min(len(messages), max_messages)``.
        """

        if max_messages <= 0:
            raise ConfigurationError("max_messages must be positive")
        if len(messages) <= max_messages:
            return WindowResult(summary=None, messages=tuple(messages))

        split = len(messages) - max_messages
        older = messages[:split]
        recent = tuple(messages[split:])
        effective_timeout = self._timeout if timeout is _UNSET else timeout
        summary = await self._summarise(older, effective_timeout)  # type: ignore[arg-type]
        return WindowResult(summary=summary, messages=recent)

    async def _summarise(self, older: Sequence[ConversationMessage], timeout: float | None) -> str:
        transcript = build_transcript(older, role_labels=self._role_labels)
        if not transcript.strip():
            LOGGER.debug("Skipping summary: %d older messages carry no text", len(older))
            emit_diagnostic(self._diagnostic, "summary_skipped", {"older_count": len(older)}, logger=LOGGER)
            return ""

        try:
            call = self._generator.generate_summary(
                self._system_instruction,
                transcript[: self._transcript_max_chars],
                self._max_output_tokens,
            )
            text = await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as exc:
            self._report_failure("timeout", exc, len(older))
            return ""
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            self._report_failure("cancelled", exc, len(older))
            return ""
        except Exception as exc:  # noqa: BLE001
            self._report_failure("error", exc, len(older))
            return ""
        return text if isinstance(text, str) else ""

    def _report_failure(self, reason: str, exc: BaseException, older_count: int) -> None:
        LOGGER.warning("Conversation summary failed (%s): %r", reason, exc)
        emit_diagnostic(
            self._diagnostic,
            "summary_failed",
            {"reason": reason, "error": repr(exc), "older_count": older_count},
            logger=LOGGER,
        )


__all__ = [
    "DEFAULT_MAX_MESSAGES",
    "DEFAULT_SUMMARY_MAX_TOKENS",
    "DEFAULT_SUMMARY_TIMEOUT",
    "DEFAULT_TRANSCRIPT_MAX_CHARS",
    "ContextWindower",
    "SUMMARY_SYSTEM_INSTRUCTION",
    "build_transcript",
]
