"""Port describing the external text-generation capability."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SummaryGeneratorPort(Protocol):
    """Generate a short summary for a conversation transcript.

    Implementations raise :class:`chat_governor.domain.errors.ExternalCallError`
    on provider errors; callers must also expect timeouts and cancellation.
    """

    async def generate_summary(self, system_instruction: str, prompt: str, max_output_tokens: int) -> str:
        """Return the generated text for ``prompt`` under ``system_instruction``."""


__all__ = ["SummaryGeneratorPort"]
