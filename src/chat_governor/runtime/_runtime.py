"""Live runtime aggregate and its lifecycle."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Sequence
from dataclasses import dataclass
from types import TracebackType

from chat_governor.adapters import FixedWindowRateGovernor, StaleEntryReaper
from chat_governor.application.ports import ClockPort, SummaryGeneratorPort
from chat_governor.application.use_cases import ContextWindower
from chat_governor.application.use_cases.admit_chat import AdmitCallable, ChatAdmission
from chat_governor.config import GovernorSettings
from chat_governor.domain import ConversationMessage, RateDecision, WindowResult


@dataclass(slots=True)
class GovernorRuntime:
    """Aggregate of live collaborators assembled by :func:`build_runtime`.

    The runtime owns the reaper thread and, when it created it, the summary
    generator's HTTP client. Use it as a (async) context manager or call
    :meth:`start` and :meth:`shutdown` explicitly.
    """

    settings: GovernorSettings
    clock: ClockPort
    governor: FixedWindowRateGovernor
    reaper: StaleEntryReaper
    windower: ContextWindower
    generator: SummaryGeneratorPort
    admit: AdmitCallable
    owns_generator: bool = False

    def start(self) -> None:
        """Start the stale-entry reaper."""

        self.reaper.start()

    def check(self, identity: str) -> RateDecision:
        return self.governor.check(identity)

    async def reduce(self, messages: Sequence[ConversationMessage], max_messages: int | None = None) -> WindowResult:
        limit = max_messages if max_messages is not None else self.settings.max_messages
        return await self.windower.reduce(messages, limit)

    async def admit_request(self, identity: str, messages: Sequence[ConversationMessage]) -> ChatAdmission:
        return await self.admit(identity, messages)

    def shutdown(self) -> None:
        """Stop the reaper and release owned resources synchronously.

        Raises :class:`RuntimeError` inside a running event loop; await
        :meth:`shutdown_async` there instead.
        """

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError("GovernorRuntime.shutdown() cannot run inside an active event loop; await shutdown_async() instead")
        asyncio.run(self.shutdown_async())

    async def shutdown_async(self) -> None:
        """Stop the reaper and close the owned generator client.

        The client is closed even when the reaper fails to stop; that failure
        is re-raised afterwards.
        """

        try:
            self.reaper.stop()
        finally:
            await self._close_generator()

    async def _close_generator(self) -> None:
        if not self.owns_generator:
            return
        closer = getattr(self.generator, "aclose", None)
        if closer is None:
            return
        result = closer()
        if inspect.isawaitable(result):
            await result

    def __enter__(self) -> "GovernorRuntime":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    async def __aenter__(self) -> "GovernorRuntime":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown_async()


__all__ = ["GovernorRuntime"]
