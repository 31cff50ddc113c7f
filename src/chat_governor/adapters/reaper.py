"""Background sweep evicting lapsed rate entries.

Purpose
-------
Bound the memory held by :class:`FixedWindowRateGovernor` for identities that
stopped sending requests. Admission decisions never depend on this sweep.

Contents
--------
* :class:`StaleEntryReaper` - periodic daemon thread with start/stop lifecycle.

System Role
-----------
Owned by :class:`chat_governor.runtime.GovernorRuntime`; started and stopped
with it so shutdown never leaks the background thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from chat_governor.application.ports import DiagnosticHook, emit_diagnostic
from chat_governor.domain.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

DEFAULT_REAP_INTERVAL = 300.0


class _EvictingStore(Protocol):
    def evict_expired(self) -> list[str]: ...


class StaleEntryReaper:
    """Periodically call ``governor.evict_expired()`` on a daemon thread.

    Examples
    --------
    >>> class Store:
    ...     def evict_expired(self):
    ...         return ["u1"]
    >>> StaleEntryReaper(Store(), interval=60).sweep()
    1
    """

    def __init__(
        self,
        governor: _EvictingStore,
        *,
        interval: float = DEFAULT_REAP_INTERVAL,
        stop_timeout: float | None = 5.0,
        diagnostic: DiagnosticHook = None,
    ) -> None:
        """Create the reaper.

        Parameters
        ----------
        governor:
            Store exposing ``evict_expired``.
        interval:
            Seconds between sweeps; must be positive.
        stop_timeout:
            Default join deadline applied by :meth:`stop`.
        diagnostic:
            Optional hook receiving ``rate_entries_reaped`` and ``reaper_error``.
        """
        if interval <= 0:
            raise ConfigurationError("reaper interval must be positive")
        self._governor = governor
        self._interval = float(interval)
        self._stop_timeout = stop_timeout
        self._diagnostic = diagnostic
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        """Return ``True`` while the sweep thread is alive."""

        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread if it is not already running."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="chat-governor-reaper", daemon=True)
        self._thread.start()

    def stop(self, *, timeout: float | None = None) -> None:
        """Signal the sweep thread and wait for it to exit.

        Raises
        ------
        RuntimeError
            When the thread does not finish within the deadline.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        effective_timeout = timeout if timeout is not None else self._stop_timeout
        thread.join(effective_timeout)
        if thread.is_alive():
            raise RuntimeError("Reaper thread failed to stop within the allotted timeout")
        self._thread = None

    def sweep(self) -> int:
        """Run a single eviction pass and return the number of evicted entries."""

        evicted = self._governor.evict_expired()
        if evicted:
            LOGGER.debug("Reaped %d expired rate entries", len(evicted))
            emit_diagnostic(self._diagnostic, "rate_entries_reaped", {"count": len(evicted)}, logger=LOGGER)
        return len(evicted)

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self.sweep()
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Reaper sweep raised an exception; continuing", exc_info=exc)
                emit_diagnostic(self._diagnostic, "reaper_error", {"exception": repr(exc)}, logger=LOGGER)


__all__ = ["DEFAULT_REAP_INTERVAL", "StaleEntryReaper"]
