"""Diagnostic hook contract shared by adapters and use cases."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

DiagnosticHook = Optional[Callable[[str, dict[str, Any]], None]]


def emit_diagnostic(hook: DiagnosticHook, name: str, payload: dict[str, Any], *, logger: logging.Logger) -> None:
    """Invoke ``hook`` while guarding against callback failures."""

    if hook is None:
        return
    try:
        hook(name, payload)
    except Exception as diagnostic_exc:  # noqa: BLE001
        logger.error("Diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


__all__ = ["DiagnosticHook", "emit_diagnostic"]
