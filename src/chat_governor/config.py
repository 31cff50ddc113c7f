"""Configuration helpers: ``.env`` loading and environment-resolved settings.

Purpose
-------
Translate keyword arguments and ``CHAT_*`` environment variables into a frozen
:class:`GovernorSettings`, failing fast with :class:`ConfigurationError` on
malformed input.

Contents
--------
* :func:`enable_dotenv` - load the nearest ``.env`` via python-dotenv once.
* :class:`GovernorSettings` - resolved configuration consumed by the runtime.
* :func:`build_settings` - merge arguments with environment overrides.

System Role
-----------
Outer layer; the domain and application layers receive plain values only.
"""

from __future__ import annotations

import math
import os
import threading
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from chat_governor.adapters.openrouter import DEFAULT_API_BASE, DEFAULT_MODEL
from chat_governor.adapters.rate_governor import DEFAULT_MAX_REQUESTS, DEFAULT_WINDOW, MAX_WINDOW
from chat_governor.adapters.reaper import DEFAULT_REAP_INTERVAL
from chat_governor.application.use_cases.window_context import (
    DEFAULT_MAX_MESSAGES,
    DEFAULT_SUMMARY_MAX_TOKENS,
    DEFAULT_SUMMARY_TIMEOUT,
    DEFAULT_TRANSCRIPT_MAX_CHARS,
)
from chat_governor.domain.errors import ConfigurationError

DOTENV_ENV_VAR = "CHAT_GOVERNOR_USE_DOTENV"
RATE_LIMIT_ENV_VAR = "CHAT_RATE_LIMIT"
REAPER_INTERVAL_ENV_VAR = "CHAT_REAPER_INTERVAL"
MAX_MESSAGES_ENV_VAR = "CHAT_MAX_MESSAGES"
SUMMARY_TIMEOUT_ENV_VAR = "CHAT_SUMMARY_TIMEOUT"
SUMMARY_MAX_CHARS_ENV_VAR = "CHAT_SUMMARY_MAX_CHARS"
SUMMARY_MAX_TOKENS_ENV_VAR = "CHAT_SUMMARY_MAX_TOKENS"
API_KEY_ENV_VAR = "OPENROUTER_API_KEY"
MODEL_ENV_VAR = "CHAT_MODEL"
API_BASE_ENV_VAR = "CHAT_API_BASE"

_TRUTHY = {"1", "true", "yes", "on"}
_DISABLED = {"none", "off"}

UNSET: Any = object()
"""Marker for ``summary_timeout`` meaning "use the default"; ``None`` disables the deadline."""

_DOTENV_LOCK = threading.Lock()
_DOTENV_LOADED: Path | None = None
_DOTENV_ATTEMPTED = False


def enable_dotenv(path: str | Path | None = None) -> Path | None:
    """Load the nearest ``.env`` file into :data:`os.environ`.

    Existing environment variables keep precedence. The search starts at the
    current working directory and walks upwards; it runs once per process.

    Returns
    -------
    Path | None
        Resolved path of the loaded file, or ``None`` when none was found.
    """

    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        if _DOTENV_ATTEMPTED:
            return _DOTENV_LOADED
        _DOTENV_ATTEMPTED = True
        candidate = str(path) if path is not None else find_dotenv(usecwd=True)
        if not candidate or not Path(candidate).is_file():
            return None
        resolved = Path(candidate).resolve()
        load_dotenv(resolved, override=False)
        _DOTENV_LOADED = resolved
        return resolved


def dotenv_requested(flag: bool | None) -> bool:
    """Return whether ``.env`` loading is wanted; an explicit CLI flag wins."""

    if flag is not None:
        return flag
    return os.getenv(DOTENV_ENV_VAR, "").strip().lower() in _TRUTHY


def _reset_dotenv_state_for_testing() -> None:
    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    with _DOTENV_LOCK:
        _DOTENV_LOADED = None
        _DOTENV_ATTEMPTED = False


@dataclass(slots=True, frozen=True)
class GovernorSettings:
    """Resolved configuration for one governor runtime."""

    max_requests: int = DEFAULT_MAX_REQUESTS
    window_seconds: float = DEFAULT_WINDOW.total_seconds()
    reaper_interval: float = DEFAULT_REAP_INTERVAL
    max_messages: int = DEFAULT_MAX_MESSAGES
    summary_timeout: float | None = DEFAULT_SUMMARY_TIMEOUT
    transcript_max_chars: int = DEFAULT_TRANSCRIPT_MAX_CHARS
    summary_max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    @property
    def rate_limit(self) -> tuple[int, float]:
        return self.max_requests, self.window_seconds


def build_settings(
    *,
    rate_limit: tuple[int, float] | None = None,
    reaper_interval: float | None = None,
    max_messages: int | None = None,
    summary_timeout: float | None = UNSET,
    transcript_max_chars: int | None = None,
    summary_max_tokens: int | None = None,
    api_key: str | None = None,
    model: str | None = None,
    api_base: str | None = None,
) -> GovernorSettings:
    """Resolve settings from arguments, letting ``CHAT_*`` environment variables override.

    ``summary_timeout=None`` (or ``CHAT_SUMMARY_TIMEOUT=none``) disables the
    summary deadline; leaving it out keeps the default.

    Raises
    ------
    ConfigurationError
        When an argument or environment value is malformed or not positive.

    Examples
    --------
    >>> import os
    >>> _ = os.environ.pop(RATE_LIMIT_ENV_VAR, None)
    >>> build_settings(rate_limit=(5, 30)).rate_limit
    (5, 30.0)
    """

    defaults = GovernorSettings()
    limit = _coerce_rate_limit(os.getenv(RATE_LIMIT_ENV_VAR), rate_limit or defaults.rate_limit)
    interval = _env_float(REAPER_INTERVAL_ENV_VAR, reaper_interval if reaper_interval is not None else defaults.reaper_interval)
    window_size = _env_int(MAX_MESSAGES_ENV_VAR, max_messages if max_messages is not None else defaults.max_messages)
    timeout = _env_float(
        SUMMARY_TIMEOUT_ENV_VAR,
        defaults.summary_timeout if summary_timeout is UNSET else summary_timeout,
        allow_disable=True,
    )
    max_chars = _env_int(
        SUMMARY_MAX_CHARS_ENV_VAR,
        transcript_max_chars if transcript_max_chars is not None else defaults.transcript_max_chars,
    )
    max_tokens = _env_int(
        SUMMARY_MAX_TOKENS_ENV_VAR,
        summary_max_tokens if summary_max_tokens is not None else defaults.summary_max_tokens,
    )
    return GovernorSettings(
        max_requests=limit[0],
        window_seconds=limit[1],
        reaper_interval=interval,
        max_messages=window_size,
        summary_timeout=timeout,
        transcript_max_chars=max_chars,
        summary_max_tokens=max_tokens,
        api_key=os.getenv(API_KEY_ENV_VAR) or api_key,
        model=os.getenv(MODEL_ENV_VAR) or model or defaults.model,
        api_base=os.getenv(API_BASE_ENV_VAR) or api_base or defaults.api_base,
    )


def _coerce_rate_limit(value: str | None, fallback: tuple[int, float]) -> tuple[int, float]:
    """Parse ``MAX:WINDOW_SECONDS`` strings into ``(max_requests, window_seconds)``.

    Examples
    --------
    >>> _coerce_rate_limit("20:60", (1, 1.0))
    (20, 60.0)
    >>> _coerce_rate_limit(None, (1, 1.0))
    (1, 1.0)
    """

    if value is None or not value.strip():
        count, window = fallback
    else:
        try:
            count_str, window_str = value.split(":", maxsplit=1)
            count, window = int(count_str), float(window_str)
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(f"{RATE_LIMIT_ENV_VAR} must use MAX:WINDOW_SECONDS format, got {value!r}") from exc
    if int(count) <= 0 or float(window) <= 0:
        raise ConfigurationError("rate limit values must be positive")
    if not math.isfinite(float(window)) or float(window) > MAX_WINDOW.total_seconds():
        raise ConfigurationError(f"rate limit window must not exceed {MAX_WINDOW.days} days")
    return int(count), float(window)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


def _env_float(name: str, default: float | None, *, allow_disable: bool = False) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    elif allow_disable and raw.strip().lower() in _DISABLED:
        value = None
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value is not None and value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


__all__ = [
    "DOTENV_ENV_VAR",
    "UNSET",
    "GovernorSettings",
    "build_settings",
    "dotenv_requested",
    "enable_dotenv",
]
