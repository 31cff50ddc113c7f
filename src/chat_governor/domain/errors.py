"""Error taxonomy shared by the governor layers.

Purpose
-------
Name the two failure families the governor distinguishes: configuration that
must fail fast at setup, and external summarisation calls that are always
recovered locally.

Contents
--------
* :class:`ConfigurationError` - invalid limits, windows, or settings.
* :class:`ExternalCallError` - text generation provider failures.

System Role
-----------
Over-capacity rejections are deliberately *not* modelled here; they travel as
:class:`chat_governor.domain.rate.RateDecision` values.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when the governor is constructed with invalid settings."""


class ExternalCallError(RuntimeError):
    """Raised by summary generators when the provider call fails or times out."""


__all__ = ["ConfigurationError", "ExternalCallError"]
