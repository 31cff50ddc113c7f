"""Adapter implementations for the chat governor ports."""

from __future__ import annotations

from .clock import SystemClock
from .openrouter import OpenRouterSummaryGenerator
from .rate_governor import FixedWindowRateGovernor
from .reaper import StaleEntryReaper

__all__ = [
    "FixedWindowRateGovernor",
    "OpenRouterSummaryGenerator",
    "StaleEntryReaper",
    "SystemClock",
]
