"""Application ports decoupling use cases from adapters."""

from __future__ import annotations

from .diagnostics import DiagnosticHook, emit_diagnostic
from .rate_governor import RateGovernorPort
from .summary import SummaryGeneratorPort
from .time import ClockPort

__all__ = [
    "ClockPort",
    "DiagnosticHook",
    "RateGovernorPort",
    "SummaryGeneratorPort",
    "emit_diagnostic",
]
