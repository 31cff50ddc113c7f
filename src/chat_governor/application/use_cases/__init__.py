"""Use cases orchestrating admission control and context windowing."""

from __future__ import annotations

from .admit_chat import ChatAdmission, create_admit_chat_request, render_summary_section
from .window_context import ContextWindower, build_transcript

__all__ = [
    "ChatAdmission",
    "ContextWindower",
    "build_transcript",
    "create_admit_chat_request",
    "render_summary_section",
]
