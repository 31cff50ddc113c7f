"""Domain entities and value objects used by the chat governor."""

from __future__ import annotations

from .errors import ConfigurationError, ExternalCallError
from .messages import ContentPart, ConversationMessage, WindowResult
from .rate import RateDecision, RateEntry

__all__ = [
    "ConfigurationError",
    "ContentPart",
    "ConversationMessage",
    "ExternalCallError",
    "RateDecision",
    "RateEntry",
    "WindowResult",
]
