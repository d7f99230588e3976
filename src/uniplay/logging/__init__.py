"""Structured logging for uniplay.

Provides text or JSON output with file rotation, and session context
propagation for records emitted during playback initialization.
"""

from uniplay.logging.config import configure_logging
from uniplay.logging.context import (
    SessionContextFilter,
    get_session_context,
    session_context,
)
from uniplay.logging.handlers import JSONLineFormatter

__all__ = [
    "JSONLineFormatter",
    "SessionContextFilter",
    "configure_logging",
    "get_session_context",
    "session_context",
]
