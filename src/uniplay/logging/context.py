"""Session context for logging.

Uses contextvars so every log record emitted while a playback session is
initializing carries that session's id and URL, including records from
the remux pipeline and executor running on its behalf.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_session_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "session_id", default=None
)
_session_url: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_url", default=None
)


def get_session_context() -> tuple[int | None, str | None]:
    """Return (session_id, session_url) for the current context."""
    return _session_id.get(), _session_url.get()


@contextmanager
def session_context(
    session_id: int, url: str | None = None
) -> Generator[None, None, None]:
    """Bind a session to log records emitted inside the block.

    Example:
        with session_context(3, "https://example.com/movie.mkv"):
            logger.info("Remuxing")  # tagged [S0003]
    """
    id_token = _session_id.set(session_id)
    url_token = _session_url.set(url)
    try:
        yield
    finally:
        _session_id.reset(id_token)
        _session_url.reset(url_token)


class SessionContextFilter(logging.Filter):
    """Logging filter that injects session context into log records.

    Adds session_id and session_url for JSON output and a compact
    session_tag like "[S0003] " for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        session_id, url = get_session_context()
        record.session_id = session_id
        record.session_url = url
        record.session_tag = f"[S{session_id:04d}] " if session_id is not None else ""
        return True
