"""Logging configuration for uniplay.

configure_logging() routes records to a rotating log file and/or the
console. Handlers it installs are marked, so calling it again replaces
them without disturbing handlers owned by an embedding application or a
test harness.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from uniplay.logging.context import SessionContextFilter
from uniplay.logging.handlers import JSONLineFormatter

if TYPE_CHECKING:
    from uniplay.config.models import LoggingConfig

logger = logging.getLogger(__name__)

_LEVEL_MAP: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Attribute set on every handler configure_logging() installs.
_INSTALLED_MARK = "_uniplay_installed"

# HTTP client loggers report every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(session_tag)s%(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(session_tag)s%(message)s"


def _formatter(fmt: str, *, console: bool) -> logging.Formatter:
    if fmt == "json":
        return JSONLineFormatter()
    if console:
        return logging.Formatter(CONSOLE_FORMAT)
    return logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")


def _open_log_file(config: LoggingConfig) -> RotatingFileHandler:
    path = Path(config.file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def _remove_installed(root: logging.Logger) -> None:
    for handler in [h for h in root.handlers if getattr(h, _INSTALLED_MARK, False)]:
        root.removeHandler(handler)
        handler.close()


def configure_logging(
    config: LoggingConfig, *, stream: TextIO | None = None
) -> list[logging.Handler]:
    """Route log records according to config.

    A file that cannot be opened is reported as a warning on the console
    handler, which is then installed in its place.

    Args:
        config: Logging configuration.
        stream: Console stream; stderr when None.

    Returns:
        The handlers installed on the root logger, file handler first.
    """
    level = _LEVEL_MAP.get(config.level.casefold(), logging.INFO)
    fmt = config.format.casefold()

    root = logging.getLogger()
    _remove_installed(root)
    root.setLevel(level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    targets: list[tuple[logging.Handler, bool]] = []
    file_error: OSError | None = None
    if config.file:
        try:
            targets.append((_open_log_file(config), False))
        except OSError as e:
            file_error = e
    if config.include_stderr or not targets:
        targets.append((logging.StreamHandler(stream or sys.stderr), True))

    context_filter = SessionContextFilter()
    installed: list[logging.Handler] = []
    for handler, console in targets:
        handler.setLevel(level)
        handler.setFormatter(_formatter(fmt, console=console))
        handler.addFilter(context_filter)
        setattr(handler, _INSTALLED_MARK, True)
        root.addHandler(handler)
        installed.append(handler)

    if file_error is not None:
        logger.warning(
            "Could not open log file %s, logging to console: %s",
            config.file,
            file_error,
        )
    return installed
