"""JSON line output for uniplay logs."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Everything a bare LogRecord carries, plus what Formatter and
# SessionContextFilter add; any other attribute came from extra=.
_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "session_id", "session_url", "session_tag"}


def _utc(created: float) -> str:
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONLineFormatter(logging.Formatter):
    """One flat JSON object per record.

    Keys: ts, level (lower case), logger, msg; session_id and url while a
    session is initializing; extra for extra= attributes; exc and stack
    when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": _utc(record.created),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        session_id = getattr(record, "session_id", None)
        if session_id is not None:
            entry["session_id"] = session_id
            url = getattr(record, "session_url", None)
            if url:
                entry["url"] = url

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["exc"] = record.exc_text
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str, ensure_ascii=False)
