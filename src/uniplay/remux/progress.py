"""Remux progress tracking.

The executor reports progress two ways: free-form log lines carrying
"time=HH:MM:SS.ff" and, when available, native ProgressEvent ticks.
ProgressTracker turns either into a completion ratio in [0, 1]. When only
elapsed time is known the ratio is an estimate against the input duration
(read from a "Duration:" log line) or an assumed fallback duration.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from uniplay.remux.interface import LogEvent, ProgressEvent

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"time=(\d{2,}):(\d{2}):(\d{2}(?:\.\d+)?)")
DURATION_PATTERN = re.compile(r"Duration: (\d{2,}):(\d{2}):(\d{2}(?:\.\d+)?)")


def hms_to_seconds(hours: str, minutes: str, seconds: str) -> float:
    """Convert captured HH, MM and SS.ff groups to seconds."""
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def parse_log_time(message: str) -> float | None:
    """Extract elapsed media time from an executor log line.

    Args:
        message: Log line such as
            "frame= 120 fps=0.0 q=-1.0 size= 1024kB time=00:01:30.00 ..."

    Returns:
        Elapsed seconds, or None if the line carries no time= field.
    """
    match = TIME_PATTERN.search(message)
    if match is None:
        return None
    return hms_to_seconds(*match.groups())


def parse_log_duration(message: str) -> float | None:
    """Extract the input duration from a "Duration: HH:MM:SS.ff" line."""
    match = DURATION_PATTERN.search(message)
    if match is None:
        return None
    return hms_to_seconds(*match.groups())


def estimate_progress(elapsed_seconds: float, duration_seconds: float) -> float:
    """Estimate completion as min(elapsed / duration, 1)."""
    if duration_seconds <= 0:
        return 0.0
    return max(0.0, min(elapsed_seconds / duration_seconds, 1.0))


class ProgressTracker:
    """Per-job progress state fed by executor events.

    Once a native progress ratio has been seen, log-derived estimates no
    longer override it; they only update elapsed time.

    Args:
        assumed_duration: Fallback duration in seconds when the input
            duration is unknown.
        callback: Called with the new ratio whenever it changes.
    """

    def __init__(
        self,
        assumed_duration: float = 60.0,
        callback: Callable[[float], None] | None = None,
    ) -> None:
        self.assumed_duration = assumed_duration
        self.duration: float | None = None
        self.elapsed_seconds = 0.0
        self.progress = 0.0
        self._callback = callback
        self._native = False

    @property
    def is_estimate(self) -> bool:
        """True while the ratio is derived from elapsed time only."""
        return not self._native

    def on_log(self, event: LogEvent) -> None:
        duration = parse_log_duration(event.message)
        if duration is not None and duration > 0 and self.duration is None:
            self.duration = duration
            return

        elapsed = parse_log_time(event.message)
        if elapsed is None:
            return
        self.elapsed_seconds = elapsed
        if not self._native:
            self._update(estimate_progress(elapsed, self.duration or self.assumed_duration))

    def on_progress(self, event: ProgressEvent) -> None:
        if event.time is not None:
            self.elapsed_seconds = event.time
        if event.progress is not None and event.progress > 0:
            self._native = True
            self._update(max(0.0, min(event.progress, 1.0)))
        elif event.time is not None and not self._native:
            duration = self.duration or self.assumed_duration
            self._update(estimate_progress(event.time, duration))

    def complete(self) -> None:
        """Mark the job finished."""
        self._update(1.0)

    def _update(self, value: float) -> None:
        if value == self.progress:
            return
        self.progress = value
        if self._callback is not None:
            self._callback(value)
