"""Transcode executor interface.

The executor is an opaque collaborator: it owns a private virtual
filesystem, runs an ffmpeg-style argument vector against it and reports
free-form log lines and, when it can, native progress ticks.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from uniplay.events import Subscription

LOG_EVENT = "log"
PROGRESS_EVENT = "progress"
EXECUTOR_EVENTS = frozenset({LOG_EVENT, PROGRESS_EVENT})


@dataclass(frozen=True)
class LogEvent:
    """One line of executor diagnostic output."""

    message: str


@dataclass(frozen=True)
class ProgressEvent:
    """Native progress tick.

    Attributes:
        progress: Completion ratio in [0, 1], or None if unknown.
        time: Elapsed media time in seconds, or None if unknown.
    """

    progress: float | None = None
    time: float | None = None


class TranscodeExecutor(Protocol):
    """Protocol for transcode executors.

    load() must be idempotent. All file names are flat names inside the
    executor's own virtual filesystem.
    """

    @property
    def loaded(self) -> bool:
        """True between a successful load() and terminate()."""
        ...

    async def load(self) -> None:
        """Prepare the executor for use."""
        ...

    async def write_file(self, name: str, data: bytes) -> None:
        """Create or replace a virtual file."""
        ...

    async def exec(self, args: Sequence[str]) -> int:
        """Run one invocation and return its exit status.

        Raises:
            ExecutorError: If the invocation could not run or timed out.
        """
        ...

    async def read_file(self, name: str) -> bytes:
        """Read a virtual file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    async def delete_file(self, name: str) -> None:
        """Delete a virtual file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def on(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        """Subscribe to "log" (LogEvent) or "progress" (ProgressEvent)."""
        ...

    async def terminate(self) -> None:
        """Release the executor. It must be loaded again before reuse."""
        ...
