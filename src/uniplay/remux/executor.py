"""FFmpeg-backed transcode executor.

Implements the TranscodeExecutor protocol with an ffmpeg binary driven
through asyncio subprocesses. A private temporary directory serves as the
executor's virtual filesystem; every invocation runs with that directory
as its working directory so commands refer to flat file names.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from uniplay.events import EventEmitter, Subscription
from uniplay.exceptions import ExecutorError, ExecutorNotLoadedError
from uniplay.remux.interface import (
    EXECUTOR_EVENTS,
    LOG_EVENT,
    PROGRESS_EVENT,
    LogEvent,
    ProgressEvent,
)
from uniplay.remux.progress import parse_log_duration, parse_log_time

logger = logging.getLogger(__name__)

# ffmpeg rewrites its status line with carriage returns
_LINE_SPLIT = re.compile(r"[\r\n]+")
_READ_CHUNK = 4096


def find_ffmpeg(configured: Path | None = None) -> Path:
    """Resolve the ffmpeg binary.

    Args:
        configured: Explicit path from configuration, if any.

    Raises:
        ExecutorError: If ffmpeg cannot be found.
    """
    if configured is not None:
        if configured.exists():
            return configured
        raise ExecutorError(f"Configured ffmpeg not found: {configured}")
    found = shutil.which("ffmpeg")
    if found is None:
        raise ExecutorError(
            "ffmpeg is not installed or not in PATH. "
            "Install ffmpeg or set UNIPLAY_FFMPEG_PATH."
        )
    return Path(found)


class FFmpegExecutor:
    """Transcode executor running the ffmpeg CLI.

    Emits a LogEvent per stderr line and, once the input duration has been
    printed, a ProgressEvent for every status line.

    Args:
        ffmpeg_path: Explicit ffmpeg path; PATH lookup when None.
        work_dir: Parent directory for the scratch directory.
        timeout: Per-invocation timeout in seconds; 0 disables it.
    """

    DEFAULT_TIMEOUT: int = 1800  # 30 minutes

    def __init__(
        self,
        ffmpeg_path: Path | None = None,
        *,
        work_dir: Path | None = None,
        timeout: int | None = None,
    ) -> None:
        self._configured_path = ffmpeg_path
        self._tool_path: Path | None = None
        self._work_dir = work_dir
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self._root: Path | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._events = EventEmitter(EXECUTOR_EVENTS)

    @property
    def loaded(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Path | None:
        """Scratch directory backing the virtual filesystem."""
        return self._root

    def on(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        return self._events.on(event, handler)

    async def load(self) -> None:
        """Verify ffmpeg runs and create the scratch directory.

        Raises:
            ExecutorError: If ffmpeg is missing or fails to start.
        """
        if self.loaded:
            return

        tool = find_ffmpeg(self._configured_path)
        try:
            process = await asyncio.create_subprocess_exec(
                str(tool),
                "-hide_banner",
                "-version",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await process.communicate()
        except OSError as e:
            raise ExecutorError(f"Cannot start {tool}: {e}") from e
        if process.returncode != 0:
            raise ExecutorError(f"{tool} -version exited with {process.returncode}")

        self._tool_path = tool
        version = stdout.decode(errors="replace").splitlines()[:1]
        logger.info("Loaded %s", version[0] if version else tool)

        try:
            if self._work_dir is not None:
                self._work_dir.mkdir(parents=True, exist_ok=True)
            root = tempfile.mkdtemp(prefix="uniplay-", dir=self._work_dir)
        except OSError as e:
            raise ExecutorError(f"Cannot create scratch directory: {e}") from e
        self._root = Path(root)

    def _path(self, name: str) -> Path:
        if self._root is None:
            raise ExecutorNotLoadedError("Executor is not loaded")
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid virtual file name: {name!r}")
        return self._root / name

    async def write_file(self, name: str, data: bytes) -> None:
        await self._file_op(path_method="write_bytes", name=name, data=data)

    async def read_file(self, name: str) -> bytes:
        """Read a virtual file.

        Raises:
            FileNotFoundError: If name does not exist.
            ExecutorError: On any other I/O failure.
        """
        return await self._file_op(path_method="read_bytes", name=name)

    async def delete_file(self, name: str) -> None:
        await self._file_op(path_method="unlink", name=name)

    async def _file_op(
        self, *, path_method: str, name: str, data: bytes | None = None
    ) -> Any:
        method = getattr(self._path(name), path_method)
        args = () if data is None else (data,)
        try:
            return await asyncio.to_thread(method, *args)
        except FileNotFoundError:
            raise
        except OSError as e:
            raise ExecutorError(f"Virtual file operation on {name} failed: {e}") from e

    async def exec(self, args: Sequence[str]) -> int:
        """Run ffmpeg with args inside the scratch directory.

        Returns:
            ffmpeg's exit status.

        Raises:
            ExecutorNotLoadedError: If load() has not completed.
            ExecutorError: If ffmpeg cannot start or exceeds the timeout.
        """
        if self._root is None or self._tool_path is None:
            raise ExecutorNotLoadedError("Executor is not loaded")

        cmd = [str(self._tool_path), "-hide_banner", "-nostdin", "-y", *args]
        logger.debug("Executing command: %s", " ".join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self._root,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutorError(f"Cannot start ffmpeg: {e}") from e

        self._process = process
        timeout = self._timeout if self._timeout > 0 else None
        try:
            await asyncio.wait_for(self._pump_stderr(process), timeout)
            returncode = await process.wait()
        except TimeoutError as e:
            self._kill(process)
            await process.wait()
            raise ExecutorError(f"ffmpeg timed out after {timeout}s") from e
        finally:
            self._process = None

        logger.debug("ffmpeg exited with %d", returncode)
        return returncode

    async def _pump_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        duration: float | None = None
        pending = ""
        while True:
            chunk = await process.stderr.read(_READ_CHUNK)
            if not chunk:
                break
            pending += chunk.decode(errors="replace")
            *lines, pending = _LINE_SPLIT.split(pending)
            for line in lines:
                duration = self._dispatch_line(line, duration)
        if pending:
            self._dispatch_line(pending, duration)

    def _dispatch_line(self, line: str, duration: float | None) -> float | None:
        line = line.rstrip()
        if not line:
            return duration
        self._events.emit(LOG_EVENT, LogEvent(line))

        if duration is None:
            parsed = parse_log_duration(line)
            if parsed:
                return parsed
        elapsed = parse_log_time(line)
        if elapsed is not None and duration:
            self._events.emit(
                PROGRESS_EVENT,
                ProgressEvent(progress=min(elapsed / duration, 1.0), time=elapsed),
            )
        return duration

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def terminate(self) -> None:
        """Kill any running invocation and remove the scratch directory."""
        process = self._process
        if process is not None:
            self._kill(process)
            await process.wait()
            self._process = None

        root, self._root = self._root, None
        if root is not None:
            await asyncio.to_thread(shutil.rmtree, root, True)
            logger.debug("Removed executor scratch directory %s", root)
