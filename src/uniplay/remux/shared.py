"""Process-scoped transcode executor handle.

The executor is heavyweight: it is loaded at most once, concurrent
acquire() calls await the same in-flight load, and use() serializes jobs
so one job's virtual files and event subscriptions never interleave with
another's. After terminate() the next acquire() loads a fresh executor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from uniplay.remux.interface import TranscodeExecutor

logger = logging.getLogger(__name__)


class SharedExecutor:
    """Single-flight loader and serializer around one TranscodeExecutor.

    Args:
        factory: Creates the executor on first load or after terminate().
    """

    def __init__(self, factory: Callable[[], TranscodeExecutor]) -> None:
        self._factory = factory
        self._executor: TranscodeExecutor | None = None
        self._load_task: asyncio.Future[TranscodeExecutor] | None = None
        self._lock: asyncio.Lock | None = None

    @property
    def is_loaded(self) -> bool:
        return self._executor is not None and self._executor.loaded

    async def acquire(self) -> TranscodeExecutor:
        """Return the loaded executor, loading it if needed.

        Raises:
            ExecutorError: If loading fails. The next call retries.
        """
        if self._executor is not None and self._executor.loaded:
            return self._executor

        task = self._load_task
        if task is None:
            task = asyncio.ensure_future(self._load())
            self._load_task = task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and self._load_task is task:
                self._load_task = None

    async def _load(self) -> TranscodeExecutor:
        executor = self._executor or self._factory()
        logger.debug("Loading transcode executor")
        await executor.load()
        self._executor = executor
        return executor

    @asynccontextmanager
    async def use(self) -> AsyncIterator[TranscodeExecutor]:
        """Hold the executor exclusively for the duration of one job."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            yield await self.acquire()

    async def terminate(self) -> None:
        """Terminate the executor if one was loaded."""
        executor, self._executor = self._executor, None
        if executor is not None:
            await executor.terminate()
            logger.debug("Transcode executor terminated")


_shared: SharedExecutor | None = None


def get_shared_executor(
    factory: Callable[[], TranscodeExecutor] | None = None,
) -> SharedExecutor:
    """Return the process-wide SharedExecutor, creating it on first use.

    Args:
        factory: Executor factory used only when the handle is created.
            Defaults to an FFmpegExecutor built from the current config.
    """
    global _shared
    if _shared is None:
        _shared = SharedExecutor(factory or _default_factory)
    return _shared


async def shutdown_shared_executor() -> None:
    """Terminate and forget the process-wide executor."""
    global _shared
    shared, _shared = _shared, None
    if shared is not None:
        await shared.terminate()


def _default_factory() -> TranscodeExecutor:
    from uniplay.config import get_config
    from uniplay.remux.executor import FFmpegExecutor

    config = get_config()
    return FFmpegExecutor(
        config.tools.ffmpeg,
        work_dir=config.remux.work_dir,
        timeout=config.remux.timeout_seconds,
    )
