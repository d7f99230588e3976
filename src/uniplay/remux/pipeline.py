"""Remux pipeline.

Turns a source in an unsupported container into fragmented MP4 by
stream-copying it through the shared transcode executor:

- batch: fetch the whole source, remux into one blob
- segmented: fetch the whole source, remux into fixed-duration segments
  that are handed to a callback and deleted one at a time
- probe: fetch a bounded prefix and parse the executor's input summary

Both remux modes need the complete source in the executor's virtual
filesystem before any output exists, because containers such as MKV and
AVI may keep index data at the end of the file.

Every job deletes the virtual files it created, on success and failure.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from uniplay.config.models import RemuxConfig
from uniplay.domain.enums import RemuxMode
from uniplay.domain.models import MediaInfo
from uniplay.exceptions import ExecutorError, RemuxExecutorError
from uniplay.remux.commands import (
    build_batch_command,
    build_probe_command,
    build_segment_command,
)
from uniplay.remux.fetch import SourceFetcher
from uniplay.remux.interface import (
    LOG_EVENT,
    PROGRESS_EVENT,
    LogEvent,
    TranscodeExecutor,
)
from uniplay.remux.parsers import parse_media_info
from uniplay.remux.progress import ProgressTracker
from uniplay.remux.shared import SharedExecutor, get_shared_executor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
ChunkCallback = Callable[[bytes, int], None]

OUTPUT_MIME_TYPE = "video/mp4"


@dataclass(frozen=True)
class RemuxArtifact:
    """Output of a remux job: one blob or an ordered list of segments."""

    mode: RemuxMode
    data: bytes = b""
    segments: tuple[bytes, ...] = ()
    mime_type: str = OUTPUT_MIME_TYPE

    @property
    def size(self) -> int:
        if self.mode is RemuxMode.BATCH:
            return len(self.data)
        return sum(len(s) for s in self.segments)


@dataclass
class RemuxJob:
    """State of one remux or probe invocation.

    File names are job-scoped so nothing written by one job can be read
    or deleted by another.
    """

    source_url: str
    input_format: str
    mode: RemuxMode = RemuxMode.BATCH
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    progress: float = 0.0
    elapsed_media_seconds: float = 0.0
    output: RemuxArtifact | None = None

    @property
    def input_name(self) -> str:
        fmt = "".join(c for c in self.input_format if c.isalnum()) or "bin"
        return f"input-{self.job_id}.{fmt}"

    @property
    def output_name(self) -> str:
        return f"output-{self.job_id}.mp4"

    @property
    def segment_pattern(self) -> str:
        return f"segment-{self.job_id}-%03d.mp4"

    def segment_name(self, index: int) -> str:
        return f"segment-{self.job_id}-{index:03d}.mp4"


class RemuxPipeline:
    """Coordinates fetching, executor invocation and output collection.

    Args:
        executor: Shared executor handle. Defaults to the process-wide one.
        fetcher: Source fetcher. Defaults to a new SourceFetcher.
        config: Remux settings. Defaults to RemuxConfig().
    """

    def __init__(
        self,
        executor: SharedExecutor | None = None,
        fetcher: SourceFetcher | None = None,
        config: RemuxConfig | None = None,
    ) -> None:
        self.config = config or RemuxConfig()
        self._executor = executor or get_shared_executor()
        self._fetcher = fetcher or SourceFetcher(
            timeout=self.config.fetch_timeout_seconds
        )

    async def aclose(self) -> None:
        await self._fetcher.aclose()

    async def prepare(
        self,
        url: str,
        input_format: str = "mkv",
        *,
        mode: RemuxMode = RemuxMode.BATCH,
        on_progress: ProgressCallback | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> RemuxArtifact:
        """Remux url into a playable artifact.

        Args:
            url: Source URL or local path.
            input_format: Container hint used for the virtual input name.
            mode: BATCH for one blob, SEGMENTED for segments.
            on_progress: Receives completion ratios in [0, 1]. Ratios
                derived from elapsed time alone are estimates.
            on_chunk: SEGMENTED only; receives (segment_bytes, index).

        Raises:
            RemuxFetchError: If the source cannot be fetched.
            RemuxExecutorError: If the executor fails.
        """
        job = RemuxJob(source_url=url, input_format=input_format, mode=mode)
        logger.info("Remuxing %s (%s, %s)", url, input_format, mode.value)

        data = await self._fetcher.fetch(url)
        logger.debug("Fetched %d bytes for job %s", len(data), job.job_id)

        try:
            async with self._executor.use() as executor:
                tracker = self._tracker(job, on_progress)
                subscriptions = [
                    executor.on(LOG_EVENT, tracker.on_log),
                    executor.on(PROGRESS_EVENT, tracker.on_progress),
                ]
                try:
                    if mode is RemuxMode.SEGMENTED:
                        artifact = await self._run_segmented(
                            executor, job, data, on_chunk
                        )
                    else:
                        artifact = await self._run_batch(executor, job, data)
                finally:
                    for subscription in subscriptions:
                        subscription.dispose()
                tracker.complete()
        except (ExecutorError, OSError) as e:
            raise RemuxExecutorError(f"Remux failed for {url}: {e}") from e

        job.output = artifact
        logger.info("Remuxed %s into %d bytes", url, artifact.size)
        return artifact

    async def remux_to_fmp4(
        self,
        url: str,
        input_format: str = "mkv",
        on_progress: ProgressCallback | None = None,
    ) -> bytes:
        """Batch remux; returns the fragmented MP4 bytes."""
        artifact = await self.prepare(url, input_format, on_progress=on_progress)
        return artifact.data

    async def remux_segmented(
        self,
        url: str,
        input_format: str = "mkv",
        on_chunk: ChunkCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[bytes]:
        """Segmented remux; returns every segment in order."""
        artifact = await self.prepare(
            url,
            input_format,
            mode=RemuxMode.SEGMENTED,
            on_progress=on_progress,
            on_chunk=on_chunk,
        )
        return list(artifact.segments)

    async def probe(self, url: str, input_format: str = "mkv") -> MediaInfo:
        """Inspect the start of a source without remuxing it.

        The analysis-only invocation normally exits with a failure status
        because no output is requested; that is not treated as an error.

        Raises:
            RemuxFetchError: If the source cannot be fetched.
            RemuxExecutorError: If the executor cannot run at all.
        """
        job = RemuxJob(source_url=url, input_format=input_format)
        data = await self._fetcher.fetch_prefix(url, self.config.probe_bytes)
        logger.debug("Probing %s with %d bytes", url, len(data))

        lines: list[str] = []

        def capture(event: LogEvent) -> None:
            lines.append(event.message)

        try:
            async with self._executor.use() as executor:
                subscription = executor.on(LOG_EVENT, capture)
                try:
                    await executor.write_file(job.input_name, data)
                    returncode = await executor.exec(
                        build_probe_command(job.input_name)
                    )
                    logger.debug("Probe exited with %d", returncode)
                finally:
                    subscription.dispose()
                    await self._discard(executor, job.input_name)
        except (ExecutorError, OSError) as e:
            raise RemuxExecutorError(f"Probe failed for {url}: {e}") from e

        return parse_media_info("\n".join(lines))

    def _tracker(
        self, job: RemuxJob, on_progress: ProgressCallback | None
    ) -> ProgressTracker:
        def report(value: float) -> None:
            job.progress = value
            job.elapsed_media_seconds = tracker.elapsed_seconds
            if on_progress is not None:
                on_progress(value)

        tracker = ProgressTracker(self.config.assumed_duration_seconds, report)
        return tracker

    async def _run_batch(
        self, executor: TranscodeExecutor, job: RemuxJob, data: bytes
    ) -> RemuxArtifact:
        try:
            await executor.write_file(job.input_name, data)
            returncode = await executor.exec(
                build_batch_command(job.input_name, job.output_name)
            )
            if returncode != 0:
                raise RemuxExecutorError(
                    f"Remux of {job.source_url} exited with status {returncode}"
                )
            try:
                output = await executor.read_file(job.output_name)
            except FileNotFoundError as e:
                raise RemuxExecutorError(
                    f"Remux of {job.source_url} produced no output"
                ) from e
            if not output:
                raise RemuxExecutorError(
                    f"Remux of {job.source_url} produced an empty output"
                )
            return RemuxArtifact(mode=RemuxMode.BATCH, data=bytes(output))
        finally:
            await self._discard(executor, job.input_name)
            await self._discard(executor, job.output_name)

    async def _run_segmented(
        self,
        executor: TranscodeExecutor,
        job: RemuxJob,
        data: bytes,
        on_chunk: ChunkCallback | None,
    ) -> RemuxArtifact:
        index = 0
        try:
            await executor.write_file(job.input_name, data)
            returncode = await executor.exec(
                build_segment_command(
                    job.input_name, job.segment_pattern, self.config.segment_seconds
                )
            )
            if returncode != 0:
                raise RemuxExecutorError(
                    f"Segmented remux of {job.source_url} exited with "
                    f"status {returncode}"
                )

            segments: list[bytes] = []
            while True:
                name = job.segment_name(index)
                try:
                    segment = await executor.read_file(name)
                except FileNotFoundError:
                    break
                await executor.delete_file(name)
                index += 1
                segments.append(bytes(segment))
                if on_chunk is not None:
                    on_chunk(segments[-1], index - 1)

            if not segments:
                raise RemuxExecutorError(
                    f"Segmented remux of {job.source_url} produced no segments"
                )
            return RemuxArtifact(mode=RemuxMode.SEGMENTED, segments=tuple(segments))
        finally:
            await self._discard(executor, job.input_name)
            await self._discard_segments(executor, job, index)

    async def _discard_segments(
        self, executor: TranscodeExecutor, job: RemuxJob, start: int
    ) -> None:
        """Delete segments left behind after a failure, in order."""
        index = start
        while await self._discard(executor, job.segment_name(index)):
            index += 1

    @staticmethod
    async def _discard(executor: TranscodeExecutor, name: str) -> bool:
        """Delete a virtual file if present. Returns True if one was deleted."""
        try:
            await executor.delete_file(name)
        except FileNotFoundError:
            return False
        except (OSError, ExecutorError) as e:
            logger.warning("Could not delete virtual file %s: %s", name, e)
            return False
        return True
