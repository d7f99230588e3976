"""Tests for RemuxPipeline."""

import asyncio

import pytest

from tests.fakes import SOURCE_BYTES, FakeExecutor, make_source_client
from uniplay.config.models import RemuxConfig
from uniplay.domain.enums import RemuxMode
from uniplay.exceptions import ExecutorError, RemuxExecutorError, RemuxFetchError
from uniplay.remux.commands import FRAGMENTED_MOVFLAGS
from uniplay.remux.fetch import SourceFetcher
from uniplay.remux.interface import LOG_EVENT, PROGRESS_EVENT, ProgressEvent
from uniplay.remux.pipeline import RemuxJob, RemuxPipeline
from uniplay.remux.shared import SharedExecutor

URL = "https://media.example.com/movie.mkv"

PROBE_LINES = (
    "Input #0, matroska,webm, from 'input.mkv':",
    "  Duration: 00:01:40.00, start: 0.000000, bitrate: 2500 kb/s",
    "  Stream #0:0: Video: hevc (Main), yuv420p10le(tv), 3840x2160, 24 fps",
    "  Stream #0:1: Audio: eac3, 48000 Hz, 5.1(side), fltp, 640 kb/s",
    "At least one output file must be specified",
)


def make_pipeline(executor: FakeExecutor, **config) -> RemuxPipeline:
    client, _ = make_source_client()
    return RemuxPipeline(
        executor=SharedExecutor(lambda: executor),
        fetcher=SourceFetcher(client=client),
        config=RemuxConfig(**config),
    )


class TestRemuxJob:
    """Tests for job-scoped file naming."""

    def test_names_are_job_scoped(self) -> None:
        a = RemuxJob(URL, "mkv")
        b = RemuxJob(URL, "mkv")

        assert a.job_id != b.job_id
        assert a.input_name.endswith(".mkv")
        assert a.input_name != b.input_name
        assert a.segment_name(2) == a.segment_pattern % 2

    def test_input_format_is_sanitized(self) -> None:
        job = RemuxJob(URL, "../x")
        assert "/" not in job.input_name
        assert job.input_name.endswith(".x")


class TestBatchRemux:
    """Tests for batch mode."""

    @pytest.mark.asyncio
    async def test_returns_output_and_cleans_up(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        data = await pipeline.remux_to_fmp4(URL, "mkv")

        assert data == b"fragmented-mp4"
        assert fake_executor.files == {}
        assert len(fake_executor.deleted) == 2

    @pytest.mark.asyncio
    async def test_stream_copy_command(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        await pipeline.remux_to_fmp4(URL, "mkv")

        (cmd,) = fake_executor.commands
        assert cmd[cmd.index("-c") + 1] == "copy"
        assert cmd[cmd.index("-movflags") + 1] == FRAGMENTED_MOVFLAGS

    @pytest.mark.asyncio
    async def test_whole_source_written_before_exec(self) -> None:
        executor = FakeExecutor()
        written: list[bytes] = []
        original_exec = executor.exec

        async def exec_after_write(args):
            written.extend(executor.files.values())
            return await original_exec(args)

        executor.exec = exec_after_write
        await make_pipeline(executor).remux_to_fmp4(URL)

        assert written == [SOURCE_BYTES]

    @pytest.mark.asyncio
    async def test_progress_from_log_lines(self) -> None:
        executor = FakeExecutor(
            log_lines=(
                "  Duration: 00:02:00.00, start: 0.0, bitrate: 1000 kb/s",
                "frame=1 time=00:00:30.00 bitrate=1kbits/s",
                "frame=2 time=00:01:00.00 bitrate=1kbits/s",
            )
        )
        values: list[float] = []

        await make_pipeline(executor).remux_to_fmp4(URL, on_progress=values.append)

        assert values == [0.25, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_progress_estimated_without_duration(self) -> None:
        executor = FakeExecutor(log_lines=("time=00:00:15.00",))
        values: list[float] = []

        await make_pipeline(executor, assumed_duration_seconds=60).remux_to_fmp4(
            URL, on_progress=values.append
        )

        assert values == [0.25, 1.0]

    @pytest.mark.asyncio
    async def test_native_progress(self) -> None:
        executor = FakeExecutor(progress=(ProgressEvent(0.3, 9.0), ProgressEvent(0.9)))
        values: list[float] = []

        await make_pipeline(executor).remux_to_fmp4(URL, on_progress=values.append)

        assert values == [0.3, 0.9, 1.0]

    @pytest.mark.asyncio
    async def test_nonzero_exit_fails_and_cleans_up(self) -> None:
        executor = FakeExecutor(returncode=1)

        with pytest.raises(RemuxExecutorError, match="status 1"):
            await make_pipeline(executor).remux_to_fmp4(URL)

        assert executor.files == {}

    @pytest.mark.asyncio
    async def test_executor_error_is_wrapped(self) -> None:
        executor = FakeExecutor(exec_error=ExecutorError("ffmpeg timed out"))

        with pytest.raises(RemuxExecutorError, match="timed out"):
            await make_pipeline(executor).remux_to_fmp4(URL)

        assert executor.files == {}

    @pytest.mark.asyncio
    async def test_subscriptions_disposed(self) -> None:
        executor = FakeExecutor(exec_error=ExecutorError("boom"))

        with pytest.raises(RemuxExecutorError):
            await make_pipeline(executor).remux_to_fmp4(URL)

        assert executor.listener_count(LOG_EVENT) == 0
        assert executor.listener_count(PROGRESS_EVENT) == 0

    @pytest.mark.asyncio
    async def test_fetch_failure(self, fake_executor: FakeExecutor) -> None:
        client, _ = make_source_client(status=500)
        pipeline = RemuxPipeline(
            executor=SharedExecutor(lambda: fake_executor),
            fetcher=SourceFetcher(client=client),
        )

        with pytest.raises(RemuxFetchError):
            await pipeline.remux_to_fmp4(URL)

        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_repeated_jobs_do_not_grow_filesystem(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        for _ in range(3):
            await pipeline.remux_to_fmp4(URL)

        assert fake_executor.files == {}
        assert fake_executor.load_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_jobs_share_one_executor(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        results = await asyncio.gather(
            pipeline.remux_to_fmp4(URL), pipeline.remux_to_fmp4(URL)
        )

        assert results == [b"fragmented-mp4", b"fragmented-mp4"]
        assert fake_executor.load_count == 1
        assert fake_executor.files == {}


class TestSegmentedRemux:
    """Tests for segmented mode."""

    @pytest.mark.asyncio
    async def test_segments_delivered_in_order(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        chunks: list[tuple[bytes, int]] = []

        segments = await pipeline.remux_segmented(
            URL, on_chunk=lambda data, index: chunks.append((data, index))
        )

        assert segments == [b"segment-0", b"segment-1", b"segment-2"]
        assert [i for _, i in chunks] == [0, 1, 2]
        assert fake_executor.files == {}

    @pytest.mark.asyncio
    async def test_segment_deleted_before_next_is_read(self) -> None:
        executor = FakeExecutor(segment_count=3)
        remaining: list[int] = []

        def on_chunk(data: bytes, index: int) -> None:
            remaining.append(sum(1 for n in executor.files if n.startswith("segment-")))

        await make_pipeline(executor).remux_segmented(URL, on_chunk=on_chunk)

        assert remaining == [2, 1, 0]

    @pytest.mark.asyncio
    async def test_segment_command(
        self, pipeline: RemuxPipeline, fake_executor: FakeExecutor
    ) -> None:
        artifact = await pipeline.prepare(URL, mode=RemuxMode.SEGMENTED)

        (cmd,) = fake_executor.commands
        assert cmd[cmd.index("-segment_time") + 1] == "4"
        assert artifact.mode is RemuxMode.SEGMENTED
        assert artifact.mime_type == "video/mp4"

    @pytest.mark.asyncio
    async def test_failure_removes_partial_segments(self) -> None:
        executor = FakeExecutor(returncode=1, segment_count=2)

        with pytest.raises(RemuxExecutorError):
            await make_pipeline(executor).remux_segmented(URL)

        assert executor.files == {}

    @pytest.mark.asyncio
    async def test_no_segments_is_an_error(self) -> None:
        executor = FakeExecutor(segment_count=0)

        with pytest.raises(RemuxExecutorError, match="no segments"):
            await make_pipeline(executor).remux_segmented(URL)

    @pytest.mark.asyncio
    async def test_failing_chunk_callback_removes_remaining_segments(self) -> None:
        """A consumer error mid-stream leaves no segment files behind."""
        executor = FakeExecutor(segment_count=5)

        def on_chunk(data: bytes, index: int) -> None:
            if index == 1:
                raise RuntimeError("consumer gone")

        with pytest.raises(RuntimeError, match="consumer gone"):
            await make_pipeline(executor).remux_segmented(URL, on_chunk=on_chunk)

        assert executor.files == {}


class TestFileErrors:
    """Tests for I/O failures inside the executor's file system."""

    @pytest.mark.asyncio
    async def test_write_oserror_becomes_executor_error(self) -> None:
        class FullDiskExecutor(FakeExecutor):
            async def write_file(self, name: str, data: bytes) -> None:
                raise OSError(28, "No space left on device")

        with pytest.raises(RemuxExecutorError) as exc_info:
            await make_pipeline(FullDiskExecutor()).remux_to_fmp4(URL)

        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_probe_write_oserror_becomes_executor_error(self) -> None:
        class ReadOnlyExecutor(FakeExecutor):
            async def write_file(self, name: str, data: bytes) -> None:
                if name.startswith("input-"):
                    raise PermissionError(13, "Permission denied")
                await super().write_file(name, data)

        with pytest.raises(RemuxExecutorError):
            await make_pipeline(ReadOnlyExecutor(log_lines=PROBE_LINES)).probe(URL)


class TestProbe:
    """Tests for probe mode."""

    @pytest.mark.asyncio
    async def test_parses_diagnostics_despite_failure_status(self) -> None:
        executor = FakeExecutor(returncode=1, log_lines=PROBE_LINES)

        info = await make_pipeline(executor).probe(URL)

        assert info.duration == 100.0
        assert info.video_codec == "hevc"
        assert (info.width, info.height) == (3840, 2160)
        assert info.audio_codec == "eac3"
        assert info.bitrate == 2_500_000
        assert executor.files == {}

    @pytest.mark.asyncio
    async def test_fetches_bounded_prefix(self) -> None:
        client, requests = make_source_client()
        executor = FakeExecutor(returncode=1)
        pipeline = RemuxPipeline(
            executor=SharedExecutor(lambda: executor),
            fetcher=SourceFetcher(client=client),
            config=RemuxConfig(probe_bytes=32),
        )

        await pipeline.probe(URL)

        assert requests[0].headers["Range"] == "bytes=0-31"

    @pytest.mark.asyncio
    async def test_probe_without_output_yields_empty_info(self) -> None:
        executor = FakeExecutor(returncode=1)

        info = await make_pipeline(executor).probe(URL)

        assert info.video_codec is None
        assert info.duration is None
