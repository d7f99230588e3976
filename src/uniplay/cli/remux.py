"""CLI probe and remux commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from uniplay.classifier import classify, extension_of
from uniplay.cli.exit_codes import ExitCode
from uniplay.config.models import UniplayConfig
from uniplay.domain.enums import RemuxMode
from uniplay.domain.models import MediaInfo
from uniplay.exceptions import ExecutorError, RemuxError, RemuxFetchError
from uniplay.remux import FFmpegExecutor, RemuxPipeline, SharedExecutor

logger = logging.getLogger(__name__)


def _build_pipeline(config: UniplayConfig) -> tuple[RemuxPipeline, SharedExecutor]:
    shared = SharedExecutor(
        lambda: FFmpegExecutor(
            config.tools.ffmpeg,
            work_dir=config.remux.work_dir,
            timeout=config.remux.timeout_seconds,
        )
    )
    return RemuxPipeline(executor=shared, config=config.remux), shared


def _input_format(url: str, override: str | None) -> str:
    if override:
        return override
    return extension_of(url) or classify(url).kind.value


def _exit_for(error: Exception) -> ExitCode:
    if isinstance(error, RemuxFetchError):
        return ExitCode.FETCH_ERROR
    if isinstance(error, (ExecutorError, RemuxError)):
        return ExitCode.EXECUTOR_ERROR
    return ExitCode.GENERAL_ERROR


def _format_media_info(info: MediaInfo) -> list[str]:
    lines = []
    if info.duration is not None:
        lines.append(f"Duration:     {info.duration:.2f}s")
    if info.bitrate is not None:
        lines.append(f"Bitrate:      {info.bitrate // 1000} kb/s")
    if info.video_codec is not None:
        size = f" {info.width}x{info.height}" if info.width and info.height else ""
        lines.append(f"Video:        {info.video_codec}{size}")
    if info.audio_codec is not None:
        lines.append(f"Audio:        {info.audio_codec}")
    return lines or ["No stream information found"]


@click.command("probe")
@click.argument("url")
@click.option(
    "--format",
    "-f",
    "input_format",
    default=None,
    help="Input container hint (default: from the URL).",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def probe_command(
    ctx: click.Context, url: str, input_format: str | None, as_json: bool
) -> None:
    """Inspect the start of URL without remuxing it."""
    config: UniplayConfig = ctx.obj["config"]

    async def run() -> MediaInfo:
        pipeline, shared = _build_pipeline(config)
        try:
            return await pipeline.probe(url, _input_format(url, input_format))
        finally:
            await pipeline.aclose()
            await shared.terminate()

    try:
        info = asyncio.run(run())
    except (RemuxError, ExecutorError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(_exit_for(e))

    if as_json:
        click.echo(json.dumps(info.to_dict(), indent=2))
        return
    for line in _format_media_info(info):
        click.echo(line)


@click.command("remux")
@click.argument("url")
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    help="Output file, or directory for --segmented.",
)
@click.option(
    "--format",
    "-f",
    "input_format",
    default=None,
    help="Input container hint (default: from the URL).",
)
@click.option(
    "--segmented",
    is_flag=True,
    help="Write fixed-duration fragmented MP4 segments.",
)
@click.pass_context
def remux_command(
    ctx: click.Context,
    url: str,
    output: Path,
    input_format: str | None,
    segmented: bool,
) -> None:
    """Remux URL into fragmented MP4 without re-encoding."""
    config: UniplayConfig = ctx.obj["config"]
    if segmented:
        output.mkdir(parents=True, exist_ok=True)

    def show_progress(value: float) -> None:
        click.echo(f"\rRemuxing: {value:6.1%}", nl=False, err=True)

    def write_segment(data: bytes, index: int) -> None:
        (output / f"segment_{index:03d}.mp4").write_bytes(data)

    async def run() -> int:
        pipeline, shared = _build_pipeline(config)
        try:
            artifact = await pipeline.prepare(
                url,
                _input_format(url, input_format),
                mode=RemuxMode.SEGMENTED if segmented else RemuxMode.BATCH,
                on_progress=show_progress,
                on_chunk=write_segment if segmented else None,
            )
        finally:
            await pipeline.aclose()
            await shared.terminate()
        if not segmented:
            output.write_bytes(artifact.data)
        return len(artifact.segments) if segmented else 1

    try:
        count = asyncio.run(run())
    except (RemuxError, ExecutorError) as e:
        click.echo("", err=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(_exit_for(e))

    click.echo("", err=True)
    if segmented:
        click.echo(f"Wrote {count} segments to {output}")
    else:
        click.echo(f"Wrote {output}")
