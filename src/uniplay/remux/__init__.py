"""Container remuxing through a shared transcode executor."""

from uniplay.remux.commands import (
    FRAGMENTED_MOVFLAGS,
    build_batch_command,
    build_probe_command,
    build_segment_command,
)
from uniplay.remux.executor import FFmpegExecutor, find_ffmpeg
from uniplay.remux.fetch import SourceFetcher
from uniplay.remux.interface import (
    LOG_EVENT,
    PROGRESS_EVENT,
    LogEvent,
    ProgressEvent,
    TranscodeExecutor,
)
from uniplay.remux.parsers import parse_media_info
from uniplay.remux.pipeline import RemuxArtifact, RemuxJob, RemuxPipeline
from uniplay.remux.progress import ProgressTracker, estimate_progress
from uniplay.remux.shared import (
    SharedExecutor,
    get_shared_executor,
    shutdown_shared_executor,
)

__all__ = [
    "FRAGMENTED_MOVFLAGS",
    "FFmpegExecutor",
    "LOG_EVENT",
    "LogEvent",
    "PROGRESS_EVENT",
    "ProgressEvent",
    "ProgressTracker",
    "RemuxArtifact",
    "RemuxJob",
    "RemuxPipeline",
    "SharedExecutor",
    "SourceFetcher",
    "TranscodeExecutor",
    "build_batch_command",
    "build_probe_command",
    "build_segment_command",
    "estimate_progress",
    "find_ffmpeg",
    "get_shared_executor",
    "parse_media_info",
    "shutdown_shared_executor",
]
