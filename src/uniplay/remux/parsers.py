"""Pure parsing of executor diagnostic output into MediaInfo.

The executor prints an ffmpeg-style input summary, e.g.:

    Duration: 00:10:34.53, start: 0.000000, bitrate: 3394 kb/s
      Stream #0:0(eng): Video: h264 (High), yuv420p(progressive), 1920x1080 ...
      Stream #0:1(eng): Audio: aac (LC), 48000 Hz, stereo, fltp

Only the first video and the first audio stream are considered. Fields
that cannot be found stay None. The format is not a stable interface, so
these patterns may need revisiting when the executor is upgraded.
"""

from __future__ import annotations

import re

from uniplay.domain.models import MediaInfo
from uniplay.remux.progress import parse_log_duration

VIDEO_STREAM_PATTERN = re.compile(r"Stream\b.*?\bVideo: (\w+)")
RESOLUTION_PATTERN = re.compile(r"\b(\d{2,5})x(\d{2,5})\b")
AUDIO_STREAM_PATTERN = re.compile(r"Stream\b.*?\bAudio: (\w+)")
BITRATE_PATTERN = re.compile(r"bitrate: (\d+) kb/s")


def parse_media_info(output: str) -> MediaInfo:
    """Parse executor diagnostic text.

    Args:
        output: Captured log text, one line per executor log event.

    Returns:
        MediaInfo with duration, first video codec and dimensions, first
        audio codec and overall bitrate (bits per second) where present.
    """
    duration: float | None = None
    video_codec: str | None = None
    width: int | None = None
    height: int | None = None
    audio_codec: str | None = None
    bitrate: int | None = None

    for line in output.splitlines():
        if duration is None:
            duration = parse_log_duration(line)

        if bitrate is None:
            match = BITRATE_PATTERN.search(line)
            if match:
                bitrate = int(match.group(1)) * 1000

        if video_codec is None:
            match = VIDEO_STREAM_PATTERN.search(line)
            if match:
                video_codec = match.group(1)
                size = RESOLUTION_PATTERN.search(line, match.end())
                if size:
                    width, height = int(size.group(1)), int(size.group(2))
                continue

        if audio_codec is None:
            match = AUDIO_STREAM_PATTERN.search(line)
            if match:
                audio_codec = match.group(1)

    return MediaInfo(
        width=width,
        height=height,
        video_codec=video_codec,
        audio_codec=audio_codec,
        bitrate=bitrate,
        duration=duration,
    )
