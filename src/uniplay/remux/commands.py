"""Fixed executor command templates.

All remux commands stream-copy every track (no decode or encode) into
fragmented MP4 so the output plays incrementally without a trailing index.
"""

from __future__ import annotations

FRAGMENTED_MOVFLAGS = "frag_keyframe+empty_moov+default_base_moof"


def build_batch_command(input_name: str, output_name: str) -> list[str]:
    """Remux a whole input into one fragmented MP4."""
    return [
        "-i",
        input_name,
        "-c",
        "copy",  # Lossless stream copy
        "-f",
        "mp4",
        "-movflags",
        FRAGMENTED_MOVFLAGS,
        output_name,
    ]


def build_segment_command(
    input_name: str, segment_pattern: str, segment_seconds: int = 4
) -> list[str]:
    """Remux into fixed-duration fragmented MP4 segments.

    Timestamps restart at zero in every segment.
    """
    return [
        "-i",
        input_name,
        "-c",
        "copy",
        "-f",
        "segment",
        "-segment_time",
        str(segment_seconds),
        "-segment_format",
        "mp4",
        "-segment_format_options",
        f"movflags={FRAGMENTED_MOVFLAGS}",
        "-reset_timestamps",
        "1",
        segment_pattern,
    ]


def build_probe_command(input_name: str) -> list[str]:
    """Analyse an input without producing output.

    The executor exits non-zero or discards everything; only its
    diagnostic text is of interest.
    """
    return ["-i", input_name, "-f", "null", "-"]
