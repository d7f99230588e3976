"""Stream classification from a URL.

Pure functions: no state, no I/O. classify() never raises; anything it
cannot recognize is UNKNOWN/NATIVE so playback is attempted directly
rather than refused.
"""

from __future__ import annotations

import posixpath
from urllib.parse import unquote, urlsplit

from uniplay.domain.enums import StreamCategory, StreamKind
from uniplay.domain.models import StreamDescriptor

_UNKNOWN = StreamDescriptor(StreamKind.UNKNOWN, StreamCategory.NATIVE)

# Path extension -> descriptor, checked after the playlist markers
_EXTENSION_RULES: tuple[tuple[tuple[str, ...], StreamDescriptor], ...] = (
    ((".ts",), StreamDescriptor(StreamKind.MPEG_TS, StreamCategory.LIVE)),
    ((".mp4", ".m4v"), StreamDescriptor(StreamKind.MP4, StreamCategory.NATIVE)),
    ((".webm",), StreamDescriptor(StreamKind.WEBM, StreamCategory.NATIVE)),
    ((".mkv",), StreamDescriptor(StreamKind.MKV, StreamCategory.REMUX)),
    ((".avi",), StreamDescriptor(StreamKind.AVI, StreamCategory.REMUX)),
)

REMUX_KINDS = frozenset({StreamKind.MKV, StreamKind.AVI})
ADAPTIVE_COMPATIBLE_KINDS = frozenset(
    {StreamKind.HLS, StreamKind.DASH, StreamKind.MP4, StreamKind.WEBM}
)
LIVE_KINDS = frozenset({StreamKind.HLS, StreamKind.DASH, StreamKind.MPEG_TS})


def _path_of(url: str) -> str:
    """Return the lowercased path component of url, or "" if unparseable."""
    try:
        return unquote(urlsplit(url).path).casefold()
    except ValueError:
        return ""


def classify(url: str | None) -> StreamDescriptor:
    """Classify a media URL into a stream kind and category.

    Matching is case-insensitive and first match wins:
    .m3u8 or format=m3u8 -> HLS, .mpd -> DASH, .ts path or format=ts ->
    MPEG-TS, then .mp4/.m4v, .webm, .mkv, .avi by path extension. Query
    strings are ignored for extension matching.

    Args:
        url: Absolute or relative URL, or a local path.

    Returns:
        StreamDescriptor; UNKNOWN/NATIVE when nothing matches.
    """
    if not url or not isinstance(url, str):
        return _UNKNOWN

    lowered = url.casefold()
    path = _path_of(url)

    if ".m3u8" in lowered or "format=m3u8" in lowered:
        return StreamDescriptor(StreamKind.HLS, StreamCategory.LIVE)
    if ".mpd" in lowered:
        return StreamDescriptor(StreamKind.DASH, StreamCategory.LIVE)
    if "format=ts" in lowered:
        return StreamDescriptor(StreamKind.MPEG_TS, StreamCategory.LIVE)

    for suffixes, descriptor in _EXTENSION_RULES:
        if path.endswith(suffixes):
            return descriptor

    return _UNKNOWN


def extension_of(url: str | None) -> str:
    """Best-effort lowercase extension of the URL path, without the dot.

    Returns "" for empty or malformed URLs and for paths without an
    extension.
    """
    if not url:
        return ""
    name = posixpath.basename(_path_of(url))
    _, ext = posixpath.splitext(name)
    return ext[1:]


def needs_remuxing(kind: StreamKind) -> bool:
    """True if the container must be rewritten before native playback."""
    return kind in REMUX_KINDS


def is_adaptive_compatible(kind: StreamKind) -> bool:
    """True if the adaptive engine can play this kind without remuxing."""
    return kind in ADAPTIVE_COMPATIBLE_KINDS


def is_live_stream(url: str | None, kind: StreamKind) -> bool:
    """True if the stream should be treated as live.

    HLS and DASH are manifest driven; raw MPEG-TS is assumed live.
    """
    if not url:
        return False
    return kind in LIVE_KINDS
