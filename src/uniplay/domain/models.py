"""Domain models for uniplay.

Immutable value objects passed between the classifier, remux pipeline,
playback orchestrator and state store.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace

from uniplay.domain.enums import StreamCategory, StreamKind


@dataclass(frozen=True)
class StreamDescriptor:
    """Classification result for a URL.

    Derived purely from the URL string. category is REMUX for MKV/AVI,
    LIVE for HLS/DASH/MPEG-TS and NATIVE otherwise.
    """

    kind: StreamKind
    category: StreamCategory

    @property
    def is_live(self) -> bool:
        """True when the stream is manifest/segment driven."""
        return self.category is StreamCategory.LIVE

    def to_dict(self) -> dict[str, str]:
        """Serialize for logging and CLI output."""
        return {"kind": self.kind.value, "category": self.category.value}


@dataclass(frozen=True)
class MediaInfo:
    """Descriptive snapshot of a playable stream.

    Produced once per successful session initialization, or by a probe.
    Fields that could not be determined stay None.
    """

    width: int | None = None
    height: int | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    bandwidth: int | None = None
    """Bits per second of the active rendition (adaptive streams)."""

    bitrate: int | None = None
    """Overall bits per second reported by a probe."""

    duration: float | None = None
    """Duration in seconds reported by a probe."""

    def to_dict(self) -> dict[str, int | float | str | None]:
        """Serialize to a plain dict."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merged(self, other: MediaInfo) -> MediaInfo:
        """Return a copy updated with the fields other knows."""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)


@dataclass(frozen=True)
class RenditionTrack:
    """One variant exposed by an adaptive engine."""

    video_codec: str | None = None
    audio_codec: str | None = None
    width: int | None = None
    height: int | None = None
    bandwidth: int | None = None
    active: bool = False

    def to_media_info(self) -> MediaInfo:
        """Describe this rendition as MediaInfo."""
        return MediaInfo(
            width=self.width,
            height=self.height,
            video_codec=self.video_codec,
            audio_codec=self.audio_codec,
            bandwidth=self.bandwidth,
        )


@dataclass(frozen=True)
class HistoryEntry:
    """Last known playback position for a URL.

    timestamp is POSIX seconds at which the position was recorded.
    """

    position: float
    timestamp: float

    def is_fresh(self, now: float, max_age_seconds: float) -> bool:
        """True if the entry was recorded less than max_age_seconds ago."""
        return now - self.timestamp < max_age_seconds
