"""Domain enums for uniplay.

Stream classification, backend selection and session status values shared
by the classifier, the remux pipeline and the playback orchestrator.
"""

from enum import Enum


class StreamKind(Enum):
    """Concrete container or protocol of a media URL."""

    HLS = "hls"
    DASH = "dash"
    MP4 = "mp4"
    WEBM = "webm"
    MPEG_TS = "ts"
    MKV = "mkv"
    AVI = "avi"
    UNKNOWN = "unknown"


class StreamCategory(Enum):
    """Coarse playback strategy hint derived from the stream kind."""

    NATIVE = "native"  # Sink can play directly
    LIVE = "live"  # Manifest/segment driven, usually live
    REMUX = "remux"  # Container must be rewritten first


class BackendKind(Enum):
    """Playback backend currently owned by a session."""

    NONE = "none"
    NATIVE = "native"
    ADAPTIVE = "adaptive"
    REMUXING = "remuxing"


class SessionStatus(Enum):
    """Playback session state.

    idle -> loading -> {ready | remuxing -> ready} -> playing <-> paused -> ended
    Any state except idle/ended may move to error. error and ended are
    terminal for a session.
    """

    IDLE = "idle"
    LOADING = "loading"
    REMUXING = "remuxing"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """True for states a session never leaves."""
        return self in (SessionStatus.ENDED, SessionStatus.ERROR)


class MediaErrorCode(Enum):
    """Standardized media error codes reported by a sink."""

    ABORTED = 1
    NETWORK = 2
    DECODE = 3
    SRC_NOT_SUPPORTED = 4


class RemuxMode(Enum):
    """Output shape of a remux job."""

    BATCH = "batch"  # One fragmented MP4 blob
    SEGMENTED = "segmented"  # Fixed-duration fragmented MP4 segments
