"""Exception hierarchy for uniplay.

Initialization failures derive from PlaybackError and are the only errors
surfaced through a session's error event. Executor and teardown problems
have their own branches so callers can tell them apart.
"""

from __future__ import annotations

from uniplay.domain.enums import MediaErrorCode


class UniplayError(Exception):
    """Base class for all uniplay errors."""


class PlaybackError(UniplayError):
    """Raised when a playback session fails to initialize or play.

    Attributes:
        message: Human-readable description shown to the user.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


_SINK_ERROR_MESSAGES: dict[MediaErrorCode, str] = {
    MediaErrorCode.ABORTED: "Playback aborted",
    MediaErrorCode.NETWORK: "Network error",
    MediaErrorCode.DECODE: "Decode error",
    MediaErrorCode.SRC_NOT_SUPPORTED: "Format not supported",
}


class SinkError(PlaybackError):
    """Raised when the native sink reports a media error."""

    def __init__(self, code: MediaErrorCode | None, message: str | None = None) -> None:
        if message is None:
            message = _SINK_ERROR_MESSAGES.get(code, "Failed to load media")
        super().__init__(message)
        self.code = code


class AdaptiveEngineUnsupportedError(PlaybackError):
    """Raised when the adaptive engine cannot run in this environment."""


class AdaptiveEngineLoadError(PlaybackError):
    """Raised when the adaptive engine fails to load or play a manifest."""


class RemuxError(PlaybackError):
    """Base class for remux pipeline failures."""


class RemuxFetchError(RemuxError):
    """Raised when the remux source cannot be fetched."""


class RemuxExecutorError(RemuxError):
    """Raised when the transcode executor fails a remux invocation."""


class ExecutorError(UniplayError):
    """Raised for transcode executor failures outside a remux job."""


class ExecutorNotLoadedError(ExecutorError):
    """Raised when the executor is used before load() or after terminate()."""


class AutoplayBlockedError(UniplayError):
    """Raised by a sink when the host environment refuses autoplay."""


class SessionSupersededError(UniplayError):
    """Raised inside an initialization whose session is no longer current."""
