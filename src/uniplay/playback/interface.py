"""Collaborator interfaces for playback.

The player drives two external collaborators: a media sink (the native
playback element) and an adaptive streaming engine. Both are opaque; the
player only relies on the surfaces declared here.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from uniplay.domain.models import RenditionTrack
from uniplay.events import Subscription

# Sink events. "error" carries a MediaErrorCode (or None when unknown).
SINK_CANPLAY = "canplay"
SINK_ERROR = "error"
SINK_PLAY = "play"
SINK_PAUSE = "pause"
SINK_TIMEUPDATE = "timeupdate"
SINK_ENDED = "ended"
SINK_EVENTS = frozenset(
    {SINK_CANPLAY, SINK_ERROR, SINK_PLAY, SINK_PAUSE, SINK_TIMEUPDATE, SINK_ENDED}
)

# Adaptive engine events. "error" carries a description, "buffering" a bool.
ENGINE_ERROR = "error"
ENGINE_BUFFERING = "buffering"
ENGINE_EVENTS = frozenset({ENGINE_ERROR, ENGINE_BUFFERING})

HLS_MIME_TYPE = "application/vnd.apple.mpegurl"


class MediaSink(Protocol):
    """Protocol for the native playback element."""

    source: str | None
    """Source URL. Assigning None detaches the current source."""

    current_time: float
    volume: float
    muted: bool

    @property
    def duration(self) -> float | None:
        """Media duration in seconds, or None if not yet known."""
        ...

    @property
    def buffered(self) -> float:
        """End of the buffered range in seconds."""
        ...

    @property
    def video_width(self) -> int | None: ...

    @property
    def video_height(self) -> int | None: ...

    def load(self) -> None:
        """Reload the source, dropping any buffered media."""
        ...

    async def play(self) -> None:
        """Start playback.

        Raises:
            AutoplayBlockedError: If the host refuses to start playback.
        """
        ...

    def pause(self) -> None: ...

    def can_play_type(self, mime_type: str) -> bool:
        """True if the sink can play mime_type without assistance."""
        ...

    def on(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        """Subscribe to one of SINK_EVENTS."""
        ...


class AdaptiveEngine(Protocol):
    """Protocol for a manifest-driven adaptive streaming engine.

    The engine retries manifest and segment requests internally according
    to its configured retry parameters.
    """

    async def attach(self, sink: MediaSink) -> None:
        """Bind the engine to the sink it renders into."""
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Apply engine configuration (see LiveProfileConfig.to_engine_config)."""
        ...

    def on(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        """Subscribe to one of ENGINE_EVENTS."""
        ...

    async def load(self, url: str) -> None:
        """Load a manifest and start buffering.

        Raises:
            Exception: Any engine failure; the player maps it to
                AdaptiveEngineLoadError.
        """
        ...

    def get_variant_tracks(self) -> list[RenditionTrack]:
        """Return the renditions of the loaded manifest."""
        ...

    async def destroy(self) -> None:
        """Detach from the sink and release all engine resources."""
        ...


class AdaptiveEngineFactory(Protocol):
    """Creates adaptive engine instances."""

    def is_supported(self) -> bool:
        """True if the engine can run in this environment."""
        ...

    def create(self) -> AdaptiveEngine: ...
