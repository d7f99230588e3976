"""Backend selection and session orchestration."""

from uniplay.playback.backends import (
    AdaptiveBackend,
    Backend,
    NativeBackend,
    RemuxedBackend,
    select_backend,
)
from uniplay.playback.interface import (
    AdaptiveEngine,
    AdaptiveEngineFactory,
    MediaSink,
)
from uniplay.playback.lifecycle import (
    BlobStore,
    SessionLifecycleManager,
    SessionResources,
)
from uniplay.playback.player import Player, ReadyEvent, TimeUpdate
from uniplay.playback.session import PlaybackSession, can_transition

__all__ = [
    "AdaptiveBackend",
    "AdaptiveEngine",
    "AdaptiveEngineFactory",
    "Backend",
    "BlobStore",
    "MediaSink",
    "NativeBackend",
    "PlaybackSession",
    "Player",
    "ReadyEvent",
    "RemuxedBackend",
    "SessionLifecycleManager",
    "SessionResources",
    "TimeUpdate",
    "can_transition",
    "select_backend",
]
