"""uniplay - play any media URL through the right backend."""

from uniplay.classifier import classify
from uniplay.domain import MediaInfo, SessionStatus, StreamDescriptor
from uniplay.playback import Player
from uniplay.remux import RemuxPipeline
from uniplay.state import PlayerStateStore, bind_store

__version__ = "0.1.0"

__all__ = [
    "MediaInfo",
    "Player",
    "PlayerStateStore",
    "RemuxPipeline",
    "SessionStatus",
    "StreamDescriptor",
    "bind_store",
    "classify",
]
