"""Domain types shared across uniplay."""

from uniplay.domain.enums import (
    BackendKind,
    MediaErrorCode,
    RemuxMode,
    SessionStatus,
    StreamCategory,
    StreamKind,
)
from uniplay.domain.models import (
    HistoryEntry,
    MediaInfo,
    RenditionTrack,
    StreamDescriptor,
)

__all__ = [
    "BackendKind",
    "HistoryEntry",
    "MediaErrorCode",
    "MediaInfo",
    "RemuxMode",
    "RenditionTrack",
    "SessionStatus",
    "StreamCategory",
    "StreamDescriptor",
    "StreamKind",
]
