"""Player state actions.

Every change to PlayerState is expressed as an Action of one of a closed
set of kinds. Helpers below build well-formed actions.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from uniplay.domain.enums import SessionStatus
from uniplay.domain.models import HistoryEntry, MediaInfo, StreamDescriptor


class ActionType(Enum):
    SET_URL = "set_url"
    SET_PLAYING = "set_playing"
    SET_TIME = "set_time"
    SET_DURATION = "set_duration"
    SET_BUFFERED = "set_buffered"
    SET_VOLUME = "set_volume"
    SET_MUTED = "set_muted"
    SET_PLAYBACK_RATE = "set_playback_rate"
    SET_STREAM_INFO = "set_stream_info"
    SET_MEDIA_INFO = "set_media_info"
    SET_STATUS = "set_status"
    SET_ERROR = "set_error"
    SET_REMUX_PROGRESS = "set_remux_progress"
    SAVE_POSITION = "save_position"
    LOAD_HISTORY = "load_history"
    RESET = "reset"


@dataclass(frozen=True)
class Action:
    """A state change request.

    kind is normally an ActionType; anything else is accepted and ignored
    by the reducer.
    """

    kind: ActionType | str
    payload: Any = None


@dataclass(frozen=True)
class SavedPosition:
    """Payload of SAVE_POSITION."""

    url: str
    position: float
    timestamp: float


def set_url(url: str | None) -> Action:
    return Action(ActionType.SET_URL, url)


def set_playing(playing: bool) -> Action:
    return Action(ActionType.SET_PLAYING, playing)


def set_time(seconds: float) -> Action:
    return Action(ActionType.SET_TIME, seconds)


def set_duration(seconds: float | None) -> Action:
    return Action(ActionType.SET_DURATION, seconds)


def set_buffered(seconds: float) -> Action:
    return Action(ActionType.SET_BUFFERED, seconds)


def set_volume(volume: float) -> Action:
    return Action(ActionType.SET_VOLUME, volume)


def set_muted(muted: bool) -> Action:
    return Action(ActionType.SET_MUTED, muted)


def set_playback_rate(rate: float) -> Action:
    return Action(ActionType.SET_PLAYBACK_RATE, rate)


def set_stream_info(descriptor: StreamDescriptor | None) -> Action:
    return Action(ActionType.SET_STREAM_INFO, descriptor)


def set_media_info(media_info: MediaInfo | None) -> Action:
    return Action(ActionType.SET_MEDIA_INFO, media_info)


def set_status(status: SessionStatus) -> Action:
    return Action(ActionType.SET_STATUS, status)


def set_error(message: str | None) -> Action:
    return Action(ActionType.SET_ERROR, message)


def set_remux_progress(progress: float) -> Action:
    return Action(ActionType.SET_REMUX_PROGRESS, progress)


def save_position(url: str, position: float, timestamp: float) -> Action:
    return Action(ActionType.SAVE_POSITION, SavedPosition(url, position, timestamp))


def load_history(history: Mapping[str, HistoryEntry]) -> Action:
    return Action(ActionType.LOAD_HISTORY, dict(history))


def reset() -> Action:
    return Action(ActionType.RESET)
