"""Pure reducer for player state."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from uniplay.domain.enums import SessionStatus
from uniplay.domain.models import HistoryEntry, MediaInfo, StreamDescriptor
from uniplay.state.actions import Action, ActionType, SavedPosition


def _empty_history() -> Mapping[str, HistoryEntry]:
    return MappingProxyType({})


@dataclass(frozen=True)
class PlayerState:
    """Snapshot of shared playback state.

    history maps URL to the last recorded position and survives RESET.
    """

    url: str | None = None
    playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    buffered: float = 0.0
    volume: float = 1.0
    muted: bool = False
    playback_rate: float = 1.0
    stream_info: StreamDescriptor | None = None
    media_info: MediaInfo | None = None
    status: SessionStatus = SessionStatus.IDLE
    error: str | None = None
    remux_progress: float = 0.0
    history: Mapping[str, HistoryEntry] = field(default_factory=_empty_history)


Handler = Callable[[PlayerState, Any], PlayerState]


def _as_float(value: Any) -> float | None:
    """Coerce value to a finite float; None when it is not a number."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _number(name: str, clamp: Callable[[float], float] | None = None) -> Handler:
    def handler(state: PlayerState, value: Any) -> PlayerState:
        number = _as_float(value)
        if number is None:
            return state
        return replace(state, **{name: clamp(number) if clamp else number})

    return handler


def _set_url(state: PlayerState, url: Any) -> PlayerState:
    if not url:
        return replace(
            state, url=None, status=SessionStatus.IDLE, error=None, playing=False
        )
    if not isinstance(url, str):
        return state
    return replace(
        state,
        url=url,
        status=SessionStatus.LOADING,
        error=None,
        playing=False,
        current_time=0.0,
        duration=0.0,
        buffered=0.0,
        remux_progress=0.0,
        stream_info=None,
        media_info=None,
    )


def _set_playing(state: PlayerState, playing: Any) -> PlayerState:
    if not isinstance(playing, bool):
        return state
    status = SessionStatus.PLAYING if playing else SessionStatus.PAUSED
    return replace(state, playing=playing, status=status)


def _set_duration(state: PlayerState, seconds: Any) -> PlayerState:
    # Live streams report no duration.
    if seconds is None:
        return replace(state, duration=0.0)
    number = _as_float(seconds)
    if number is None:
        return state
    return replace(state, duration=max(number, 0.0))


def _set_muted(state: PlayerState, muted: Any) -> PlayerState:
    if not isinstance(muted, bool):
        return state
    return replace(state, muted=muted)


def _set_stream_info(state: PlayerState, descriptor: Any) -> PlayerState:
    if descriptor is not None and not isinstance(descriptor, StreamDescriptor):
        return state
    return replace(state, stream_info=descriptor)


def _set_media_info(state: PlayerState, info: Any) -> PlayerState:
    if info is None:
        return replace(state, media_info=None)
    if not isinstance(info, MediaInfo):
        return state
    if state.media_info is None:
        return replace(state, media_info=info)
    return replace(state, media_info=state.media_info.merged(info))


def _set_error(state: PlayerState, message: Any) -> PlayerState:
    if message is None:
        return replace(state, error=None)
    return replace(state, error=str(message), status=SessionStatus.ERROR, playing=False)


def _set_status(state: PlayerState, status: Any) -> PlayerState:
    if not isinstance(status, SessionStatus):
        return state
    playing = status is SessionStatus.PLAYING
    return replace(state, status=status, playing=playing)


def _set_remux_progress(state: PlayerState, ratio: Any) -> PlayerState:
    number = _as_float(ratio)
    if number is None:
        return state
    return replace(
        state,
        remux_progress=max(0.0, min(number, 1.0)),
        status=SessionStatus.REMUXING,
    )


def _save_position(state: PlayerState, saved: Any) -> PlayerState:
    if not isinstance(saved, SavedPosition) or not saved.url:
        return state
    position = _as_float(saved.position)
    timestamp = _as_float(saved.timestamp)
    if position is None or timestamp is None:
        return state
    history = dict(state.history)
    history[saved.url] = HistoryEntry(position=position, timestamp=timestamp)
    return replace(state, history=MappingProxyType(history))


def _load_history(state: PlayerState, history: Any) -> PlayerState:
    if history is None:
        history = {}
    if not isinstance(history, Mapping):
        return state
    entries = {
        url: entry
        for url, entry in history.items()
        if isinstance(url, str) and isinstance(entry, HistoryEntry)
    }
    return replace(state, history=MappingProxyType(entries))


def _clamp_volume(volume: float) -> float:
    return max(0.0, min(volume, 1.0))


_HANDLERS: dict[ActionType, Handler] = {
    ActionType.SET_URL: _set_url,
    ActionType.SET_PLAYING: _set_playing,
    ActionType.SET_TIME: _number("current_time", lambda t: max(t, 0.0)),
    ActionType.SET_DURATION: _set_duration,
    ActionType.SET_BUFFERED: _number("buffered", lambda t: max(t, 0.0)),
    ActionType.SET_VOLUME: _number("volume", _clamp_volume),
    ActionType.SET_MUTED: _set_muted,
    ActionType.SET_PLAYBACK_RATE: _number("playback_rate"),
    ActionType.SET_STREAM_INFO: _set_stream_info,
    ActionType.SET_MEDIA_INFO: _set_media_info,
    ActionType.SET_STATUS: _set_status,
    ActionType.SET_ERROR: _set_error,
    ActionType.SET_REMUX_PROGRESS: _set_remux_progress,
    ActionType.SAVE_POSITION: _save_position,
    ActionType.LOAD_HISTORY: _load_history,
    ActionType.RESET: lambda s, _: PlayerState(history=s.history),
}


def reduce(state: PlayerState, action: Action) -> PlayerState:
    """Apply action to state and return the new state.

    Total: unknown action kinds and malformed payloads return state
    unchanged. SET_MEDIA_INFO merges the fields it knows into the current
    media info.
    """
    kind = getattr(action, "kind", None)
    if not isinstance(kind, ActionType):
        return state
    return _HANDLERS[kind](state, action.payload)
