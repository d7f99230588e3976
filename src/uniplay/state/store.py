"""Observable player state store.

A single writer dispatches actions; any number of readers subscribe to
changes. Only resume history is persisted: it is loaded once when the
store is created and written back whenever it changes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from uniplay.config.models import HistoryConfig
from uniplay.domain.enums import SessionStatus
from uniplay.domain.models import MediaInfo, StreamDescriptor
from uniplay.events import EventEmitter, Subscription
from uniplay.state import actions
from uniplay.state.actions import Action
from uniplay.state.reducer import PlayerState, reduce
from uniplay.state.storage import (
    JsonFileStorage,
    StateStorage,
    load_history,
    save_history,
)

logger = logging.getLogger(__name__)

CHANGE_EVENT = "change"

Listener = Callable[[PlayerState], None]


class PlayerStateStore:
    """Holds PlayerState and applies actions to it.

    Args:
        storage: Where history is persisted. Defaults to a JsonFileStorage
            at config.storage_path.
        config: History settings. Defaults to HistoryConfig().
        clock: Returns the current POSIX time in seconds.

    Example:
        store = PlayerStateStore(MemoryStorage())
        store.save_position("https://example.com/a.mp4", 42.0)
        store.get_saved_position("https://example.com/a.mp4")  # 42.0
    """

    def __init__(
        self,
        storage: StateStorage | None = None,
        *,
        config: HistoryConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or HistoryConfig()
        self._storage = (
            storage if storage is not None else JsonFileStorage(self.config.storage_path)
        )
        self._clock = clock
        self._events = EventEmitter({CHANGE_EVENT})
        history = load_history(self._storage, self.config.storage_key)
        self._state = reduce(PlayerState(), actions.load_history(history))
        logger.debug("Loaded %d history entries", len(history))

    @property
    def state(self) -> PlayerState:
        return self._state

    def subscribe(self, listener: Listener) -> Subscription:
        """Call listener with the new state after every change."""
        return self._events.on(CHANGE_EVENT, listener)

    def dispatch(self, action: Action) -> PlayerState:
        """Apply action, persist history if it changed and notify listeners."""
        previous = self._state
        state = reduce(previous, action)
        if state == previous:
            return previous
        self._state = state
        if state.history is not previous.history:
            save_history(self._storage, self.config.storage_key, state.history)
        self._events.emit(CHANGE_EVENT, state)
        return state

    # Action helpers

    def set_url(self, url: str | None) -> None:
        self.dispatch(actions.set_url(url))

    def set_playing(self, playing: bool) -> None:
        self.dispatch(actions.set_playing(playing))

    def set_time(self, seconds: float) -> None:
        self.dispatch(actions.set_time(seconds))

    def set_duration(self, seconds: float | None) -> None:
        self.dispatch(actions.set_duration(seconds))

    def set_buffered(self, seconds: float) -> None:
        self.dispatch(actions.set_buffered(seconds))

    def set_volume(self, volume: float) -> None:
        self.dispatch(actions.set_volume(volume))

    def set_muted(self, muted: bool) -> None:
        self.dispatch(actions.set_muted(muted))

    def set_playback_rate(self, rate: float) -> None:
        self.dispatch(actions.set_playback_rate(rate))

    def set_stream_info(self, descriptor: StreamDescriptor | None) -> None:
        self.dispatch(actions.set_stream_info(descriptor))

    def set_media_info(self, media_info: MediaInfo | None) -> None:
        self.dispatch(actions.set_media_info(media_info))

    def set_status(self, status: SessionStatus) -> None:
        self.dispatch(actions.set_status(status))

    def set_error(self, message: str | None) -> None:
        self.dispatch(actions.set_error(message))

    def set_remux_progress(self, progress: float) -> None:
        self.dispatch(actions.set_remux_progress(progress))

    def reset(self) -> None:
        """Reset playback state. History is kept."""
        self.dispatch(actions.reset())

    # History

    def save_position(self, url: str, position: float) -> None:
        """Record position for url, stamped with the current time."""
        self.dispatch(actions.save_position(url, position, self._clock()))

    def get_saved_position(self, url: str) -> float:
        """Return the saved position for url, or 0 if none or expired."""
        entry = self._state.history.get(url)
        if entry is None:
            return 0.0
        if not entry.is_fresh(self._clock(), self.config.max_age_seconds):
            return 0.0
        return entry.position

    def suggest_resume(self, url: str) -> float | None:
        """Return a position worth offering to resume from, if any."""
        position = self.get_saved_position(url)
        if position > self.config.min_resume_seconds:
            return position
        return None

    def clear_history(self) -> None:
        """Forget every saved position."""
        self.dispatch(actions.load_history({}))
