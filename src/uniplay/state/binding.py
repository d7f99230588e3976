"""Wiring between a Player and a PlayerStateStore.

The binding mirrors player events into store actions, records the
playback position once per elapsed interval (5 seconds by default) of
each URL, and offers saved positions for resumption when a session
becomes ready.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from uniplay.events import Subscription
from uniplay.exceptions import PlaybackError
from uniplay.playback import player as player_events
from uniplay.playback.player import Player, ReadyEvent, TimeUpdate
from uniplay.state.store import PlayerStateStore

logger = logging.getLogger(__name__)

ResumePrompt = Callable[[str, float], bool]


class StoreBinding:
    """Active subscriptions between one player and one store.

    Args:
        player: Player to observe.
        store: Store to update.
        confirm_resume: Called as confirm_resume(url, position) when a
            ready session has a saved position; returning True seeks
            there. None never resumes.
    """

    def __init__(
        self,
        player: Player,
        store: PlayerStateStore,
        confirm_resume: ResumePrompt | None = None,
    ) -> None:
        self.player = player
        self.store = store
        self.confirm_resume = confirm_resume
        self._last_saved: tuple[str, int] | None = None
        self._subscriptions: list[Subscription] = [
            player.on(player_events.LOAD, self._on_load),
            player.on(player_events.STATUS, store.set_status),
            player.on(player_events.STREAM_INFO, store.set_media_info),
            player.on(player_events.REMUX_PROGRESS, store.set_remux_progress),
            player.on(player_events.ERROR, self._on_error),
            player.on(player_events.PLAY, lambda _: store.set_playing(True)),
            player.on(player_events.PAUSE, lambda _: store.set_playing(False)),
            player.on(player_events.TIME_UPDATE, self._on_time_update),
            player.on(player_events.READY, self._on_ready),
        ]

    def dispose(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def _on_load(self, url: str) -> None:
        self.store.set_url(url)
        session = self.player.session
        if session is not None:
            self.store.set_stream_info(session.descriptor)

    def _on_error(self, error: PlaybackError) -> None:
        self.store.set_error(error.message)

    def _on_time_update(self, update: TimeUpdate) -> None:
        self.store.set_time(update.current_time)
        self.store.set_duration(update.duration)
        self.store.set_buffered(update.buffered)

        url = self.player.url
        if url is None:
            return
        interval = self.store.config.save_interval_seconds
        bucket = int(update.current_time // interval)
        if bucket < 1 or self._last_saved == (url, bucket):
            return
        self._last_saved = (url, bucket)
        self.store.save_position(url, update.current_time)

    def _on_ready(self, event: ReadyEvent) -> None:
        if self.confirm_resume is None:
            return
        position = self.store.suggest_resume(event.url)
        if position is None:
            return
        if self.confirm_resume(event.url, position):
            logger.info("Resuming %s at %.1fs", event.url, position)
            self.player.seek(position)


def bind_store(
    player: Player,
    store: PlayerStateStore,
    confirm_resume: ResumePrompt | None = None,
) -> StoreBinding:
    """Mirror player events into store; see StoreBinding."""
    return StoreBinding(player, store, confirm_resume)
