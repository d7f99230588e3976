"""Playback session state."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from uniplay.domain.enums import BackendKind, SessionStatus
from uniplay.domain.models import MediaInfo, StreamDescriptor
from uniplay.events import Subscription
from uniplay.playback.lifecycle import SessionResources

logger = logging.getLogger(__name__)

# error and ended are reachable but never left; idle belongs to the player.
_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.IDLE: frozenset({SessionStatus.LOADING}),
    SessionStatus.LOADING: frozenset(
        {SessionStatus.REMUXING, SessionStatus.READY, SessionStatus.ERROR}
    ),
    SessionStatus.REMUXING: frozenset({SessionStatus.READY, SessionStatus.ERROR}),
    SessionStatus.READY: frozenset(
        {
            SessionStatus.PLAYING,
            SessionStatus.PAUSED,
            SessionStatus.ENDED,
            SessionStatus.ERROR,
        }
    ),
    SessionStatus.PLAYING: frozenset(
        {SessionStatus.PAUSED, SessionStatus.ENDED, SessionStatus.ERROR}
    ),
    SessionStatus.PAUSED: frozenset(
        {SessionStatus.PLAYING, SessionStatus.ENDED, SessionStatus.ERROR}
    ),
    SessionStatus.ENDED: frozenset(),
    SessionStatus.ERROR: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """True if a session may move from current to target."""
    return target in _TRANSITIONS[current]


@dataclass
class PlaybackSession:
    """One attempt to play one URL.

    Sessions are never reused: a new URL always gets a new session, and a
    session in ERROR or ENDED stays there.
    """

    id: int
    url: str
    descriptor: StreamDescriptor
    backend_kind: BackendKind = BackendKind.NONE
    status: SessionStatus = SessionStatus.LOADING
    error: str | None = None
    media_info: MediaInfo | None = None
    resources: SessionResources = field(default_factory=SessionResources)
    initializing: bool = False
    buffering: bool = False

    subscriptions: list[Subscription] = field(default_factory=list, repr=False)
    """Handlers installed on the sink and engine for this session."""

    waiter: asyncio.Future[None] | None = field(default=None, repr=False)
    """Pending sink readiness wait, failed on teardown."""

    @property
    def closed(self) -> bool:
        return self.resources.closed

    @property
    def is_active(self) -> bool:
        """True until the session is torn down or fails."""
        return not self.closed and self.status is not SessionStatus.ERROR

    def transition(self, target: SessionStatus) -> bool:
        """Move to target if the state machine allows it.

        Returns:
            True if the status changed.
        """
        if self.status is target:
            return False
        if not can_transition(self.status, target):
            logger.debug(
                "Ignoring transition %s -> %s for session %d",
                self.status.value,
                target.value,
                self.id,
            )
            return False
        self.status = target
        return True

    def dispose_subscriptions(self) -> None:
        subscriptions, self.subscriptions = self.subscriptions, []
        for subscription in subscriptions:
            subscription.dispose()
