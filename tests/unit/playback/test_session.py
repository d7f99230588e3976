"""Tests for the session state machine."""

import pytest

from uniplay.classifier import classify
from uniplay.domain.enums import SessionStatus
from uniplay.playback.session import PlaybackSession, can_transition

S = SessionStatus


def make_session() -> PlaybackSession:
    url = "https://x.example.com/a.mp4"
    return PlaybackSession(id=1, url=url, descriptor=classify(url))


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.LOADING, S.READY),
        (S.LOADING, S.REMUXING),
        (S.REMUXING, S.READY),
        (S.READY, S.PLAYING),
        (S.PLAYING, S.PAUSED),
        (S.PAUSED, S.PLAYING),
        (S.PLAYING, S.ENDED),
        (S.LOADING, S.ERROR),
        (S.PLAYING, S.ERROR),
    ],
)
def test_allowed(current: SessionStatus, target: SessionStatus) -> None:
    assert can_transition(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.ERROR, S.LOADING),
        (S.ERROR, S.READY),
        (S.ENDED, S.PLAYING),
        (S.ENDED, S.ERROR),
        (S.LOADING, S.PLAYING),
        (S.IDLE, S.ERROR),
    ],
)
def test_rejected(current: SessionStatus, target: SessionStatus) -> None:
    assert not can_transition(current, target)


def test_transition_updates_status() -> None:
    session = make_session()

    assert session.transition(S.READY)
    assert session.status is S.READY
    assert not session.transition(S.READY)


def test_error_is_terminal() -> None:
    session = make_session()
    session.transition(S.ERROR)

    assert not session.transition(S.READY)
    assert session.status is S.ERROR
    assert not session.is_active
