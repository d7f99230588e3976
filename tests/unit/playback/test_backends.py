"""Tests for backend selection."""

import pytest

from uniplay.classifier import classify
from uniplay.domain.enums import BackendKind
from uniplay.playback.backends import (
    AdaptiveBackend,
    NativeBackend,
    RemuxedBackend,
    select_backend,
)


def select(url: str, native_hls: bool = False):
    return select_backend(classify(url), url, native_hls=native_hls)


@pytest.mark.parametrize(
    "url",
    [
        "https://x.example.com/video.mp4",
        "https://x.example.com/video.webm",
        "https://x.example.com/watch?v=123",
    ],
)
def test_native_kinds(url: str) -> None:
    backend = select(url)
    assert isinstance(backend, NativeBackend)
    assert backend.kind is BackendKind.NATIVE


def test_remux_kinds_carry_input_format() -> None:
    backend = select("https://x.example.com/Movie.MKV?sig=1")
    assert isinstance(backend, RemuxedBackend)
    assert backend.input_format == "mkv"
    assert backend.kind is BackendKind.REMUXING


def test_hls_uses_adaptive_engine_with_live_profile() -> None:
    backend = select("https://x.example.com/stream.m3u8")
    assert isinstance(backend, AdaptiveBackend)
    assert backend.live


def test_hls_on_native_hls_sink_plays_natively() -> None:
    assert isinstance(select("https://x.example.com/stream.m3u8", True), NativeBackend)


def test_dash_ignores_native_hls() -> None:
    assert isinstance(select("https://x.example.com/a.mpd", True), AdaptiveBackend)


def test_transport_stream_is_adaptive() -> None:
    assert isinstance(select("https://x.example.com/channel.ts"), AdaptiveBackend)
