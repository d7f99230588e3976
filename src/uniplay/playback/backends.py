"""Backend selection.

A session plays through exactly one of three backends. The remuxed
backend is not a fourth way of playing: it produces a blob that is then
handed to the native backend.
"""

from __future__ import annotations

from dataclasses import dataclass

from uniplay.classifier import extension_of, needs_remuxing
from uniplay.domain.enums import BackendKind, StreamKind
from uniplay.domain.models import StreamDescriptor

_NATIVE_KINDS = frozenset({StreamKind.MP4, StreamKind.WEBM, StreamKind.UNKNOWN})


@dataclass(frozen=True)
class NativeBackend:
    """Attach the URL to the sink directly."""

    url: str
    kind: BackendKind = BackendKind.NATIVE


@dataclass(frozen=True)
class AdaptiveBackend:
    """Play the URL through an adaptive engine.

    live selects the low-latency engine profile.
    """

    url: str
    live: bool = False
    kind: BackendKind = BackendKind.ADAPTIVE


@dataclass(frozen=True)
class RemuxedBackend:
    """Remux the URL to fragmented MP4, then play the blob natively."""

    url: str
    input_format: str
    kind: BackendKind = BackendKind.REMUXING


Backend = NativeBackend | AdaptiveBackend | RemuxedBackend


def select_backend(
    descriptor: StreamDescriptor, url: str, *, native_hls: bool = False
) -> Backend:
    """Choose the backend for a classified URL.

    Args:
        descriptor: Classification of url.
        url: The URL being played.
        native_hls: True if the sink can play HLS manifests itself.

    Returns:
        RemuxedBackend for containers that need remuxing, NativeBackend
        for MP4/WEBM/unknown (and HLS on a native-HLS sink), otherwise
        AdaptiveBackend.
    """
    kind = descriptor.kind
    if needs_remuxing(kind):
        return RemuxedBackend(url, extension_of(url) or kind.value)
    if kind in _NATIVE_KINDS:
        return NativeBackend(url)
    if kind is StreamKind.HLS and native_hls:
        return NativeBackend(url)
    return AdaptiveBackend(url, live=descriptor.is_live)
