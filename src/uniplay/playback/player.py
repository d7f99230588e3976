"""Playback orchestration.

Player owns one sink and at most one PlaybackSession at a time. Loading a
URL classifies it, picks a backend, tears down the previous session and
initializes a fresh one:

    URL -> classify -> select backend -> initialize -> ready

Every handler the player installs is bound to the session that installed
it, so events from a superseded session (a late remux progress tick, a
sink event during teardown) never reach the current one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from uniplay.classifier import classify
from uniplay.config.models import UniplayConfig
from uniplay.domain.enums import BackendKind, MediaErrorCode, SessionStatus
from uniplay.domain.models import MediaInfo
from uniplay.events import EventEmitter, Subscription
from uniplay.exceptions import (
    AdaptiveEngineLoadError,
    AdaptiveEngineUnsupportedError,
    AutoplayBlockedError,
    PlaybackError,
    RemuxError,
    SessionSupersededError,
    SinkError,
)
from uniplay.logging import session_context
from uniplay.playback.backends import (
    AdaptiveBackend,
    NativeBackend,
    RemuxedBackend,
    select_backend,
)
from uniplay.playback.interface import (
    ENGINE_BUFFERING,
    ENGINE_ERROR,
    HLS_MIME_TYPE,
    SINK_CANPLAY,
    SINK_ENDED,
    SINK_ERROR,
    SINK_PAUSE,
    SINK_PLAY,
    SINK_TIMEUPDATE,
    AdaptiveEngine,
    AdaptiveEngineFactory,
    MediaSink,
)
from uniplay.playback.lifecycle import BlobStore, SessionLifecycleManager
from uniplay.playback.session import PlaybackSession
from uniplay.remux.pipeline import RemuxPipeline

logger = logging.getLogger(__name__)

READY = "ready"
STREAM_INFO = "stream_info"
REMUX_PROGRESS = "remux_progress"
BUFFERING = "buffering"
ERROR = "error"
PLAY = "play"
PAUSE = "pause"
TIME_UPDATE = "time_update"
ENDED = "ended"
STATUS = "status"
LOAD = "load"
PLAYER_EVENTS = frozenset(
    {
        READY,
        STREAM_INFO,
        REMUX_PROGRESS,
        BUFFERING,
        ERROR,
        PLAY,
        PAUSE,
        TIME_UPDATE,
        ENDED,
        STATUS,
        LOAD,
    }
)

NATIVE_CODEC = "native"


@dataclass(frozen=True)
class ReadyEvent:
    """Payload of the "ready" event."""

    session_id: int
    url: str
    backend_kind: BackendKind
    sink: MediaSink
    engine: AdaptiveEngine | None = None


@dataclass(frozen=True)
class TimeUpdate:
    """Payload of the "time_update" event."""

    current_time: float
    duration: float | None
    buffered: float


def _error_code(payload: Any) -> MediaErrorCode | None:
    if isinstance(payload, MediaErrorCode):
        return payload
    try:
        return MediaErrorCode(payload)
    except ValueError:
        return None


class Player:
    """Plays arbitrary media URLs through the right backend.

    Events (subscribe with on()):
        load: str, a new session started for this URL.
        status: SessionStatus, after every status change.
        ready: ReadyEvent, the session can start playback.
        stream_info: MediaInfo, emitted just before ready.
        remux_progress: float in [0, 1] while remuxing.
        buffering: bool, adaptive engine buffering state.
        error: PlaybackError, at most once per session.
        play / pause / ended: None.
        time_update: TimeUpdate.

    Args:
        sink: Native playback element to render into.
        engine_factory: Creates adaptive engines. None disables the
            adaptive backend.
        pipeline: Remux pipeline. Created from config when omitted.
        blob_store: Store for remuxed blobs. A temporary one by default.
        config: Settings. Defaults to UniplayConfig().
        autoplay: Start playback on ready. Defaults to config.autoplay.
    """

    def __init__(
        self,
        sink: MediaSink,
        *,
        engine_factory: AdaptiveEngineFactory | None = None,
        pipeline: RemuxPipeline | None = None,
        blob_store: BlobStore | None = None,
        config: UniplayConfig | None = None,
        autoplay: bool | None = None,
    ) -> None:
        self.config = config or UniplayConfig()
        self.sink = sink
        self.autoplay = self.config.autoplay if autoplay is None else autoplay
        self.blob_store = blob_store or BlobStore()
        self._engine_factory = engine_factory
        self._pipeline = pipeline
        self._owns_pipeline = pipeline is None
        self._lifecycle = SessionLifecycleManager(sink, self.blob_store)
        self._events = EventEmitter(PLAYER_EVENTS)
        self._session: PlaybackSession | None = None
        self._switch_lock = asyncio.Lock()
        self._next_id = 0

    # Public state

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    @property
    def status(self) -> SessionStatus:
        if self._session is None:
            return SessionStatus.IDLE
        return self._session.status

    @property
    def url(self) -> str | None:
        return self._session.url if self._session is not None else None

    @property
    def error(self) -> str | None:
        return self._session.error if self._session is not None else None

    @property
    def media_info(self) -> MediaInfo | None:
        return self._session.media_info if self._session is not None else None

    @property
    def engine(self) -> AdaptiveEngine | None:
        """The live adaptive engine, if the current session has one."""
        if self._session is None:
            return None
        return self._session.resources.engine

    def on(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        """Subscribe to a player event."""
        return self._events.on(event, handler)

    # Session switching

    async def load(self, url: str | None) -> PlaybackSession | None:
        """Play url in a fresh session.

        An empty url tears the current session down and leaves the player
        idle. Loading the URL that is already initializing is ignored.
        Initialization failures are reported through the "error" event,
        not raised.

        Returns:
            The session created for url, the already-initializing session
            for a duplicate request, or None for an empty url.
        """
        if not url:
            await self.teardown()
            return None

        async with self._switch_lock:
            current = self._session
            if current is not None and current.url == url and current.initializing:
                logger.debug("Ignoring duplicate load of %s", url)
                return current
            if current is not None:
                await self._close_session(current)
            self._next_id += 1
            session = PlaybackSession(
                id=self._next_id, url=url, descriptor=classify(url)
            )
            session.initializing = True
            self._session = session

        with session_context(session.id, url):
            self._events.emit(LOAD, url)
            self._events.emit(STATUS, session.status)
            await self._initialize(session)
        return session

    async def teardown(self) -> None:
        """Release the current session and return to idle."""
        async with self._switch_lock:
            session, self._session = self._session, None
            if session is None:
                return
            await self._close_session(session)
        self._events.emit(STATUS, SessionStatus.IDLE)

    async def aclose(self) -> None:
        """Tear down and release every resource the player created."""
        await self.teardown()
        self.blob_store.revoke_all()
        if self._owns_pipeline and self._pipeline is not None:
            await self._pipeline.aclose()

    async def _close_session(self, session: PlaybackSession) -> None:
        logger.debug("Tearing down session %d (%s)", session.id, session.url)
        session.dispose_subscriptions()
        waiter, session.waiter = session.waiter, None
        if waiter is not None and not waiter.done():
            waiter.set_exception(SessionSupersededError("Session torn down"))
        await self._lifecycle.teardown(session.resources)

    # Initialization

    async def _initialize(self, session: PlaybackSession) -> None:
        backend = select_backend(
            session.descriptor, session.url, native_hls=self._native_hls()
        )
        session.backend_kind = backend.kind
        logger.info(
            "Playing %s as %s via %s backend",
            session.url,
            session.descriptor.kind.value,
            backend.kind.value,
        )
        self._install_sink_handlers(session)

        try:
            if isinstance(backend, RemuxedBackend):
                await self._start_remuxed(session, backend)
            elif isinstance(backend, AdaptiveBackend):
                await self._start_adaptive(session, backend)
            else:
                await self._start_native(session, backend)
        except SessionSupersededError:
            logger.debug("Discarding superseded session %d", session.id)
            return
        except PlaybackError as e:
            self._fail(session, e)
            return
        finally:
            session.initializing = False

        if self.autoplay:
            await self._autoplay(session)

    async def _start_native(
        self, session: PlaybackSession, backend: NativeBackend
    ) -> None:
        await self._attach_native(session, backend.url)

    async def _attach_native(self, session: PlaybackSession, source: str) -> None:
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        session.waiter = waiter

        def on_canplay(_: Any) -> None:
            if not waiter.done():
                waiter.set_result(None)

        def on_error(payload: Any) -> None:
            if not waiter.done():
                waiter.set_exception(SinkError(_error_code(payload)))

        subscriptions = [
            self.sink.on(SINK_CANPLAY, on_canplay),
            self.sink.on(SINK_ERROR, on_error),
        ]
        try:
            self.sink.source = source
            self.sink.load()
            await waiter
        finally:
            for subscription in subscriptions:
                subscription.dispose()
            if session.waiter is waiter:
                session.waiter = None
        self._ensure_active(session)

        media_info = MediaInfo(
            width=self.sink.video_width,
            height=self.sink.video_height,
            video_codec=NATIVE_CODEC,
            audio_codec=NATIVE_CODEC,
        )
        self._mark_ready(session, media_info)

    async def _start_adaptive(
        self, session: PlaybackSession, backend: AdaptiveBackend
    ) -> None:
        factory = self._engine_factory
        if factory is None or not factory.is_supported():
            raise AdaptiveEngineUnsupportedError(
                "Adaptive streaming is not supported in this environment"
            )

        engine = factory.create()
        await self._lifecycle.adopt_engine(session.resources, engine)
        session.subscriptions.extend(
            [
                engine.on(ENGINE_ERROR, self._guard(session, self._on_engine_error)),
                engine.on(ENGINE_BUFFERING, self._guard(session, self._on_buffering)),
            ]
        )

        try:
            await engine.attach(self.sink)
            if backend.live:
                engine.configure(self.config.live_profile.to_engine_config())
            await engine.load(backend.url)
        except (SessionSupersededError, PlaybackError):
            raise
        except Exception as e:
            self._ensure_active(session)
            raise AdaptiveEngineLoadError(f"Failed to load stream: {e}") from e
        self._ensure_active(session)

        tracks = engine.get_variant_tracks()
        active = next((t for t in tracks if t.active), tracks[0] if tracks else None)
        media_info = active.to_media_info() if active is not None else None
        self._mark_ready(session, media_info, engine)

    async def _start_remuxed(
        self, session: PlaybackSession, backend: RemuxedBackend
    ) -> None:
        self._set_status(session, SessionStatus.REMUXING)
        self._emit(session, REMUX_PROGRESS, 0.0)

        artifact = await self._get_pipeline().prepare(
            backend.url,
            backend.input_format,
            on_progress=self._guard(
                session, lambda s, value: self._emit(s, REMUX_PROGRESS, value)
            ),
        )
        self._ensure_active(session)

        try:
            object_url = self.blob_store.create(artifact.data)
        except OSError as e:
            raise RemuxError(f"Could not store remuxed media: {e}") from e
        self._lifecycle.adopt_object_url(session.resources, object_url)
        await self._attach_native(session, object_url)

    async def _autoplay(self, session: PlaybackSession) -> None:
        if not session.is_active:
            return
        try:
            await self.sink.play()
        except (AutoplayBlockedError, PermissionError) as e:
            logger.warning("Autoplay prevented for %s: %s", session.url, e)

    # Session event handling

    def _guard(
        self, session: PlaybackSession, handler: Callable[[PlaybackSession, Any], None]
    ) -> Callable[[Any], None]:
        """Bind handler to session; calls for a stale session are dropped."""
        session_id = session.id

        def guarded(payload: Any) -> None:
            current = self._session
            if current is None or current.id != session_id or current.closed:
                logger.debug("Dropping event for stale session %d", session_id)
                return
            handler(current, payload)

        return guarded

    def _install_sink_handlers(self, session: PlaybackSession) -> None:
        session.subscriptions.extend(
            [
                self.sink.on(SINK_PLAY, self._guard(session, self._on_sink_play)),
                self.sink.on(SINK_PAUSE, self._guard(session, self._on_sink_pause)),
                self.sink.on(
                    SINK_TIMEUPDATE, self._guard(session, self._on_sink_timeupdate)
                ),
                self.sink.on(SINK_ENDED, self._guard(session, self._on_sink_ended)),
                self.sink.on(SINK_ERROR, self._guard(session, self._on_sink_error)),
            ]
        )

    def _on_sink_play(self, session: PlaybackSession, _: Any) -> None:
        if self._set_status(session, SessionStatus.PLAYING):
            self._emit(session, PLAY)

    def _on_sink_pause(self, session: PlaybackSession, _: Any) -> None:
        if self._set_status(session, SessionStatus.PAUSED):
            self._emit(session, PAUSE)

    def _on_sink_timeupdate(self, session: PlaybackSession, _: Any) -> None:
        self._emit(
            session,
            TIME_UPDATE,
            TimeUpdate(
                current_time=self.sink.current_time,
                duration=self.sink.duration,
                buffered=self.sink.buffered,
            ),
        )

    def _on_sink_ended(self, session: PlaybackSession, _: Any) -> None:
        if self._set_status(session, SessionStatus.ENDED):
            self._emit(session, ENDED)

    def _on_sink_error(self, session: PlaybackSession, payload: Any) -> None:
        if session.waiter is not None:
            return
        self._fail(session, SinkError(_error_code(payload)))

    def _on_engine_error(self, session: PlaybackSession, payload: Any) -> None:
        if session.initializing:
            return
        self._fail(session, AdaptiveEngineLoadError(f"Stream error: {payload}"))

    def _on_buffering(self, session: PlaybackSession, payload: Any) -> None:
        session.buffering = bool(payload)
        self._emit(session, BUFFERING, session.buffering)

    # Helpers

    def _emit(self, session: PlaybackSession, event: str, payload: Any = None) -> None:
        if self._session is not session or session.closed:
            return
        self._events.emit(event, payload)

    def _set_status(self, session: PlaybackSession, status: SessionStatus) -> bool:
        if not session.transition(status):
            return False
        self._emit(session, STATUS, status)
        return True

    def _mark_ready(
        self,
        session: PlaybackSession,
        media_info: MediaInfo | None,
        engine: AdaptiveEngine | None = None,
    ) -> None:
        session.media_info = media_info
        self._set_status(session, SessionStatus.READY)
        logger.info("Session ready: %s", session.url)
        if media_info is not None:
            self._emit(session, STREAM_INFO, media_info)
        self._emit(
            session,
            READY,
            ReadyEvent(
                session_id=session.id,
                url=session.url,
                backend_kind=session.backend_kind,
                sink=self.sink,
                engine=engine,
            ),
        )

    def _fail(self, session: PlaybackSession, error: PlaybackError) -> None:
        """Move session to ERROR and report error, once."""
        if session.status is SessionStatus.ERROR:
            return
        if not self._set_status(session, SessionStatus.ERROR):
            return
        session.error = error.message
        logger.error("Playback failed for %s: %s", session.url, error.message)
        self._emit(session, ERROR, error)

    def _ensure_active(self, session: PlaybackSession) -> None:
        if self._session is not session or not session.is_active:
            raise SessionSupersededError(f"Session {session.id} is no longer active")

    def _native_hls(self) -> bool:
        try:
            return bool(self.sink.can_play_type(HLS_MIME_TYPE))
        except Exception as e:
            logger.debug("Sink rejected can_play_type probe: %s", e)
            return False

    def _get_pipeline(self) -> RemuxPipeline:
        if self._pipeline is None:
            self._pipeline = RemuxPipeline(config=self.config.remux)
        return self._pipeline

    # Controls

    async def play(self) -> None:
        """Start or resume playback.

        Raises:
            AutoplayBlockedError: If the host refuses to start playback.
        """
        await self.sink.play()

    def pause(self) -> None:
        self.sink.pause()

    def seek(self, position: float) -> None:
        """Seek to position seconds, clamped to the media duration."""
        position = max(0.0, position)
        duration = self.sink.duration
        if duration is not None and duration > 0:
            position = min(position, duration)
        self.sink.current_time = position

    @property
    def current_time(self) -> float:
        return self.sink.current_time

    @property
    def duration(self) -> float | None:
        return self.sink.duration

    @property
    def volume(self) -> float:
        return self.sink.volume

    @volume.setter
    def volume(self, value: float) -> None:
        self.sink.volume = max(0.0, min(float(value), 1.0))

    @property
    def muted(self) -> bool:
        return self.sink.muted

    @muted.setter
    def muted(self, value: bool) -> None:
        self.sink.muted = bool(value)
