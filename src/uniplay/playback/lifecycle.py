"""Session resource ownership and teardown.

A session owns at most one adaptive engine and at most one blob
reference. SessionLifecycleManager releases them in a fixed order, once,
whether the session ends normally or is abandoned mid-initialization.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

from uniplay.exceptions import SessionSupersededError
from uniplay.playback.interface import AdaptiveEngine, MediaSink

logger = logging.getLogger(__name__)


class BlobStore:
    """Ephemeral, revocable references to in-memory media.

    Each blob is written to its own temporary file and referenced by a
    file:// URL that a sink can open. Revoking the URL deletes the file.

    Args:
        directory: Where blob files are created. Defaults to the system
            temporary directory.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory
        self._paths: dict[str, Path] = {}

    def create(self, data: bytes, suffix: str = ".mp4") -> str:
        """Store data and return a reference URL for it."""
        fd, name = tempfile.mkstemp(
            prefix="uniplay-blob-", suffix=suffix, dir=self._directory
        )
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        path = Path(name)
        url = path.as_uri()
        self._paths[url] = path
        logger.debug("Created blob %s (%d bytes)", url, len(data))
        return url

    def revoke(self, url: str) -> bool:
        """Delete the blob behind url.

        Returns:
            True if url referred to a live blob.
        """
        path = self._paths.pop(url, None)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not delete blob %s: %s", path, e)
        logger.debug("Revoked blob %s", url)
        return True

    def revoke_all(self) -> None:
        for url in list(self._paths):
            self.revoke(url)

    def is_live(self, url: str) -> bool:
        return url in self._paths

    def path_of(self, url: str) -> Path | None:
        """Return the file behind a live blob reference."""
        if url not in self._paths:
            return None
        return Path(unquote(urlsplit(url).path))

    def __len__(self) -> int:
        return len(self._paths)


@dataclass
class SessionResources:
    """Handles owned by one playback session."""

    engine: AdaptiveEngine | None = None
    object_url: str | None = None
    closed: bool = False


class SessionLifecycleManager:
    """Releases session resources against one sink.

    Args:
        sink: The sink every session renders into.
        blob_store: Store that issued the sessions' blob references.
    """

    def __init__(self, sink: MediaSink, blob_store: BlobStore) -> None:
        self.sink = sink
        self.blob_store = blob_store

    async def teardown(self, resources: SessionResources) -> None:
        """Release everything resources holds.

        Order: stop playback, destroy the engine, revoke the blob, clear
        the sink source and reload the sink so it drops buffered media.
        Failures are logged as warnings. Calling this again on the same
        resources does nothing.
        """
        if resources.closed:
            return
        resources.closed = True

        try:
            self.sink.pause()
        except Exception as e:
            logger.warning("Error pausing sink during teardown: %s", e)

        engine, resources.engine = resources.engine, None
        if engine is not None:
            await self._destroy_engine(engine)

        object_url, resources.object_url = resources.object_url, None
        if object_url is not None:
            self.blob_store.revoke(object_url)

        try:
            self.sink.source = None
            self.sink.load()
        except Exception as e:
            logger.warning("Error resetting sink during teardown: %s", e)

    async def adopt_engine(
        self, resources: SessionResources, engine: AdaptiveEngine
    ) -> None:
        """Hand engine to resources.

        Raises:
            SessionSupersededError: If resources were already torn down.
                The engine is destroyed before raising.
        """
        if resources.closed:
            await self._destroy_engine(engine)
            raise SessionSupersededError("Session closed before engine was attached")
        resources.engine = engine

    def adopt_object_url(self, resources: SessionResources, url: str) -> None:
        """Hand a blob reference to resources.

        Raises:
            SessionSupersededError: If resources were already torn down.
                The reference is revoked before raising.
        """
        if resources.closed:
            self.blob_store.revoke(url)
            raise SessionSupersededError("Session closed before blob was attached")
        resources.object_url = url

    @staticmethod
    async def _destroy_engine(engine: AdaptiveEngine) -> None:
        try:
            await engine.destroy()
        except Exception as e:
            logger.warning("Error destroying adaptive engine: %s", e)
