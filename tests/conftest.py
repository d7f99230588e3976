"""Shared test fixtures for uniplay."""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest

from tests.fakes import (
    FakeEngineFactory,
    FakeExecutor,
    FakeSink,
    make_source_client,
)
from uniplay.config.models import HistoryConfig, RemuxConfig, UniplayConfig
from uniplay.domain.models import RenditionTrack
from uniplay.playback.lifecycle import BlobStore
from uniplay.remux.fetch import SourceFetcher
from uniplay.remux.pipeline import RemuxPipeline
from uniplay.remux.shared import SharedExecutor


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    return FakeEngineFactory(
        tracks=[
            RenditionTrack("avc1.4d401e", "mp4a.40.2", 640, 360, 800_000),
            RenditionTrack("avc1.640028", "mp4a.40.2", 1920, 1080, 5_000_000, True),
        ]
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def shared_executor(fake_executor: FakeExecutor) -> SharedExecutor:
    return SharedExecutor(lambda: fake_executor)


@pytest.fixture
def source_client():
    client, requests = make_source_client()
    return client, requests


@pytest.fixture
def pipeline(shared_executor: SharedExecutor, source_client) -> RemuxPipeline:
    client, _ = source_client
    return RemuxPipeline(
        executor=shared_executor,
        fetcher=SourceFetcher(client=client),
        config=RemuxConfig(),
    )


@pytest.fixture
def blob_store(temp_dir: Path) -> BlobStore:
    return BlobStore(temp_dir)


@pytest.fixture
def uniplay_config(temp_dir: Path) -> UniplayConfig:
    return UniplayConfig(
        history=HistoryConfig(storage_path=temp_dir / "state.json"),
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() changes made by a test."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    chatty = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield
    for name, chatty_level in chatty.items():
        logging.getLogger(name).setLevel(chatty_level)
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
