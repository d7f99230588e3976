"""Tests for the uniplay CLI."""

import dataclasses
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.fakes import FakeExecutor, make_source_client
from uniplay.cli import main
from uniplay.cli import remux as remux_cli
from uniplay.cli.exit_codes import ExitCode
from uniplay.config.models import LoggingConfig, UniplayConfig
from uniplay.remux.fetch import SourceFetcher
from uniplay.remux.pipeline import RemuxPipeline
from uniplay.remux.shared import SharedExecutor
from uniplay.state import PlayerStateStore

PROBE_LINES = (
    "  Duration: 00:01:00.00, start: 0.000000, bitrate: 2000 kb/s",
    "  Stream #0:0: Video: h264 (High), yuv420p, 1280x720, 25 fps",
    "  Stream #0:1: Audio: aac (LC), 48000 Hz, stereo",
)


@pytest.fixture
def uniplay_config(uniplay_config: UniplayConfig) -> UniplayConfig:
    """Keep log records off the captured output."""
    return dataclasses.replace(uniplay_config, logging=LoggingConfig(level="error"))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, config: UniplayConfig, *args: str):
    return runner.invoke(main, list(args), obj={"config": config})


@pytest.fixture
def fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> FakeExecutor:
    """Route CLI remux/probe through an in-memory executor."""
    executor = FakeExecutor(log_lines=PROBE_LINES)

    def build(config: UniplayConfig):
        client, _ = make_source_client()
        shared = SharedExecutor(lambda: executor)
        pipeline = RemuxPipeline(
            executor=shared,
            fetcher=SourceFetcher(client=client),
            config=config.remux,
        )
        return pipeline, shared

    monkeypatch.setattr(remux_cli, "_build_pipeline", build)
    return executor


class TestClassifyCommand:
    """Tests for `uniplay classify`."""

    def test_json(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        result = invoke(
            runner, uniplay_config, "classify", "--json", "https://x.example.com/a.MKV?t=1"
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "kind": "mkv",
            "category": "remux",
            "extension": "mkv",
            "needs_remuxing": True,
            "adaptive_compatible": False,
            "backend": "remuxing",
        }

    def test_text(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        result = invoke(
            runner, uniplay_config, "classify", "https://live.example.com/s.m3u8"
        )

        assert result.exit_code == 0
        assert "Kind:       hls" in result.output
        assert "Backend:    adaptive" in result.output

    def test_native_hls(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        result = invoke(
            runner,
            uniplay_config,
            "classify",
            "--native-hls",
            "https://live.example.com/s.m3u8",
        )

        assert "Backend:    native" in result.output


class TestProbeAndRemux:
    """Tests for `uniplay probe` and `uniplay remux`."""

    def test_probe_json(
        self, runner: CliRunner, uniplay_config: UniplayConfig, fake_pipeline
    ) -> None:
        result = invoke(
            runner, uniplay_config, "probe", "--json", "https://x.example.com/a.mkv"
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["video_codec"] == "h264"
        assert (data["width"], data["height"]) == (1280, 720)
        assert data["duration"] == 60.0
        assert fake_pipeline.terminate_count == 1

    def test_probe_text(
        self, runner: CliRunner, uniplay_config: UniplayConfig, fake_pipeline
    ) -> None:
        result = invoke(runner, uniplay_config, "probe", "https://x.example.com/a.mkv")

        assert "Video:        h264 1280x720" in result.output
        assert "Audio:        aac" in result.output

    def test_remux_batch(
        self,
        runner: CliRunner,
        uniplay_config: UniplayConfig,
        fake_pipeline,
        tmp_path: Path,
    ) -> None:
        out = tmp_path / "movie.mp4"

        result = invoke(
            runner, uniplay_config, "remux", "https://x.example.com/a.mkv", "-o", str(out)
        )

        assert result.exit_code == 0, result.output
        assert out.read_bytes() == b"fragmented-mp4"
        assert f"Wrote {out}" in result.output

    def test_remux_segmented(
        self,
        runner: CliRunner,
        uniplay_config: UniplayConfig,
        fake_pipeline,
        tmp_path: Path,
    ) -> None:
        out = tmp_path / "segments"

        result = invoke(
            runner,
            uniplay_config,
            "remux",
            "--segmented",
            "https://x.example.com/a.avi",
            "-o",
            str(out),
        )

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == [
            "segment_000.mp4",
            "segment_001.mp4",
            "segment_002.mp4",
        ]
        assert "Wrote 3 segments" in result.output

    def test_remux_failure_exit_code(
        self,
        runner: CliRunner,
        uniplay_config: UniplayConfig,
        fake_pipeline,
        tmp_path: Path,
    ) -> None:
        fake_pipeline.returncode = 1

        result = invoke(
            runner,
            uniplay_config,
            "remux",
            "https://x.example.com/a.mkv",
            "-o",
            str(tmp_path / "out.mp4"),
        )

        assert result.exit_code == ExitCode.EXECUTOR_ERROR
        assert not (tmp_path / "out.mp4").exists()


class TestHistoryCommands:
    """Tests for `uniplay history`."""

    def test_show_empty(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        result = invoke(runner, uniplay_config, "history", "show")

        assert result.exit_code == 0
        assert "No saved positions." in result.output

    def test_show_entries(
        self, runner: CliRunner, uniplay_config: UniplayConfig
    ) -> None:
        store = PlayerStateStore(config=uniplay_config.history)
        store.save_position("https://x.example.com/long.mkv", 321.0)
        store.save_position("https://x.example.com/short.mp4", 2.0)

        result = invoke(runner, uniplay_config, "history", "show")

        lines = result.output.splitlines()
        assert len(lines) == 2
        assert any("321.0s" in line and "long.mkv" in line for line in lines)
        assert any("short.mp4  (not resumable)" in line for line in lines)

    def test_show_json(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        store = PlayerStateStore(config=uniplay_config.history)
        store.save_position("https://x.example.com/a.mp4", 10.0)

        result = invoke(runner, uniplay_config, "history", "show", "--json")

        data = json.loads(result.output)
        assert data["https://x.example.com/a.mp4"]["position"] == 10.0

    def test_reset(self, runner: CliRunner, uniplay_config: UniplayConfig) -> None:
        store = PlayerStateStore(config=uniplay_config.history)
        store.save_position("https://x.example.com/a.mp4", 10.0)

        result = invoke(runner, uniplay_config, "history", "reset", "--yes")

        assert "Cleared 1 saved positions." in result.output
        reloaded = PlayerStateStore(config=uniplay_config.history)
        assert dict(reloaded.state.history) == {}

    def test_reset_declined(
        self, runner: CliRunner, uniplay_config: UniplayConfig
    ) -> None:
        store = PlayerStateStore(config=uniplay_config.history)
        store.save_position("https://x.example.com/a.mp4", 10.0)

        result = runner.invoke(
            main, ["history", "reset"], input="n\n", obj={"config": uniplay_config}
        )

        assert result.exit_code == 1
        reloaded = PlayerStateStore(config=uniplay_config.history)
        assert len(reloaded.state.history) == 1


class TestMainGroup:
    """Tests for global options."""

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[remux\n")

        result = runner.invoke(main, ["--config", str(path), "classify", "a.mp4"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
