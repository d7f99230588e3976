"""Tests for configuration dataclasses."""

import pytest

from uniplay.config.models import (
    HistoryConfig,
    LiveProfileConfig,
    LoggingConfig,
    RemuxConfig,
    RetryConfig,
    UniplayConfig,
)


class TestDefaults:
    """Defaults match the documented playback behaviour."""

    def test_live_profile(self) -> None:
        config = LiveProfileConfig()
        engine = config.to_engine_config()

        assert engine["streaming"]["low_latency_mode"] is True
        assert engine["streaming"]["rebuffering_goal"] == 0.5
        assert engine["streaming"]["buffering_goal"] == 2.0
        assert engine["streaming"]["buffer_behind"] == 10.0
        assert engine["manifest"]["retry_parameters"] == {
            "max_attempts": 10,
            "base_delay_ms": 500,
            "backoff_factor": 1.5,
        }

    def test_history(self) -> None:
        config = HistoryConfig()
        assert config.storage_key == "uniplay-player-state"
        assert config.max_age_seconds == 7 * 24 * 60 * 60
        assert config.min_resume_seconds == 5.0
        assert config.save_interval_seconds == 5.0

    def test_top_level(self) -> None:
        config = UniplayConfig()
        assert config.autoplay is False
        assert config.remux.assumed_duration_seconds == 60.0
        assert config.remux.probe_bytes == 1_048_576


class TestValidation:
    """__post_init__ rejects impossible values."""

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: LoggingConfig(level="verbose"),
            lambda: LoggingConfig(format="xml"),
            lambda: RemuxConfig(assumed_duration_seconds=0),
            lambda: RemuxConfig(probe_bytes=0),
            lambda: RemuxConfig(segment_seconds=0),
            lambda: RemuxConfig(timeout_seconds=-1),
            lambda: RetryConfig(max_attempts=0),
            lambda: RetryConfig(backoff_factor=0.5),
            lambda: HistoryConfig(storage_key=""),
            lambda: HistoryConfig(max_age_days=0),
            lambda: HistoryConfig(save_interval_seconds=0),
        ],
    )
    def test_rejected(self, factory) -> None:
        with pytest.raises(ValueError):
            factory()

    def test_level_is_case_insensitive(self) -> None:
        assert LoggingConfig(level="DEBUG").level == "DEBUG"
