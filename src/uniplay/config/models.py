"""Configuration data models.

This module defines dataclasses for uniplay configuration options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_DATA_DIR = Path.home() / ".uniplay"


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    If ffmpeg is not specified it is looked up in PATH.
    """

    ffmpeg: Path | None = None


@dataclass
class RemuxConfig:
    """Configuration for the remux pipeline."""

    assumed_duration_seconds: float = 60.0
    """Duration used to estimate progress when the real one is unknown."""

    probe_bytes: int = 1_048_576
    """Size of the ranged prefix fetched for a probe."""

    segment_seconds: int = 4
    """Segment length for segmented remux output."""

    timeout_seconds: int = 1800
    """Executor invocation timeout. 0 disables the timeout."""

    fetch_timeout_seconds: float = 60.0
    """HTTP timeout for source fetches."""

    work_dir: Path | None = None
    """Parent directory for the executor's scratch files (None = system temp)."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.assumed_duration_seconds <= 0:
            raise ValueError("assumed_duration_seconds must be positive")
        if self.probe_bytes < 1:
            raise ValueError("probe_bytes must be at least 1")
        if self.segment_seconds < 1:
            raise ValueError("segment_seconds must be at least 1")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds must not be negative")
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")


@dataclass
class RetryConfig:
    """Retry budget applied by the adaptive engine."""

    max_attempts: int = 10
    base_delay_ms: int = 500
    backoff_factor: float = 1.5

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must not be negative")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "base_delay_ms": self.base_delay_ms,
            "backoff_factor": self.backoff_factor,
        }


@dataclass
class LiveProfileConfig:
    """Low-latency profile applied to the adaptive engine for live streams."""

    low_latency_mode: bool = True
    rebuffering_goal: float = 0.5
    buffering_goal: float = 2.0
    buffer_behind: float = 10.0
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        """Validate configuration."""
        for name in ("rebuffering_goal", "buffering_goal", "buffer_behind"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def to_engine_config(self) -> dict[str, Any]:
        """Build the nested configuration handed to AdaptiveEngine.configure().

        The same retry parameters are used for manifest and segment
        retrieval.
        """
        return {
            "streaming": {
                "low_latency_mode": self.low_latency_mode,
                "rebuffering_goal": self.rebuffering_goal,
                "buffering_goal": self.buffering_goal,
                "buffer_behind": self.buffer_behind,
                "retry_parameters": self.retry.to_dict(),
            },
            "manifest": {
                "retry_parameters": self.retry.to_dict(),
            },
        }


@dataclass
class HistoryConfig:
    """Configuration for persisted resume history."""

    storage_path: Path = field(default_factory=lambda: DEFAULT_DATA_DIR / "state.json")
    storage_key: str = "uniplay-player-state"
    max_age_days: float = 7.0
    min_resume_seconds: float = 5.0
    save_interval_seconds: float = 5.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
        if self.max_age_days <= 0:
            raise ValueError("max_age_days must be positive")
        if self.min_resume_seconds < 0:
            raise ValueError("min_resume_seconds must not be negative")
        if self.save_interval_seconds <= 0:
            raise ValueError("save_interval_seconds must be positive")

    @property
    def max_age_seconds(self) -> float:
        return self.max_age_days * 24 * 60 * 60


@dataclass
class UniplayConfig:
    """Top-level uniplay configuration."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    remux: RemuxConfig = field(default_factory=RemuxConfig)
    live_profile: LiveProfileConfig = field(default_factory=LiveProfileConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    autoplay: bool = False
