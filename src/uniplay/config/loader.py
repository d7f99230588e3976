"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Arguments passed to get_config() (CLI flags)
2. Environment variables (UNIPLAY_*)
3. Config file (~/.uniplay/config.toml)
4. Default values

Environment variables:
- UNIPLAY_CONFIG_PATH: Path to config file (overrides default location)
- UNIPLAY_DATA_DIR: Path to data directory (overrides ~/.uniplay/)
- UNIPLAY_FFMPEG_PATH: Path to ffmpeg executable
- UNIPLAY_LOG_LEVEL / UNIPLAY_LOG_FORMAT / UNIPLAY_LOG_FILE: Logging overrides
- UNIPLAY_REMUX_ASSUMED_DURATION: Progress estimation fallback in seconds
- UNIPLAY_REMUX_PROBE_BYTES: Ranged prefix size for probes
- UNIPLAY_REMUX_TIMEOUT: Executor timeout in seconds
- UNIPLAY_WORK_DIR: Parent directory for executor scratch files
- UNIPLAY_HISTORY_PATH / UNIPLAY_HISTORY_KEY: Resume history storage
- UNIPLAY_AUTOPLAY: Start playback automatically once ready
"""

from __future__ import annotations

import dataclasses
import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any, TypeVar

from uniplay.config.env import EnvReader
from uniplay.config.models import (
    DEFAULT_DATA_DIR,
    HistoryConfig,
    LiveProfileConfig,
    LoggingConfig,
    RemuxConfig,
    RetryConfig,
    ToolPathsConfig,
    UniplayConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONFIG_FILE = DEFAULT_DATA_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()

_PATH_FIELDS = frozenset({"file", "ffmpeg", "work_dir", "storage_path"})


class ConfigParseError(ValueError):
    """Raised when a config file cannot be parsed in strict mode."""


def get_default_config_path() -> Path:
    """Get the config file path, honouring UNIPLAY_CONFIG_PATH."""
    env_path = os.environ.get("UNIPLAY_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the uniplay data directory, honouring UNIPLAY_DATA_DIR."""
    env_path = os.environ.get("UNIPLAY_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_DATA_DIR


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from a TOML file.

    Results are cached with mtime-based invalidation.

    Args:
        path: Path to config file. If None, uses the default location.
        strict: If True, raise ConfigParseError on parse failures.
                If False (default), log a warning and return an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        ConfigParseError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        return {}

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        try:
            with path.open("rb") as fh:
                result = tomllib.load(fh)
        except (tomllib.TOMLDecodeError, OSError) as e:
            if strict:
                raise ConfigParseError(f"Cannot parse config file {path}: {e}") from e
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
            result = {}

        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def _build_section(cls: type[T], data: Any, section: str, **overrides: Any) -> T:
    """Instantiate a config dataclass from a TOML table plus overrides.

    Unknown keys are logged and dropped. None overrides are ignored.
    """
    known = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    values: dict[str, Any] = {}
    if isinstance(data, dict):
        for key, value in data.items():
            if key not in known:
                logger.warning("Unknown config key [%s] %s ignored", section, key)
                continue
            if key in _PATH_FIELDS and value is not None:
                value = Path(value).expanduser()
            values[key] = value
    values.update({k: v for k, v in overrides.items() if v is not None})
    return cls(**values)


def _data_dir_state_path(reader: EnvReader) -> Path | None:
    """History file inside UNIPLAY_DATA_DIR, when that variable is set."""
    data_dir = reader.get_path("UNIPLAY_DATA_DIR")
    return data_dir / "state.json" if data_dir is not None else None


def get_config(
    config_path: Path | None = None,
    *,
    ffmpeg_path: Path | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    log_file: Path | None = None,
    env_reader: EnvReader | None = None,
    strict: bool = False,
) -> UniplayConfig:
    """Get uniplay configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides UNIPLAY_CONFIG_PATH).
        ffmpeg_path: CLI override for the ffmpeg path.
        log_level: CLI override for the log level.
        log_format: CLI override for the log format.
        log_file: CLI override for the log file.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigParseError on parse failures.

    Returns:
        UniplayConfig with merged configuration.

    Raises:
        ValueError: If a merged value fails validation.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    def pick(cli_value: T | None, env_value: T | None) -> T | None:
        return cli_value if cli_value is not None else env_value

    logging_config = _build_section(
        LoggingConfig,
        file_config.get("logging"),
        "logging",
        level=pick(log_level, reader.get_str("UNIPLAY_LOG_LEVEL")),
        format=pick(log_format, reader.get_str("UNIPLAY_LOG_FORMAT")),
        file=pick(log_file, reader.get_path("UNIPLAY_LOG_FILE")),
    )
    tools = _build_section(
        ToolPathsConfig,
        file_config.get("tools"),
        "tools",
        ffmpeg=pick(ffmpeg_path, reader.get_path("UNIPLAY_FFMPEG_PATH", True)),
    )
    remux = _build_section(
        RemuxConfig,
        file_config.get("remux"),
        "remux",
        assumed_duration_seconds=reader.get_float("UNIPLAY_REMUX_ASSUMED_DURATION"),
        probe_bytes=reader.get_int("UNIPLAY_REMUX_PROBE_BYTES"),
        timeout_seconds=reader.get_int("UNIPLAY_REMUX_TIMEOUT"),
        work_dir=reader.get_path("UNIPLAY_WORK_DIR", True),
    )

    adaptive = dict(file_config.get("adaptive") or {})
    retry = _build_section(RetryConfig, adaptive.pop("retry", None), "adaptive.retry")
    live_profile = _build_section(
        LiveProfileConfig, adaptive, "adaptive", retry=retry
    )

    history = _build_section(
        HistoryConfig,
        file_config.get("history"),
        "history",
        storage_path=reader.get_path("UNIPLAY_HISTORY_PATH")
        or _data_dir_state_path(reader),
        storage_key=reader.get_str("UNIPLAY_HISTORY_KEY"),
    )

    player = file_config.get("player") or {}
    autoplay = reader.get_bool("UNIPLAY_AUTOPLAY", bool(player.get("autoplay", False)))

    return UniplayConfig(
        logging=logging_config,
        tools=tools,
        remux=remux,
        live_profile=live_profile,
        history=history,
        autoplay=bool(autoplay),
    )
