"""Configuration management for uniplay.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (UNIPLAY_*)
3. Config file (~/.uniplay/config.toml)
4. Default values (lowest priority)
"""

from uniplay.config.env import EnvReader
from uniplay.config.loader import (
    ConfigParseError,
    clear_config_cache,
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
from uniplay.config.models import (
    HistoryConfig,
    LiveProfileConfig,
    LoggingConfig,
    RemuxConfig,
    RetryConfig,
    ToolPathsConfig,
    UniplayConfig,
)

__all__ = [
    # Models
    "HistoryConfig",
    "LiveProfileConfig",
    "LoggingConfig",
    "RemuxConfig",
    "RetryConfig",
    "ToolPathsConfig",
    "UniplayConfig",
    # Loader
    "ConfigParseError",
    "EnvReader",
    "clear_config_cache",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
]
