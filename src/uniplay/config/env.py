"""Environment variable access for configuration.

EnvReader parses UNIPLAY_* variables with type conversion. It accepts an
explicit mapping so tests never have to touch os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENV_PREFIX = "UNIPLAY_"

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Typed reader over an environment mapping.

    Unparseable values are logged and replaced by the default rather than
    raising, so a stray variable never prevents startup.

    Example:
        reader = EnvReader(env={"UNIPLAY_REMUX_PROBE_BYTES": "65536"})
        reader.get_int("UNIPLAY_REMUX_PROBE_BYTES", 1_048_576)  # 65536
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _convert(
        self, var: str, default: T | None, convert: Callable[[str], T], label: str
    ) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", label, var, raw)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        value = self._env.get(var)
        return default if value is None else value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, default, int, "integer")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, default, float, "float")

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Read a boolean; "true", "1", "yes" and "on" are true."""
        value = self._env.get(var)
        if value is None:
            return default
        return value.strip().lower() in _TRUE_VALUES

    def get_path(
        self, var: str, must_exist: bool = False, default: Path | None = None
    ) -> Path | None:
        """Read a path with tilde expansion.

        Args:
            var: Environment variable name.
            must_exist: If True, a non-existent path is logged and ignored.
            default: Returned when unset or rejected.
        """
        value = self._env.get(var)
        if not value:
            return default
        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning(
                "Environment variable %s points to non-existent path: %s", var, value
            )
            return default
        return path
