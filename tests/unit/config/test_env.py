"""Tests for EnvReader."""

from pathlib import Path

from uniplay.config.env import EnvReader


class TestEnvReader:
    """Tests for typed environment access."""

    def test_missing_returns_default(self) -> None:
        reader = EnvReader(env={})
        assert reader.get_str("UNIPLAY_X") is None
        assert reader.get_int("UNIPLAY_X", 7) == 7
        assert reader.get_bool("UNIPLAY_X", True) is True

    def test_int_and_float(self) -> None:
        reader = EnvReader(
            env={"UNIPLAY_REMUX_PROBE_BYTES": "65536", "UNIPLAY_D": "12.5"}
        )
        assert reader.get_int("UNIPLAY_REMUX_PROBE_BYTES") == 65536
        assert reader.get_float("UNIPLAY_D") == 12.5

    def test_invalid_number_falls_back(self, caplog) -> None:
        reader = EnvReader(env={"UNIPLAY_REMUX_TIMEOUT": "soon"})

        assert reader.get_int("UNIPLAY_REMUX_TIMEOUT", 30) == 30
        assert "Invalid integer value for UNIPLAY_REMUX_TIMEOUT" in caplog.text

    def test_bool_values(self) -> None:
        reader = EnvReader(
            env={"A": "yes", "B": "ON", "C": "1", "D": "false", "E": "maybe"}
        )
        assert [reader.get_bool(k) for k in "ABCDE"] == [True, True, True, False, False]

    def test_path_expands_tilde(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        reader = EnvReader(env={"UNIPLAY_WORK_DIR": "~/scratch"})

        assert reader.get_path("UNIPLAY_WORK_DIR") == tmp_path / "scratch"

    def test_path_must_exist(self, tmp_path: Path, caplog) -> None:
        reader = EnvReader(
            env={
                "UNIPLAY_FFMPEG_PATH": str(tmp_path / "missing"),
                "UNIPLAY_WORK_DIR": str(tmp_path),
            }
        )

        assert reader.get_path("UNIPLAY_FFMPEG_PATH", must_exist=True) is None
        assert reader.get_path("UNIPLAY_WORK_DIR", must_exist=True) == tmp_path
        assert "non-existent path" in caplog.text

    def test_empty_path_is_unset(self) -> None:
        assert EnvReader(env={"UNIPLAY_LOG_FILE": ""}).get_path("UNIPLAY_LOG_FILE") is None
