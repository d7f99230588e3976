"""Tests for remux progress parsing and tracking."""

import pytest

from uniplay.remux.interface import LogEvent, ProgressEvent
from uniplay.remux.progress import (
    ProgressTracker,
    estimate_progress,
    parse_log_duration,
    parse_log_time,
)

STATUS_LINE = (
    "frame= 2880 fps=0.0 q=-1.0 size=   51200kB time=00:01:30.50 "
    "bitrate=4634.1kbits/s speed= 181x"
)


class TestParseLogTime:
    """Tests for parse_log_time()."""

    def test_parses_status_line(self) -> None:
        assert parse_log_time(STATUS_LINE) == pytest.approx(90.5)

    def test_hours(self) -> None:
        assert parse_log_time("time=01:00:02.25") == pytest.approx(3602.25)

    def test_whole_seconds(self) -> None:
        assert parse_log_time("size=N/A time=00:00:07 bitrate=N/A") == 7.0

    def test_no_time_field(self) -> None:
        assert parse_log_time("Stream mapping:") is None

    def test_unavailable_time(self) -> None:
        assert parse_log_time("time=N/A bitrate=N/A") is None


class TestParseLogDuration:
    """Tests for parse_log_duration()."""

    def test_parses_duration(self) -> None:
        line = "  Duration: 00:10:34.53, start: 0.000000, bitrate: 3394 kb/s"
        assert parse_log_duration(line) == pytest.approx(634.53)

    def test_not_available(self) -> None:
        assert parse_log_duration("  Duration: N/A, start: 0.0") is None


class TestEstimateProgress:
    """Tests for estimate_progress()."""

    def test_ratio(self) -> None:
        assert estimate_progress(30, 60) == 0.5

    def test_clamped_to_one(self) -> None:
        assert estimate_progress(120, 60) == 1.0

    def test_zero_duration(self) -> None:
        assert estimate_progress(10, 0) == 0.0


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_estimates_against_assumed_duration(self) -> None:
        """Without a known duration, elapsed time is divided by the fallback."""
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_log(LogEvent("size=1kB time=00:00:15.00 bitrate=1kbits/s"))

        assert values == [0.25]
        assert tracker.is_estimate
        assert tracker.elapsed_seconds == 15.0

    def test_uses_duration_from_log(self) -> None:
        """A Duration line replaces the fallback duration."""
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_log(LogEvent("  Duration: 00:02:00.00, start: 0.0"))
        tracker.on_log(LogEvent("time=00:01:00.00"))

        assert tracker.duration == 120.0
        assert values == [0.5]

    def test_estimate_never_exceeds_one(self) -> None:
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_log(LogEvent("time=00:05:00.00"))

        assert values == [1.0]

    def test_native_progress_wins(self) -> None:
        """Once a native ratio arrives, log estimates stop moving progress."""
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_progress(ProgressEvent(progress=0.4, time=12.0))
        tracker.on_log(LogEvent("time=00:00:50.00"))

        assert values == [0.4]
        assert not tracker.is_estimate
        assert tracker.elapsed_seconds == 50.0

    def test_native_time_without_ratio_is_estimated(self) -> None:
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_progress(ProgressEvent(progress=None, time=30.0))

        assert values == [0.5]

    def test_callback_only_on_change(self) -> None:
        values: list[float] = []
        tracker = ProgressTracker(60.0, values.append)

        tracker.on_log(LogEvent("time=00:00:30.00"))
        tracker.on_log(LogEvent("time=00:00:30.00"))
        tracker.complete()
        tracker.complete()

        assert values == [0.5, 1.0]
