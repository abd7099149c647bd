"""Tests for progress reporters."""

import io
import logging

from rich.console import Console

from whisper_seek.reporting import ConsoleReporter, LoggingReporter, NullReporter, Reporter
from whisper_seek.types import DecodingResult, Segment, TimedSpan


def make_segment(text=" hello [world]"):
    dr = DecodingResult([41, 45, 47, 5, 40], text, -0.2, 0.05, 0.0, 1.1)
    return Segment(start=30.0, duration=30.0, dr=dr)


def test_reporters_satisfy_protocol():
    for reporter in (NullReporter(), LoggingReporter(), ConsoleReporter(Console(file=io.StringIO()))):
        assert isinstance(reporter, Reporter)


class TestLoggingReporter:
    """Tests for LoggingReporter."""

    def test_segment_with_text(self, caplog):
        with caplog.at_level(logging.INFO, logger="whisper_seek.reporting"):
            LoggingReporter().segment(make_segment())
        assert "30.0s -- 60.0s:  hello [world]" in caplog.text

    def test_segment_header_only_with_timestamps(self, caplog):
        with caplog.at_level(logging.INFO, logger="whisper_seek.reporting"):
            LoggingReporter(timestamps=True).segment(make_segment())
        assert "30.0s -- 60.0s" in caplog.text
        assert "hello" not in caplog.text

    def test_spans(self, caplog):
        with caplog.at_level(logging.INFO, logger="whisper_seek.reporting"):
            reporter = LoggingReporter(timestamps=True)
            reporter.span(TimedSpan(0.04, 1.2, " hi"))
            reporter.span(TimedSpan(1.2, None, " there"))
        assert "0.0s-1.2s:  hi" in caplog.text
        assert "1.2s-...:  there" in caplog.text

    def test_skip_is_debug(self, caplog):
        with caplog.at_level(logging.INFO, logger="whisper_seek.reporting"):
            LoggingReporter().skipped(3000, make_segment().dr)
        assert caplog.text == ""


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def make(self, timestamps=False):
        console = Console(file=io.StringIO(), record=True, width=120)
        return ConsoleReporter(console, timestamps=timestamps), console

    def test_segment_text_is_not_markup(self):
        reporter, console = self.make()
        reporter.segment(make_segment(" [bold]not bold[/bold]"))
        assert "[bold]not bold[/bold]" in console.export_text()

    def test_span_line(self):
        reporter, console = self.make(timestamps=True)
        reporter.span(TimedSpan(0.5, None, " [x]"))
        assert "0.5s-...:  [x]" in console.export_text()

    def test_skip_line(self):
        reporter, console = self.make()
        reporter.skipped(3000, make_segment().dr)
        assert "no speech detected at frame 3000" in console.export_text()
