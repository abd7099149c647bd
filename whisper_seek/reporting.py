"""Sinks for the human-readable progress of a decode run."""

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

from .types import DecodingResult, Segment, TimedSpan

logger = logging.getLogger(__name__)


@runtime_checkable
class Reporter(Protocol):
    """Receives kept segments, timestamp spans and skipped windows as they happen."""

    def segment(self, segment: Segment) -> None:
        ...

    def span(self, span: TimedSpan) -> None:
        ...

    def skipped(self, seek: int, result: DecodingResult) -> None:
        ...


def _format_span(span: TimedSpan) -> str:
    if span.end is None:
        return f"  {span.start:.1f}s-...: {span.text}"
    return f"  {span.start:.1f}s-{span.end:.1f}s: {span.text}"


class NullReporter:
    """Discards everything."""

    def segment(self, segment: Segment) -> None:
        pass

    def span(self, span: TimedSpan) -> None:
        pass

    def skipped(self, seek: int, result: DecodingResult) -> None:
        pass


class LoggingReporter:
    """Writes progress lines to the ``whisper_seek.reporting`` logger."""

    def __init__(self, timestamps: bool = False, level: int = logging.INFO):
        self.timestamps = timestamps
        self.level = level

    def segment(self, segment: Segment) -> None:
        if self.timestamps:
            logger.log(self.level, "%.1fs -- %.1fs", segment.start, segment.end)
        else:
            logger.log(
                self.level, "%.1fs -- %.1fs: %s", segment.start, segment.end, segment.dr.text
            )

    def span(self, span: TimedSpan) -> None:
        logger.log(self.level, "%s", _format_span(span))

    def skipped(self, seek: int, result: DecodingResult) -> None:
        logger.debug("no speech detected, skipping %d %r", seek, result)


class ConsoleReporter:
    """Prints progress to a rich console."""

    def __init__(self, console: Console | None = None, timestamps: bool = False):
        self.console = console or Console(stderr=True)
        self.timestamps = timestamps

    def segment(self, segment: Segment) -> None:
        header = f"[cyan]{segment.start:.1f}s -- {segment.end:.1f}s[/cyan]"
        if self.timestamps:
            self.console.print(header)
        else:
            self.console.print(f"{header}: {escape(segment.dr.text)}", highlight=False)

    def span(self, span: TimedSpan) -> None:
        self.console.print(_format_span(span), markup=False, highlight=False)

    def skipped(self, seek: int, result: DecodingResult) -> None:
        self.console.print(
            f"[dim]no speech detected at frame {seek} "
            f"(p={result.no_speech_prob:.2f}, logprob={result.avg_logprob:.2f})[/dim]"
        )
