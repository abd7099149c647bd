"""Decoding result types.

Contains dataclasses shared between the decoder, the timestamp parser,
the transcriber facade and the output formatters.
"""

from dataclasses import dataclass, field
from enum import Enum


class Task(str, Enum):
    """What the decoder is asked to produce."""

    TRANSCRIBE = "transcribe"
    TRANSLATE = "translate"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DecodingResult:
    """Outcome of one decode attempt over one audio window."""

    tokens: list[int]
    text: str
    avg_logprob: float
    no_speech_prob: float
    temperature: float
    compression_ratio: float


@dataclass(frozen=True)
class Segment:
    """A decoded audio window."""

    start: float  # seconds
    duration: float  # seconds
    dr: DecodingResult

    @property
    def end(self) -> float:
        return self.start + self.duration

    @property
    def text(self) -> str:
        return self.dr.text.strip()


@dataclass(frozen=True)
class TimedSpan:
    """Text between two timestamp tokens. ``end`` is None for a trailing open span."""

    start: float  # seconds
    end: float | None  # seconds
    text: str


@dataclass
class TranscriptionResult:
    """Complete transcription result."""

    text: str
    segments: list[Segment]
    audio_path: str
    model_id: str
    spans: list[TimedSpan] = field(default_factory=list)

    @property
    def duration(self) -> float:
        """Total duration based on last segment end time."""
        if not self.segments:
            return 0.0
        return self.segments[-1].end
