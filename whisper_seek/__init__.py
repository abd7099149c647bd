"""Whisper decoding controller: greedy decoding with temperature fallback on MLX."""

__version__ = "0.1.0"

from .config import DecodingOptions
from .decoder import Decoder
from .errors import (
    AudioLoadError,
    DecodeAttemptError,
    InvalidDistribution,
    MissingTokenError,
    ModelForwardError,
    NoSpeechTokenUnavailable,
    SampleRateMismatch,
    WhisperSeekError,
)
from .timestamps import parse_timestamps
from .transcriber import Transcriber
from .types import DecodingResult, Segment, Task, TimedSpan, TranscriptionResult

__all__ = [
    "AudioLoadError",
    "DecodeAttemptError",
    "Decoder",
    "DecodingOptions",
    "DecodingResult",
    "InvalidDistribution",
    "MissingTokenError",
    "ModelForwardError",
    "NoSpeechTokenUnavailable",
    "SampleRateMismatch",
    "Segment",
    "Task",
    "TimedSpan",
    "Transcriber",
    "TranscriptionResult",
    "WhisperSeekError",
    "__version__",
]
