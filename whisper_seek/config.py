"""Decoding constants and configuration."""

from dataclasses import dataclass, field

from .types import Task

# Audio hyperparameters shared with the preprocessing layer
SAMPLE_RATE = 16000
N_FFT = 400
HOP_LENGTH = 160
CHUNK_LENGTH = 30
N_SAMPLES = CHUNK_LENGTH * SAMPLE_RATE
N_FRAMES = N_SAMPLES // HOP_LENGTH  # 3000 frames in a 30 second window

# Special token names
SOT_TOKEN = "<|startoftranscript|>"
TRANSCRIBE_TOKEN = "<|transcribe|>"
TRANSLATE_TOKEN = "<|translate|>"
NO_TIMESTAMPS_TOKEN = "<|notimestamps|>"
EOT_TOKEN = "<|endoftext|>"
NO_SPEECH_TOKENS = ("<|nocaptions|>", "<|nospeech|>")

# Quality heuristics
TEMPERATURES = (0.0, 0.2, 0.4, 0.6, 0.8, 1.0)
COMPRESSION_RATIO_THRESHOLD = 2.4
LOGPROB_THRESHOLD = -1.0
NO_SPEECH_THRESHOLD = 0.6

DEFAULT_SEED = 299792458


@dataclass(frozen=True)
class DecodingOptions:
    """Settings for one decode session."""

    temperatures: tuple[float, ...] = TEMPERATURES
    """Fallback ladder, tried in order."""

    compression_ratio_threshold: float = COMPRESSION_RATIO_THRESHOLD
    logprob_threshold: float = LOGPROB_THRESHOLD
    no_speech_threshold: float = NO_SPEECH_THRESHOLD

    window_frames: int = N_FRAMES
    """Mel frames handed to the model per window."""

    seed: int = DEFAULT_SEED
    task: Task = Task.TRANSCRIBE
    language: str | None = None
    """Language code ('fr') or token ('<|fr|>'); None leaves it out of the prompt."""

    timestamps: bool = False
    suppress_tokens: frozenset[int] = field(default_factory=frozenset)
    """Extra ids suppressed on top of the model's own list."""

    def __post_init__(self) -> None:
        if not self.temperatures:
            raise ValueError("temperatures must contain at least one value")
        if any(t < 0 for t in self.temperatures):
            raise ValueError(f"temperatures must be >= 0, got {list(self.temperatures)}")
        if self.window_frames < 1:
            raise ValueError(f"window_frames must be >= 1, got {self.window_frames}")
        # Accept any iterable from callers
        object.__setattr__(self, "temperatures", tuple(float(t) for t in self.temperatures))
        object.__setattr__(self, "suppress_tokens", frozenset(self.suppress_tokens))
