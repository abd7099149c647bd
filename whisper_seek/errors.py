"""Exception hierarchy for decode sessions."""


class WhisperSeekError(RuntimeError):
    """Base class for decoding failures."""


class MissingTokenError(WhisperSeekError):
    """The tokenizer has no id for a required special token."""

    def __init__(self, token: str, message: str | None = None):
        super().__init__(message or f"no token-id for {token}")
        self.token = token


class NoSpeechTokenUnavailable(MissingTokenError):
    """None of the no-speech token candidates exist in the vocabulary."""

    def __init__(self, candidates: tuple[str, ...]):
        super().__init__(
            candidates[0] if candidates else "",
            f"unable to find any non-speech token among {list(candidates)}",
        )
        self.candidates = candidates


class DecodeAttemptError(WhisperSeekError):
    """A single decode attempt failed; the next temperature may still succeed."""


class ModelForwardError(DecodeAttemptError):
    """Encoder, decoder or projection raised."""


class InvalidDistribution(DecodeAttemptError):
    """Sampling weights are negative, non-finite or all zero."""


class SampleRateMismatch(WhisperSeekError):
    """Input audio does not use the sample rate the model expects."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"input must have a {expected} Hz sampling rate, got {actual} Hz")
        self.expected = expected
        self.actual = actual


class AudioLoadError(WhisperSeekError):
    """ffmpeg could not decode an input file."""

    def __init__(self, path, detail: str = ""):
        message = f"failed to load audio {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.path = path


__all__ = [
    "AudioLoadError",
    "DecodeAttemptError",
    "InvalidDistribution",
    "MissingTokenError",
    "ModelForwardError",
    "NoSpeechTokenUnavailable",
    "SampleRateMismatch",
    "WhisperSeekError",
]
