"""Special token resolution and the vocabulary suppression mask."""

from collections.abc import Iterable
from dataclasses import dataclass

import mlx.core as mx
import numpy as np

from .backends.base import Tokenizer
from .config import (
    EOT_TOKEN,
    NO_SPEECH_TOKENS,
    NO_TIMESTAMPS_TOKEN,
    SOT_TOKEN,
    TRANSCRIBE_TOKEN,
    TRANSLATE_TOKEN,
)
from .errors import MissingTokenError, NoSpeechTokenUnavailable
from .types import Task


def resolve(tokenizer: Tokenizer, token: str) -> int:
    """Look up the id of a special token.

    Raises:
        MissingTokenError: If the tokenizer does not know the token.
    """
    token_id = tokenizer.token_to_id(token)
    if token_id is None:
        raise MissingTokenError(token)
    return token_id


def resolve_no_speech(
    tokenizer: Tokenizer,
    candidates: tuple[str, ...] = NO_SPEECH_TOKENS,
) -> int:
    """Return the id of the first no-speech candidate the vocabulary has.

    Older checkpoints call it ``<|nocaptions|>``, newer ones ``<|nospeech|>``.

    Raises:
        NoSpeechTokenUnavailable: If no candidate resolves.
    """
    for candidate in candidates:
        token_id = tokenizer.token_to_id(candidate)
        if token_id is not None:
            return token_id
    raise NoSpeechTokenUnavailable(candidates)


def language_token(language: str) -> str:
    """Normalize 'fr' or '<|fr|>' to the token form."""
    if language.startswith("<|") and language.endswith("|>"):
        return language
    return f"<|{language.strip().lower()}|>"


@dataclass(frozen=True)
class SpecialTokens:
    """Control token ids for one decode session."""

    sot: int
    transcribe: int
    translate: int
    eot: int
    no_speech: int
    no_timestamps: int
    language: int | None = None

    @classmethod
    def from_tokenizer(
        cls,
        tokenizer: Tokenizer,
        language: str | None = None,
    ) -> "SpecialTokens":
        """Resolve every control token, failing on the first missing one."""
        return cls(
            sot=resolve(tokenizer, SOT_TOKEN),
            transcribe=resolve(tokenizer, TRANSCRIBE_TOKEN),
            translate=resolve(tokenizer, TRANSLATE_TOKEN),
            eot=resolve(tokenizer, EOT_TOKEN),
            no_speech=resolve_no_speech(tokenizer),
            no_timestamps=resolve(tokenizer, NO_TIMESTAMPS_TOKEN),
            language=resolve(tokenizer, language_token(language)) if language else None,
        )

    def task(self, task: Task | None) -> int:
        if task is Task.TRANSLATE:
            return self.translate
        return self.transcribe

    def is_timestamp(self, token: int) -> bool:
        # notimestamps is the last id before the timestamp range
        return token > self.no_timestamps


def build_suppression_mask(
    vocab_size: int,
    suppressed_ids: Iterable[int],
    no_timestamps: int,
    timestamps: bool,
) -> mx.array:
    """
    Build the additive mask applied to every step's logits.

    Args:
        vocab_size: Number of logits the model produces
        suppressed_ids: Ids that must never be sampled
        no_timestamps: Id of the no-timestamps token
        timestamps: When True the no-timestamps token is suppressed as well

    Returns:
        Array of shape [vocab_size], -inf at suppressed ids and 0 elsewhere
    """
    suppressed = set(suppressed_ids)
    mask_np = np.zeros(vocab_size, dtype=np.float32)
    for i in range(vocab_size):
        if i in suppressed or (timestamps and i == no_timestamps):
            mask_np[i] = -np.inf
    return mx.array(mask_np)
