"""Capability contracts for acoustic models and tokenizers."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import mlx.core as mx


class ModelVariant(str, Enum):
    """Weight formats a Whisper checkpoint can be loaded in."""

    FULL = "full"
    QUANTIZED = "quantized"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ModelConfig:
    """Static configuration read once when a decode session starts."""

    vocab_size: int
    """Number of ids the final projection produces logits for."""

    max_target_positions: int
    """Length of the decoder's text context."""

    num_mel_bins: int
    """Mel channels the encoder expects."""

    suppressed_ids: frozenset[int] = field(default_factory=frozenset)
    """Ids the model must never emit."""


@runtime_checkable
class Tokenizer(Protocol):
    """Protocol for the vocabulary side of a Whisper checkpoint."""

    def token_to_id(self, token: str) -> int | None:
        """Id of a token given by its literal text, or None."""
        ...

    def decode(self, ids: Sequence[int], skip_special: bool = True) -> str:
        """Decode ids to text, dropping control tokens when skip_special is set."""
        ...


@runtime_checkable
class AcousticModel(Protocol):
    """Protocol every encoder/decoder variant satisfies.

    The decoder keeps an incremental key/value cache between calls to
    ``decode_step``; it is reset when ``is_first_step`` is true, and
    later steps only feed the newly appended token through the network.
    """

    @property
    def vocab_size(self) -> int:
        ...

    @property
    def max_target_positions(self) -> int:
        ...

    @property
    def num_mel_bins(self) -> int:
        ...

    @property
    def suppressed_ids(self) -> frozenset[int]:
        ...

    def encode(self, mel: "mx.array") -> "mx.array":
        """Run the audio encoder over a (1, n_mels, frames) mel window."""
        ...

    def decode_step(
        self,
        tokens: Sequence[int],
        features: "mx.array",
        is_first_step: bool,
    ) -> "mx.array":
        """Run the text decoder and return hidden states (1, positions, width)."""
        ...

    def project_to_logits(self, hidden: "mx.array") -> "mx.array":
        """Apply the final linear layer: (1, positions, width) -> (1, positions, vocab)."""
        ...
