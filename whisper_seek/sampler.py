"""Next-token selection from a logits vector."""

import mlx.core as mx
import numpy as np

from .errors import InvalidDistribution


def sample(logits: mx.array, temperature: float, rng: np.random.Generator) -> int:
    """
    Pick the next token id.

    Args:
        logits: 1-D logits over the vocabulary, suppression mask already applied
        temperature: 0 for greedy argmax, otherwise the softmax temperature
        rng: Session-owned generator; only advanced when temperature > 0

    Returns:
        The chosen token id

    Raises:
        InvalidDistribution: If the softmax weights are unusable for sampling
    """
    if temperature <= 0:
        # np.argmax returns the first maximum, so ties go to the lowest id
        return int(np.argmax(np.array(logits.astype(mx.float32))))

    probs = mx.softmax(logits.astype(mx.float32) / temperature, axis=-1)
    weights = np.array(probs, dtype=np.float64)
    return _weighted_index(weights, rng)


def _weighted_index(weights: np.ndarray, rng: np.random.Generator) -> int:
    """Draw one index with probability proportional to its weight."""
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise InvalidDistribution("sampling weights must be finite and non-negative")
    cumulative = np.cumsum(weights)
    total = cumulative[-1] if len(cumulative) else 0.0
    if total <= 0:
        raise InvalidDistribution("all sampling weights are zero")
    point = rng.random() * total
    index = int(np.searchsorted(cumulative, point, side="right"))
    # Guard against float rounding at the top of the range
    return min(index, len(weights) - 1)
