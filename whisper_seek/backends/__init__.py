"""Model contracts, registry and backends.

This module provides:
- AcousticModel and Tokenizer protocols consumed by the decoder
- ModelConfig dataclass for static model configuration
- ModelVariant enum for full-precision vs quantized weights
- WhisperModel / QuantizedWhisperModel backed by mlx-audio (optional)
"""

from .base import (
    AcousticModel,
    ModelConfig,
    ModelVariant,
    Tokenizer,
)
from .registry import MODEL_REGISTRY, ModelInfo, resolve_model

__all__ = [
    "AcousticModel",
    "MODEL_REGISTRY",
    "ModelConfig",
    "ModelInfo",
    "ModelVariant",
    "WhisperModel",
    "QuantizedWhisperModel",
    "Tokenizer",
    "load_acoustic_model",
    "resolve_model",
]

_LAZY = {"WhisperModel", "QuantizedWhisperModel", "load_acoustic_model"}


def __getattr__(name: str):
    """Lazy import the mlx-audio backend so plain decoding does not pull it in."""
    if name in _LAZY:
        from . import mlx_audio

        return getattr(mlx_audio, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
