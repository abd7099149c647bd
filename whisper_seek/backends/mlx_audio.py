"""mlx-audio acoustic model backend.

Wraps the Whisper ``Model`` shipped with mlx-audio behind the
``AcousticModel`` protocol so the decoding controller can drive the encoder
and decoder step by step. Two variants exist: full-precision weights and
quantized weights. The variant is chosen once in ``load_acoustic_model``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import mlx.core as mx
import mlx.nn as nn

from .base import ModelConfig, ModelVariant
from .registry import resolve_model

# Flag to track if mlx-audio is available
_mlx_audio_available: bool | None = None

DEFAULT_QUANTIZATION = {"group_size": 64, "bits": 4}

WEIGHT_FILES = ("weights.safetensors", "model.safetensors", "weights.npz")

# HuggingFace config keys for each ModelDimensions field, with large-v3 defaults
_HF_DIMENSIONS = {
    "n_mels": ("num_mel_bins", 128),
    "n_audio_ctx": ("max_source_positions", 1500),
    "n_audio_state": ("d_model", 1280),
    "n_audio_head": ("encoder_attention_heads", 20),
    "n_audio_layer": ("encoder_layers", 32),
    "n_vocab": ("vocab_size", 51866),
    "n_text_ctx": ("max_target_positions", 448),
    "n_text_state": ("d_model", 1280),
    "n_text_head": ("decoder_attention_heads", 20),
    "n_text_layer": ("decoder_layers", 32),
}


def _check_mlx_audio_available() -> bool:
    """Check if mlx-audio is installed and available."""
    global _mlx_audio_available
    if _mlx_audio_available is None:
        try:
            import mlx_audio.stt  # noqa: F401

            _mlx_audio_available = True
        except ImportError:
            _mlx_audio_available = False
    return _mlx_audio_available


def is_mlx_audio_available() -> bool:
    """Check if mlx-audio is installed and available.

    Returns:
        True if mlx-audio can be imported, False otherwise.
    """
    return _check_mlx_audio_available()


def _require_mlx_audio() -> None:
    if not _check_mlx_audio_available():
        raise RuntimeError(
            "mlx-audio is required for this backend but not installed. "
            "Install with: pip install 'whisper-seek[mlx-audio]'"
        )


def dimension_kwargs(config: dict[str, Any]) -> dict[str, int]:
    """Map a checkpoint's config.json to ModelDimensions keyword arguments.

    Native MLX conversions already use the ModelDimensions names; checkpoints
    converted from HuggingFace use the transformers names instead.
    """
    if all(key in config for key in _HF_DIMENSIONS):
        return {key: config[key] for key in _HF_DIMENSIONS}
    return {
        key: config.get(hf_key, default)
        for key, (hf_key, default) in _HF_DIMENSIONS.items()
    }


def find_weight_file(model_path: Path) -> Path:
    """Return the first known weight file in a checkpoint directory.

    Raises:
        FileNotFoundError: If none of WEIGHT_FILES exists.
    """
    for name in WEIGHT_FILES:
        candidate = model_path / name
        if candidate.exists():
            return candidate
    raise FileNotFoundError(
        f"No weight file found in {model_path}. "
        f"Tried: {', '.join(WEIGHT_FILES)}"
    )


def checkpoint_repo(name: str, quantized: bool = False) -> str:
    """Pick the repository or local path to load for a model name.

    Registry names and aliases select full or quantized weights from
    ``quantized``. Repository ids and paths are used as given, even when
    they appear in the registry.

    Raises:
        ValueError: If quantized weights are requested for a registry name
            that has none.
    """
    try:
        info = resolve_model(name)
    except ValueError:
        return name
    if name == info.name or name in info.aliases:
        return info.repo(quantized)
    return name


def _load_whisper_model(repo: str, dtype: mx.Dtype) -> Any:
    """Load an mlx-audio Whisper model from a local path or HuggingFace repository."""
    from huggingface_hub import snapshot_download
    from mlx.utils import tree_unflatten

    from mlx_audio.stt.models.whisper.whisper import Model, ModelDimensions

    model_path = Path(repo)
    if not model_path.exists():
        model_path = Path(snapshot_download(repo_id=repo))

    with open(model_path / "config.json") as f:
        config = json.load(f)

    weights = mx.load(str(find_weight_file(model_path)))
    model = Model(ModelDimensions(**dimension_kwargs(config)), dtype)

    quantization = config.get("quantization")
    if quantization is not None:
        class_predicate = (
            lambda p, m: isinstance(m, (nn.Linear, nn.Embedding))
            and f"{p}.scales" in weights
        )
        nn.quantize(model, **quantization, class_predicate=class_predicate)

    model.update(tree_unflatten(list(weights.items())))
    mx.eval(model.parameters())
    return model


class WhisperTokenizer:
    """Adapts the tiktoken-based Whisper tokenizer from mlx-audio."""

    def __init__(self, tokenizer: Any):
        self._tokenizer = tokenizer

    @property
    def non_speech_tokens(self) -> tuple[int, ...]:
        return tuple(self._tokenizer.non_speech_tokens)

    def token_to_id(self, token: str) -> int | None:
        token_id = self._tokenizer.special_tokens.get(token)
        if token_id is not None:
            return token_id
        try:
            return self._tokenizer.encoding.encode_single_token(token)
        except KeyError:
            return None

    def decode(self, ids: Sequence[int], skip_special: bool = True) -> str:
        ids = list(ids)
        if skip_special:
            # Every control and timestamp token sits at or above end-of-text
            ids = [t for t in ids if t < self._tokenizer.eot]
        return self._tokenizer.encoding.decode(ids)


class WhisperModel:
    """Full-precision Whisper model facade.

    Keeps the per-block key/value cache between ``decode_step`` calls.
    """

    variant = ModelVariant.FULL

    def __init__(self, model: Any, suppressed_ids: frozenset[int] = frozenset()):
        """
        Args:
            model: A loaded mlx-audio Whisper ``Model``
            suppressed_ids: Ids the decoder must never emit
        """
        self._model = model
        self._kv_cache: list | None = None
        dims = model.dims
        self.config = ModelConfig(
            vocab_size=dims.n_vocab,
            max_target_positions=dims.n_text_ctx,
            num_mel_bins=dims.n_mels,
            suppressed_ids=frozenset(suppressed_ids),
        )

    @property
    def vocab_size(self) -> int:
        return self.config.vocab_size

    @property
    def max_target_positions(self) -> int:
        return self.config.max_target_positions

    @property
    def num_mel_bins(self) -> int:
        return self.config.num_mel_bins

    @property
    def suppressed_ids(self) -> frozenset[int]:
        return self.config.suppressed_ids

    @property
    def n_audio_frames(self) -> int:
        # conv2 has stride 2, so the encoder consumes twice its context in frames
        return 2 * self._model.dims.n_audio_ctx

    @property
    def dtype(self) -> mx.Dtype:
        return self._model.dtype

    def encode(self, mel: mx.array) -> mx.array:
        """Encode a (1, n_mels, frames) window, zero padding or trimming to the encoder width."""
        if mel.ndim != 3 or mel.shape[1] != self.num_mel_bins:
            raise ValueError(
                f"expected mel of shape (1, {self.num_mel_bins}, frames), got {mel.shape}"
            )
        x = mel.transpose(0, 2, 1)  # MLX convolutions are channels-last
        frames = x.shape[1]
        target = self.n_audio_frames
        if frames > target:
            x = x[:, :target]
        elif frames < target:
            x = mx.pad(x, [(0, 0), (0, target - frames), (0, 0)])
        features = self._model.encoder(x.astype(self.dtype))
        mx.eval(features)
        return features

    def decode_step(
        self,
        tokens: Sequence[int],
        features: mx.array,
        is_first_step: bool,
    ) -> mx.array:
        decoder = self._model.decoder
        if is_first_step or self._kv_cache is None:
            self._kv_cache = [None] * len(decoder.blocks)
            x = mx.array([list(tokens)])
            offset = 0
        else:
            x = mx.array([[tokens[-1]]])
            offset = self._kv_cache[0][0][0].shape[1]

        h = decoder.token_embedding(x) + decoder.positional_embedding[offset:offset + x.shape[-1]]
        for e, block in enumerate(decoder.blocks):
            h, self._kv_cache[e], _ = block(
                h, features, mask=decoder._mask, kv_cache=self._kv_cache[e]
            )
        return decoder.ln(h)

    def project_to_logits(self, hidden: mx.array) -> mx.array:
        return self._model.decoder.token_embedding.as_linear(hidden)


class QuantizedWhisperModel(WhisperModel):
    """Whisper model with quantized linear and embedding layers.

    Checkpoints that ship full-precision weights are quantized on load.
    """

    variant = ModelVariant.QUANTIZED

    def __init__(
        self,
        model: Any,
        suppressed_ids: frozenset[int] = frozenset(),
        group_size: int = DEFAULT_QUANTIZATION["group_size"],
        bits: int = DEFAULT_QUANTIZATION["bits"],
    ):
        if not isinstance(model.decoder.token_embedding, nn.QuantizedEmbedding):
            nn.quantize(model, group_size=group_size, bits=bits)
            mx.eval(model.parameters())
        super().__init__(model, suppressed_ids)
        self.bits = bits
        self.group_size = group_size


def load_acoustic_model(
    name: str,
    quantized: bool = False,
    dtype: mx.Dtype = mx.float16,
) -> tuple[WhisperModel, WhisperTokenizer]:
    """Load a Whisper checkpoint and its tokenizer.

    Args:
        name: Registry name, alias, or any HuggingFace repository / local path
            holding MLX Whisper weights.
        quantized: Load the quantized variant.
        dtype: Activation dtype for the model.

    Returns:
        (model facade, tokenizer) pair.

    Raises:
        RuntimeError: If mlx-audio is not installed.
        ValueError: If quantized weights are requested for a registry model
            that has none.
        FileNotFoundError: If the checkpoint has no weight file.
    """
    _require_mlx_audio()
    from mlx_audio.stt.models.whisper.tokenizer import get_tokenizer

    whisper = _load_whisper_model(checkpoint_repo(name, quantized), dtype)
    tokenizer = WhisperTokenizer(
        get_tokenizer(
            whisper.is_multilingual,
            num_languages=whisper.num_languages,
        )
    )
    suppressed = frozenset(tokenizer.non_speech_tokens)

    model_cls = QuantizedWhisperModel if quantized else WhisperModel
    return model_cls(whisper, suppressed_ids=suppressed), tokenizer
