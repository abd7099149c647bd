"""Curated registry of Whisper checkpoints.

Maps short model names to HuggingFace repositories for the full-precision
and (where one is published) quantized weights. Used by the CLI for model
listing and by the mlx-audio loader for repository selection.
"""

from dataclasses import dataclass, field

from .base import ModelVariant


@dataclass
class ModelInfo:
    """Metadata for a curated Whisper checkpoint."""

    name: str
    """Short name used on the command line (e.g., 'tiny-en')."""

    model_id: str
    """HuggingFace repository with full-precision weights."""

    multilingual: bool
    """Whether the vocabulary carries language tokens."""

    quantized_model_id: str | None = None
    """Repository with quantized weights, if one is published."""

    description: str = ""
    aliases: list[str] = field(default_factory=list)

    @property
    def variants(self) -> list[ModelVariant]:
        if self.quantized_model_id is None:
            return [ModelVariant.FULL]
        return [ModelVariant.FULL, ModelVariant.QUANTIZED]

    def repo(self, quantized: bool = False) -> str:
        """Repository to download for the requested weight format.

        Raises:
            ValueError: If quantized weights are requested but not published.
        """
        if not quantized:
            return self.model_id
        if self.quantized_model_id is None:
            raise ValueError(f"no quantized support for {self.name}")
        return self.quantized_model_id


def _entry(
    name: str,
    model_id: str,
    multilingual: bool,
    description: str,
    quantized_model_id: str | None = None,
    aliases: list[str] | None = None,
) -> tuple[str, ModelInfo]:
    return name, ModelInfo(
        name=name,
        model_id=model_id,
        multilingual=multilingual,
        quantized_model_id=quantized_model_id,
        description=description,
        aliases=aliases or [],
    )


MODEL_REGISTRY: dict[str, ModelInfo] = dict([
    _entry("tiny", "mlx-community/whisper-tiny-mlx", True,
           "Whisper tiny - 39M parameters, multilingual",
           quantized_model_id="mlx-community/whisper-tiny-mlx-q4"),
    _entry("tiny-en", "mlx-community/whisper-tiny.en-mlx", False,
           "Whisper tiny - English only",
           quantized_model_id="mlx-community/whisper-tiny.en-mlx-q4",
           aliases=["tiny.en"]),
    _entry("base", "mlx-community/whisper-base-mlx", True,
           "Whisper base - 74M parameters, multilingual"),
    _entry("base-en", "mlx-community/whisper-base.en-mlx", False,
           "Whisper base - English only", aliases=["base.en"]),
    _entry("small", "mlx-community/whisper-small-mlx", True,
           "Whisper small - 244M parameters, multilingual"),
    _entry("small-en", "mlx-community/whisper-small.en-mlx", False,
           "Whisper small - English only", aliases=["small.en"]),
    _entry("medium", "mlx-community/whisper-medium-mlx", True,
           "Whisper medium - 769M parameters, multilingual"),
    _entry("medium-en", "mlx-community/whisper-medium.en-mlx", False,
           "Whisper medium - English only", aliases=["medium.en"]),
    _entry("large", "mlx-community/whisper-large-mlx", True,
           "Whisper large (v1)"),
    _entry("large-v2", "mlx-community/whisper-large-v2-mlx", True,
           "Whisper large v2"),
    _entry("large-v3", "mlx-community/whisper-large-v3-mlx", True,
           "Whisper large v3 - 128 mel bins", aliases=["large-v3-mlx"]),
    _entry("distil-medium-en", "mlx-community/distil-whisper-medium.en", False,
           "Distil-Whisper medium - English only"),
    _entry("distil-large-v2", "mlx-community/distil-whisper-large-v2", True,
           "Distil-Whisper large v2"),
    _entry("distil-large-v3", "mlx-community/distil-whisper-large-v3", True,
           "Distil-Whisper large v3"),
])

DEFAULT_MODEL = "tiny-en"


def get_model_info(name: str) -> ModelInfo | None:
    """Get model info by exact short name.

    Args:
        name: Registry key such as 'tiny' or 'large-v3'.

    Returns:
        ModelInfo if found, None otherwise.
    """
    return MODEL_REGISTRY.get(name)


def list_models(multilingual: bool | None = None) -> list[ModelInfo]:
    """List all curated models, optionally filtered by vocabulary type.

    Args:
        multilingual: Filter to multilingual (True) or English-only (False)
            models, or None for all.

    Returns:
        List of ModelInfo for matching models.
    """
    models = list(MODEL_REGISTRY.values())
    if multilingual is not None:
        models = [m for m in models if m.multilingual == multilingual]
    return models


def resolve_model(name: str) -> ModelInfo:
    """Resolve a short name, alias or repository id to ModelInfo.

    Args:
        name: Short name, alias, or one of the registered repository ids.

    Returns:
        ModelInfo for the resolved model.

    Raises:
        ValueError: If the model is not found in the registry.
    """
    if name in MODEL_REGISTRY:
        return MODEL_REGISTRY[name]

    for info in MODEL_REGISTRY.values():
        if name in info.aliases or name in (info.model_id, info.quantized_model_id):
            return info

    supported = sorted(MODEL_REGISTRY.keys())
    aliases = sorted(
        alias for info in MODEL_REGISTRY.values() for alias in info.aliases
    )

    raise ValueError(
        f"Unknown model: '{name}'. "
        f"Supported models: {supported}. "
        f"Aliases: {aliases}."
    )
