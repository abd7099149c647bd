"""Transcription facade tying the model backend to the decoding controller."""

from collections.abc import Callable
from pathlib import Path

import mlx.core as mx

from .audio import load_mel
from .backends.base import AcousticModel, Tokenizer
from .backends.registry import DEFAULT_MODEL
from .config import DecodingOptions
from .decoder import Decoder
from .reporting import Reporter
from .timestamps import parse_timestamps
from .types import Segment, TimedSpan, TranscriptionResult


class Transcriber:
    """
    Audio transcriber using Whisper checkpoints.

    Loads the model once and reuses it for multiple transcriptions. Each
    call builds a fresh ``Decoder`` so every file starts from the same seed.
    """

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        quantized: bool = False,
        options: DecodingOptions | None = None,
        reporter: Reporter | None = None,
        loader: Callable[[str, bool], tuple[AcousticModel, Tokenizer]] | None = None,
    ):
        """
        Initialize the transcriber.

        Args:
            model_id: Registry name, alias or HuggingFace repository
            quantized: Use quantized weights
            options: Decoding settings
            reporter: Progress sink handed to each decoder
            loader: Returns (model, tokenizer); defaults to the mlx-audio backend
        """
        self.model_id = model_id
        self.quantized = quantized
        self.options = options or DecodingOptions()
        self.reporter = reporter
        self._loader = loader
        self._model: AcousticModel | None = None
        self._tokenizer: Tokenizer | None = None

    def _load_model(self) -> tuple[AcousticModel, Tokenizer]:
        """Lazy load the model on first use."""
        if self._model is None or self._tokenizer is None:
            loader = self._loader
            if loader is None:
                from .backends.mlx_audio import load_acoustic_model

                loader = load_acoustic_model
            self._model, self._tokenizer = loader(self.model_id, self.quantized)
        return self._model, self._tokenizer

    def _decoder(self) -> Decoder:
        model, tokenizer = self._load_model()
        return Decoder(model, tokenizer, self.options, self.reporter)

    def transcribe_mel(self, mel: mx.array) -> list[Segment]:
        """Decode a (1, n_mels, frames) spectrogram."""
        return self._decoder().run(mel)

    def _spans(self, decoder: Decoder, segments: list[Segment]) -> list[TimedSpan]:
        """Flatten segments into non-empty spans with absolute times."""
        if not self.options.timestamps:
            return [TimedSpan(seg.start, seg.end, seg.text) for seg in segments if seg.text]

        spans = []
        for seg in segments:
            for span in parse_timestamps(seg.dr.tokens, decoder.special, decoder.tokenizer):
                text = span.text.strip()
                if not text:
                    continue
                end = seg.end if span.end is None else seg.start + span.end
                spans.append(TimedSpan(seg.start + span.start, end, text))
        return spans

    def transcribe(self, audio_path: Path | str) -> TranscriptionResult:
        """
        Transcribe an audio file.

        Args:
            audio_path: Path to audio file

        Returns:
            TranscriptionResult with text, kept segments and timed spans
        """
        decoder = self._decoder()
        mel = load_mel(audio_path, decoder.model.num_mel_bins)
        segments = decoder.run(mel)

        return TranscriptionResult(
            text=" ".join(seg.text for seg in segments if seg.text),
            segments=segments,
            audio_path=str(audio_path),
            model_id=self.model_id,
            spans=self._spans(decoder, segments),
        )
