"""Autoregressive decoding controller.

``Decoder`` owns one decode session: the special token ids, the suppression
mask and the seeded random generator. It decodes a full mel spectrogram
window by window (``run``), retrying each window at increasing temperatures
when the result looks degenerate (``decode_with_fallback``), and decodes a
single window token by token (``decode``).
"""

import logging
import math
import time
import zlib

import mlx.core as mx
import mlx.nn as nn
import numpy as np

from .backends.base import AcousticModel, Tokenizer
from .config import HOP_LENGTH, SAMPLE_RATE, DecodingOptions
from .errors import DecodeAttemptError, ModelForwardError
from .reporting import LoggingReporter, Reporter
from .sampler import sample
from .timestamps import parse_timestamps
from .types import DecodingResult, Segment
from .vocabulary import SpecialTokens, build_suppression_mask

logger = logging.getLogger(__name__)


def compression_ratio(text: str) -> float:
    """Ratio of raw to zlib-compressed UTF-8 size; high values mean repetitive text."""
    text_bytes = text.encode("utf-8")
    return len(text_bytes) / len(zlib.compress(text_bytes))


def frames_to_seconds(frames: int) -> float:
    return frames * HOP_LENGTH / SAMPLE_RATE


class Decoder:
    """
    Decode session over one acoustic model.

    Not safe for concurrent use: the model's incremental cache and the
    random generator are mutated on every step.
    """

    def __init__(
        self,
        model: AcousticModel,
        tokenizer: Tokenizer,
        options: DecodingOptions | None = None,
        reporter: Reporter | None = None,
    ):
        """
        Resolve special tokens and build the suppression mask.

        Args:
            model: Acoustic model facade
            tokenizer: Vocabulary matching the model
            options: Decoding settings, defaults when omitted
            reporter: Sink for progress output, log lines when omitted

        Raises:
            MissingTokenError: If a required special token is not in the vocabulary
            NoSpeechTokenUnavailable: If no no-speech token candidate exists
        """
        self.model = model
        self.tokenizer = tokenizer
        self.options = options or DecodingOptions()
        self.reporter = reporter or LoggingReporter(timestamps=self.options.timestamps)
        self.rng = np.random.default_rng(self.options.seed)

        self.special = SpecialTokens.from_tokenizer(tokenizer, self.options.language)
        self.suppress_tokens = build_suppression_mask(
            model.vocab_size,
            set(model.suppressed_ids) | self.options.suppress_tokens,
            self.special.no_timestamps,
            self.options.timestamps,
        )

    def initial_tokens(self) -> list[int]:
        """Prompt every window starts from."""
        tokens = [self.special.sot]
        if self.special.language is not None:
            tokens.append(self.special.language)
        tokens.append(self.special.task(self.options.task))
        if not self.options.timestamps:
            tokens.append(self.special.no_timestamps)
        return tokens

    def _forward(self, tokens: list[int], features: mx.array, flush: bool) -> mx.array:
        try:
            return self.model.decode_step(tokens, features, flush)
        except DecodeAttemptError:
            raise
        except Exception as e:
            raise ModelForwardError(f"decoder forward failed: {e}") from e

    def _logits(self, hidden: mx.array) -> mx.array:
        """Project (1, 1, width) hidden states to a 1-D float32 logits vector."""
        try:
            return self.model.project_to_logits(hidden)[0, 0].astype(mx.float32)
        except Exception as e:
            raise ModelForwardError(f"final projection failed: {e}") from e

    def _no_speech_prob(self, hidden: mx.array) -> float:
        logits = self._logits(hidden[:1, :1])
        return float(mx.softmax(logits, axis=-1)[self.special.no_speech])

    def decode(self, mel: mx.array, temperature: float) -> DecodingResult:
        """
        Decode one mel window at a fixed temperature.

        Args:
            mel: Window of shape (1, n_mels, frames)
            temperature: 0 for greedy decoding

        Returns:
            DecodingResult for this attempt

        Raises:
            ModelForwardError: If the model fails at any step
            InvalidDistribution: If sampling hits degenerate logits
        """
        try:
            audio_features = self.model.encode(mel)
        except Exception as e:
            raise ModelForwardError(f"encoder forward failed: {e}") from e
        logger.debug("audio features: %s", audio_features.shape)

        max_positions = self.model.max_target_positions
        sample_len = max_positions // 2
        sum_logprob = 0.0
        no_speech_prob = math.nan
        tokens = self.initial_tokens()

        for i in range(sample_len):
            ys = self._forward(tokens, audio_features, i == 0)

            # The no-speech probability is read from the first position of the first step
            if i == 0:
                no_speech_prob = self._no_speech_prob(ys)

            seq_len = ys.shape[1]
            logits = self._logits(ys[:1, seq_len - 1:]) + self.suppress_tokens
            next_token = sample(logits, temperature, self.rng)
            tokens.append(next_token)

            # Scored against the unscaled distribution regardless of temperature
            logprobs = nn.log_softmax(logits, axis=-1)
            sum_logprob += float(logprobs[next_token])

            if next_token == self.special.eot or len(tokens) > max_positions:
                break

        text = self.tokenizer.decode(tokens, True)
        return DecodingResult(
            tokens=tokens,
            text=text,
            avg_logprob=sum_logprob / len(tokens),
            no_speech_prob=no_speech_prob,
            temperature=temperature,
            compression_ratio=compression_ratio(text),
        )

    def _needs_fallback(self, dr: DecodingResult) -> bool:
        opts = self.options
        degenerate = (
            dr.compression_ratio > opts.compression_ratio_threshold
            or dr.avg_logprob < opts.logprob_threshold
        )
        # A confidently silent window is accepted as is
        return degenerate and not dr.no_speech_prob > opts.no_speech_threshold

    def decode_with_fallback(self, mel: mx.array) -> DecodingResult:
        """
        Decode one window, escalating temperature while the result looks degenerate.

        The last temperature's outcome is returned (or raised) unconditionally.
        """
        temperatures = self.options.temperatures
        last = len(temperatures) - 1
        for i, t in enumerate(temperatures):
            if i == last:
                return self.decode(mel, t)
            try:
                dr = self.decode(mel, t)
            except DecodeAttemptError as e:
                logger.warning("Error running at %s: %s", t, e)
                continue
            if not self._needs_fallback(dr):
                return dr
            logger.debug(
                "falling back from t=%s (avg_logprob=%.3f, compression_ratio=%.3f)",
                t, dr.avg_logprob, dr.compression_ratio,
            )
        raise AssertionError("temperature ladder exhausted")  # unreachable

    def _is_silent(self, dr: DecodingResult) -> bool:
        return (
            dr.no_speech_prob > self.options.no_speech_threshold
            and dr.avg_logprob < self.options.logprob_threshold
        )

    def run(self, mel: mx.array) -> list[Segment]:
        """
        Decode a full mel spectrogram window by window.

        Args:
            mel: Spectrogram of shape (1, n_mels, content_frames)

        Returns:
            Kept segments in timeline order; windows detected as silence are dropped

        Raises:
            DecodeAttemptError: If a window fails at the last temperature; no
                partial result is returned
        """
        if mel.ndim != 3:
            raise ValueError(f"expected a (1, n_mels, frames) mel, got shape {mel.shape}")
        content_frames = mel.shape[2]
        window_frames = self.options.window_frames
        seek = 0
        segments: list[Segment] = []

        while seek < content_frames:
            started = time.perf_counter()
            time_offset = frames_to_seconds(seek)
            segment_size = min(content_frames - seek, window_frames)
            mel_segment = mel[:, :, seek:seek + segment_size]
            segment_duration = frames_to_seconds(segment_size)

            dr = self.decode_with_fallback(mel_segment)
            seek += segment_size

            if self._is_silent(dr):
                self.reporter.skipped(seek, dr)
                continue

            segment = Segment(start=time_offset, duration=segment_duration, dr=dr)
            self.reporter.segment(segment)
            if self.options.timestamps:
                parse_timestamps(segment.dr.tokens, self.special, self.tokenizer, self.reporter)
            logger.debug(
                "%d: %r, in %.3fs", seek, segment, time.perf_counter() - started
            )
            segments.append(segment)

        return segments
