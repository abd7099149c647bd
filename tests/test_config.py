"""Tests for decoding options and result types."""

import dataclasses

import pytest

from whisper_seek.config import N_FRAMES, TEMPERATURES, DecodingOptions
from whisper_seek.types import DecodingResult, Segment, Task


class TestDecodingOptions:
    """Tests for DecodingOptions validation."""

    def test_defaults(self):
        options = DecodingOptions()
        assert options.temperatures == TEMPERATURES
        assert options.window_frames == N_FRAMES == 3000
        assert options.task is Task.TRANSCRIBE
        assert not options.timestamps

    def test_coerces_iterables(self):
        options = DecodingOptions(temperatures=[0, 1], suppress_tokens={3, 4})
        assert options.temperatures == (0.0, 1.0)
        assert isinstance(options.temperatures[0], float)
        assert options.suppress_tokens == frozenset({3, 4})

    def test_rejects_empty_ladder(self):
        with pytest.raises(ValueError, match="at least one"):
            DecodingOptions(temperatures=())

    def test_rejects_negative_temperature(self):
        with pytest.raises(ValueError, match=">= 0"):
            DecodingOptions(temperatures=(0.0, -0.2))

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError, match="window_frames"):
            DecodingOptions(window_frames=0)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DecodingOptions().seed = 1


class TestSegment:
    """Tests for Segment helpers."""

    def test_end_and_text(self):
        dr = DecodingResult([1], "  padded text ", -0.1, 0.0, 0.0, 1.0)
        segment = Segment(start=1.5, duration=2.0, dr=dr)
        assert segment.end == 3.5
        assert segment.text == "padded text"

    def test_task_prints_as_value(self):
        assert str(Task.TRANSLATE) == "translate"
