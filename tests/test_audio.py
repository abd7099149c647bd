"""Tests for audio discovery and mel preparation."""

import subprocess

import numpy as np
import pytest

from whisper_seek.audio import (
    check_sample_rate,
    discover_audio_files,
    is_supported_audio,
    load_audio,
    mel_from_pcm,
)
from whisper_seek.errors import AudioLoadError, SampleRateMismatch


@pytest.fixture
def audio_tree(tmp_path):
    (tmp_path / "a.wav").touch()
    (tmp_path / "b.MP3").touch()
    (tmp_path / "notes.txt").touch()
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.flac").touch()
    return tmp_path


class TestDiscoverAudioFiles:
    """Tests for discover_audio_files function."""

    def test_flat_directory(self, audio_tree):
        names = [p.name for p in discover_audio_files([audio_tree])]
        assert names == ["a.wav", "b.MP3"]

    def test_recursive(self, audio_tree):
        names = [p.name for p in discover_audio_files([audio_tree], recursive=True)]
        assert sorted(names) == ["a.wav", "b.MP3", "c.flac"]

    def test_explicit_file_and_duplicates(self, audio_tree):
        wav = audio_tree / "a.wav"
        assert discover_audio_files([wav, audio_tree, wav]) == sorted(
            [wav, audio_tree / "b.MP3"]
        )

    def test_unsupported_file_ignored(self, audio_tree):
        assert discover_audio_files([audio_tree / "notes.txt"]) == []


def test_is_supported_audio_ignores_case(tmp_path):
    assert is_supported_audio(tmp_path / "x.M4A")
    assert not is_supported_audio(tmp_path / "x.mid")


class TestSampleRate:
    """The model only accepts 16 kHz input."""

    def test_accepts_16khz(self):
        check_sample_rate(16000)

    def test_rejects_other_rates(self):
        with pytest.raises(SampleRateMismatch) as exc_info:
            check_sample_rate(44100)
        assert exc_info.value.expected == 16000
        assert exc_info.value.actual == 44100
        assert "44100" in str(exc_info.value)

    def test_mel_from_pcm_checks_rate_first(self):
        with pytest.raises(SampleRateMismatch):
            mel_from_pcm(np.zeros(100, dtype=np.float32), 8000)


def test_mel_from_pcm_shape():
    pytest.importorskip("mlx_audio.stt.models.whisper.audio")
    mel = mel_from_pcm(np.zeros(16000, dtype=np.float32), 16000, n_mels=80)
    assert mel.ndim == 3
    assert mel.shape[0] == 1
    assert mel.shape[1] == 80
    assert mel.shape[2] == 100


class TestLoadAudio:
    """Tests for ffmpeg decoding with subprocess patched out."""

    def test_decodes_pcm(self, monkeypatch):
        pcm = np.array([0, 16384, -32768], dtype=np.int16).tobytes()
        calls = []

        def fake_run(cmd, capture_output):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout=pcm, stderr=b"")

        monkeypatch.setattr(subprocess, "run", fake_run)
        samples = load_audio("clip.mp3")

        assert samples.dtype == np.float32
        assert samples.tolist() == [0.0, 0.5, -1.0]
        assert calls[0][calls[0].index("-ar") + 1] == "16000"

    def test_failure_raises_audio_load_error(self, monkeypatch):
        def fake_run(cmd, capture_output):
            return subprocess.CompletedProcess(cmd, 1, stdout=b"", stderr=b"Invalid data found")

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(AudioLoadError, match="Invalid data found"):
            load_audio("broken.mp3")
