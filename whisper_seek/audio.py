"""Audio file discovery and mel spectrogram preparation."""

import shutil
import subprocess
from pathlib import Path

import mlx.core as mx
import numpy as np

from .config import SAMPLE_RATE
from .errors import AudioLoadError, SampleRateMismatch

# Formats ffmpeg decodes for us
SUPPORTED_EXTENSIONS = frozenset({
    ".wav", ".mp3", ".m4a", ".flac", ".ogg", ".webm", ".aac", ".wma"
})


def is_supported_audio(path: Path) -> bool:
    """Check if a file has a supported audio extension."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def discover_audio_files(paths: list[Path], recursive: bool = False) -> list[Path]:
    """
    Collect audio files from files and directories.

    Args:
        paths: List of file or directory paths
        recursive: If True, search directories recursively

    Returns:
        Unique audio file paths, sorted
    """
    audio_files: set[Path] = set()

    for path in paths:
        if path.is_file() and is_supported_audio(path):
            audio_files.add(path)
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            audio_files.update(
                p for p in path.glob(pattern) if p.is_file() and is_supported_audio(p)
            )

    return sorted(audio_files)


def check_ffmpeg() -> bool:
    """Check if ffmpeg is available on the system."""
    return shutil.which("ffmpeg") is not None


def check_sample_rate(sample_rate: int) -> None:
    """Fail fast on audio the model cannot consume.

    Raises:
        SampleRateMismatch: If sample_rate is not SAMPLE_RATE.
    """
    if sample_rate != SAMPLE_RATE:
        raise SampleRateMismatch(SAMPLE_RATE, sample_rate)


def load_audio(path: Path | str, sr: int = SAMPLE_RATE) -> np.ndarray:
    """
    Decode an audio file to mono float32 PCM with ffmpeg, resampling to sr.

    Raises:
        AudioLoadError: If ffmpeg fails to decode the file
        FileNotFoundError: If ffmpeg is not installed
    """
    cmd = [
        "ffmpeg",
        "-nostdin",
        "-threads", "0",
        "-i", str(path),
        "-f", "s16le",
        "-ac", "1",
        "-acodec", "pcm_s16le",
        "-ar", str(sr),
        "-",
    ]
    result = subprocess.run(cmd, capture_output=True)
    if result.returncode != 0:
        raise AudioLoadError(path, result.stderr.decode(errors="replace").strip())
    return np.frombuffer(result.stdout, np.int16).flatten().astype(np.float32) / 32768.0


def mel_from_pcm(
    pcm: np.ndarray | mx.array,
    sample_rate: int,
    n_mels: int = 80,
) -> mx.array:
    """
    Convert mono PCM samples to a log-mel spectrogram.

    Args:
        pcm: Float samples in [-1, 1]
        sample_rate: Sample rate of pcm, must equal SAMPLE_RATE
        n_mels: Mel channels the model expects (80 or 128)

    Returns:
        Spectrogram of shape (1, n_mels, frames)

    Raises:
        SampleRateMismatch: Before any work if the rate is wrong
    """
    check_sample_rate(sample_rate)
    from mlx_audio.stt.models.whisper.audio import log_mel_spectrogram

    if not isinstance(pcm, mx.array):
        pcm = mx.array(pcm)
    mel = log_mel_spectrogram(pcm.astype(mx.float32), n_mels=n_mels)
    # The filterbank returns (frames, n_mels)
    return mel.T[None]


def load_mel(path: Path | str, n_mels: int = 80) -> mx.array:
    """Decode an audio file at SAMPLE_RATE and compute its mel spectrogram."""
    return mel_from_pcm(load_audio(path, SAMPLE_RATE), SAMPLE_RATE, n_mels)
