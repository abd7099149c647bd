"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from whisper_seek import cli
from whisper_seek.cli import app, parse_formats
from whisper_seek.errors import ModelForwardError
from whisper_seek.formatters import FORMATTERS
from whisper_seek.types import DecodingResult, Segment, TimedSpan, TranscriptionResult

runner = CliRunner()


@pytest.fixture
def wav(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(b"RIFF")
    return path


class StubTranscriber:
    """Stands in for Transcriber; records options and returns a canned result."""

    instances = []

    def __init__(self, model_id, quantized, options, reporter):
        self.model_id = model_id
        self.quantized = quantized
        self.options = options
        self.reporter = reporter
        StubTranscriber.instances.append(self)

    def transcribe(self, audio_path):
        if "broken" in str(audio_path):
            raise ModelForwardError("decoder forward failed")
        dr = DecodingResult([41, 45, 47, 5, 40], " hello", -0.1, 0.01, 0.0, 1.0)
        return TranscriptionResult(
            text="hello",
            segments=[Segment(0.0, 2.0, dr)],
            audio_path=str(audio_path),
            model_id=self.model_id,
            spans=[TimedSpan(0.0, 2.0, "hello")],
        )


@pytest.fixture
def stub_transcriber(monkeypatch):
    StubTranscriber.instances = []
    monkeypatch.setattr(cli, "Transcriber", StubTranscriber)
    monkeypatch.setattr(cli, "is_mlx_audio_available", lambda: True)
    monkeypatch.setattr(cli, "check_ffmpeg", lambda: True)
    return StubTranscriber


class TestParseFormats:
    """Tests for parse_formats function."""

    def test_single(self):
        assert parse_formats("srt") == ["srt"]

    def test_comma_separated(self):
        assert parse_formats("txt, SRT,json") == ["txt", "srt", "json"]

    def test_all(self):
        assert parse_formats("all") == list(FORMATTERS)

    def test_unknown_falls_back_to_txt(self):
        assert parse_formats("docx") == ["txt"]


class TestEagerOptions:
    """Options that print and exit before any input is read."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "whisper-seek 0.1.0" in result.output

    def test_list_models(self):
        result = runner.invoke(app, ["--list-models"])
        assert result.exit_code == 0
        assert "tiny-en" in result.output
        assert "large-v3" in result.output


class TestValidation:
    """Bad combinations are rejected before loading a model."""

    def test_quantized_without_quantized_weights(self, wav):
        result = runner.invoke(app, [str(wav), "--model", "base", "--quantized", "--dry-run"])
        assert result.exit_code == 2
        assert "quantized" in result.output

    def test_quantized_with_explicit_repository(self, wav):
        result = runner.invoke(
            app, [str(wav), "--model", "mlx-community/whisper-base-mlx", "--quantized", "--dry-run"]
        )
        assert result.exit_code == 0

    def test_language_on_english_only_model(self, wav):
        result = runner.invoke(app, [str(wav), "--model", "tiny-en", "--language", "fr", "--dry-run"])
        assert result.exit_code == 2

    def test_negative_temperature(self, wav):
        result = runner.invoke(app, [str(wav), "--temperature=-1", "--dry-run"])
        assert result.exit_code == 2

    def test_unknown_model_passes_validation(self, wav):
        result = runner.invoke(app, [str(wav), "--model", "someone/whisper-custom", "--dry-run"])
        assert result.exit_code == 0

    def test_no_audio_files(self, tmp_path):
        (tmp_path / "notes.txt").write_text("not audio")
        result = runner.invoke(app, [str(tmp_path)])
        assert result.exit_code == 1
        assert "No audio files found" in result.output


class TestRun:
    """End-to-end runs with the transcriber stubbed out."""

    def test_dry_run_lists_files(self, wav):
        result = runner.invoke(app, [str(wav), "--dry-run", "--format", "txt,srt"])
        assert result.exit_code == 0
        assert "Would process 1 file(s)" in result.output
        assert not wav.with_suffix(".txt").exists()

    def test_requires_mlx_audio(self, wav, monkeypatch):
        monkeypatch.setattr(cli, "is_mlx_audio_available", lambda: False)
        result = runner.invoke(app, [str(wav)])
        assert result.exit_code == 1
        assert "mlx-audio is not installed" in result.output

    def test_writes_requested_formats(self, wav, tmp_path, stub_transcriber):
        out_dir = tmp_path / "out"
        result = runner.invoke(app, [str(wav), "-o", str(out_dir), "-f", "txt,srt"])
        assert result.exit_code == 0
        assert (out_dir / "clip.txt").read_text(encoding="utf-8") == "hello"
        assert "00:00:02,000" in (out_dir / "clip.srt").read_text(encoding="utf-8")

    def test_decoding_options_forwarded(self, wav, stub_transcriber):
        args = [
            str(wav), "--model", "tiny", "--language", "fr", "--task", "translate",
            "--timestamps", "--temperature", "0.0", "--temperature", "0.5", "--seed", "7",
        ]
        result = runner.invoke(app, args)
        assert result.exit_code == 0

        transcriber = stub_transcriber.instances[0]
        options = transcriber.options
        assert transcriber.model_id == "tiny"
        assert options.temperatures == (0.0, 0.5)
        assert options.seed == 7
        assert options.language == "fr"
        assert options.task.value == "translate"
        assert options.timestamps

    def test_failed_file_sets_exit_code(self, tmp_path, stub_transcriber):
        good = tmp_path / "good.wav"
        broken = tmp_path / "broken.wav"
        good.write_bytes(b"RIFF")
        broken.write_bytes(b"RIFF")

        result = runner.invoke(app, [str(tmp_path)])
        assert result.exit_code == 1
        assert (tmp_path / "good.txt").exists()
        assert not (tmp_path / "broken.txt").exists()

    def test_fail_fast_stops_at_first_error(self, tmp_path, stub_transcriber):
        (tmp_path / "a_broken.wav").write_bytes(b"RIFF")
        (tmp_path / "b_good.wav").write_bytes(b"RIFF")

        result = runner.invoke(app, [str(tmp_path), "--fail-fast"])
        assert result.exit_code == 1
        assert not (tmp_path / "b_good.txt").exists()
