"""Output formatters for transcription results."""

import json
import math
from datetime import datetime, timezone

from .types import TimedSpan, TranscriptionResult

# Schema version for JSON output
JSON_SCHEMA_VERSION = "1.0"


def _format_timestamp(seconds: float, decimal_marker: str) -> str:
    """Format seconds as HH:MM:SS<marker>mmm."""
    milliseconds = round(seconds * 1000.0)
    hours, milliseconds = divmod(milliseconds, 3_600_000)
    minutes, milliseconds = divmod(milliseconds, 60_000)
    secs, milliseconds = divmod(milliseconds, 1_000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}{decimal_marker}{milliseconds:03d}"


def _format_timestamp_srt(seconds: float) -> str:
    """SRT uses a comma before the milliseconds."""
    return _format_timestamp(seconds, ",")


def _format_timestamp_vtt(seconds: float) -> str:
    """VTT uses a dot before the milliseconds."""
    return _format_timestamp(seconds, ".")


def _format_timestamp_simple(seconds: float) -> str:
    """Format seconds as simple timestamp: MM:SS or HH:MM:SS for longer audio."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def _metric(value: float) -> float | None:
    """Round a decoder metric; JSON has no NaN or infinity."""
    return round(value, 4) if math.isfinite(value) else None


def _span_end(span: TimedSpan) -> float:
    return span.start if span.end is None else span.end


def format_txt(result: TranscriptionResult, timestamps: bool = False) -> str:
    """
    Format transcription as plain text, one span per line.

    Args:
        result: Transcription result
        timestamps: If True, prefix each line with its start time
    """
    if not result.spans:
        return result.text

    lines = []
    for span in result.spans:
        if timestamps:
            lines.append(f"[{_format_timestamp_simple(span.start)}] {span.text}")
        else:
            lines.append(span.text)
    return "\n".join(lines)


def format_srt(result: TranscriptionResult) -> str:
    """Format transcription as SRT (SubRip) subtitles."""
    lines = []
    for i, span in enumerate(result.spans, start=1):
        lines.append(str(i))
        lines.append(
            f"{_format_timestamp_srt(span.start)} --> {_format_timestamp_srt(_span_end(span))}"
        )
        lines.append(span.text)
        lines.append("")  # Blank line between cues
    return "\n".join(lines)


def format_vtt(result: TranscriptionResult) -> str:
    """Format transcription as WebVTT subtitles."""
    lines = ["WEBVTT", ""]
    for span in result.spans:
        lines.append(
            f"{_format_timestamp_vtt(span.start)} --> {_format_timestamp_vtt(_span_end(span))}"
        )
        lines.append(span.text)
        lines.append("")
    return "\n".join(lines)


def format_json(result: TranscriptionResult) -> str:
    """
    Format transcription as structured JSON.

    Segments carry the decoder's confidence metrics; spans carry the text
    timeline used by the subtitle formats.
    """
    data = {
        "schema_version": JSON_SCHEMA_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "audio_path": result.audio_path,
        "model_id": result.model_id,
        "text": result.text,
        "duration_seconds": result.duration,
        "segments": [
            {
                "start": round(seg.start, 3),
                "end": round(seg.end, 3),
                "text": seg.text,
                "tokens": list(seg.dr.tokens),
                "temperature": seg.dr.temperature,
                "avg_logprob": _metric(seg.dr.avg_logprob),
                "no_speech_prob": _metric(seg.dr.no_speech_prob),
                "compression_ratio": _metric(seg.dr.compression_ratio),
            }
            for seg in result.segments
        ],
        "spans": [
            {
                "start": round(span.start, 3),
                "end": None if span.end is None else round(span.end, 3),
                "text": span.text,
            }
            for span in result.spans
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


# Mapping of format names to formatter functions
FORMATTERS = {
    "txt": format_txt,
    "srt": format_srt,
    "vtt": format_vtt,
    "json": format_json,
}

# File extensions for each format
EXTENSIONS = {
    "txt": ".txt",
    "srt": ".srt",
    "vtt": ".vtt",
    "json": ".json",
}
