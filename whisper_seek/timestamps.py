"""Split a segment's token stream at timestamp tokens."""

from collections.abc import Sequence

from .backends.base import Tokenizer
from .reporting import Reporter
from .types import TimedSpan
from .vocabulary import SpecialTokens

# Whisper timestamps advance in 20 ms steps
TIMESTAMPS_PER_SECOND = 50


def timestamp_seconds(token: int, special: SpecialTokens) -> float:
    """Convert a timestamp token id to seconds relative to its window."""
    return (token - special.no_timestamps + 1) / TIMESTAMPS_PER_SECOND


def parse_timestamps(
    tokens: Sequence[int],
    special: SpecialTokens,
    tokenizer: Tokenizer,
    reporter: Reporter | None = None,
) -> list[TimedSpan]:
    """
    Group tokens into spans delimited by timestamp tokens.

    Args:
        tokens: Token ids of one decoded window, control tokens included
        special: Special token ids of the session
        tokenizer: Used to decode each span's text
        reporter: Optional sink that receives every span as it is emitted

    Returns:
        Spans in order. A trailing run of text with no closing timestamp
        produces a span with ``end=None`` when its text is non-empty.
    """
    spans: list[TimedSpan] = []
    pending: list[int] = []
    prev_timestamp = 0.0

    def emit(span: TimedSpan) -> None:
        spans.append(span)
        if reporter is not None:
            reporter.span(span)

    for token in tokens:
        if token == special.sot or token == special.eot:
            continue
        if not special.is_timestamp(token):
            pending.append(token)
            continue

        timestamp = timestamp_seconds(token, special)
        if pending:
            emit(TimedSpan(prev_timestamp, timestamp, tokenizer.decode(pending, True)))
            pending = []
        prev_timestamp = timestamp

    if pending:
        text = tokenizer.decode(pending, True)
        if text:
            emit(TimedSpan(prev_timestamp, None, text))

    return spans
