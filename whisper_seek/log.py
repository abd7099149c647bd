"""Logging setup for the command line."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

ENV_KEY = "WHISPER_SEEK_LOG_LEVEL"

_LEVEL_ALIASES: dict[str, int] = {
    "WARN": logging.WARNING,
    "TRACE": logging.DEBUG,
}


def _normalize(value: str | int | None) -> int:
    if isinstance(value, int):
        return value

    if value is None:
        return logging.INFO

    text = value.strip()
    if not text:
        return logging.INFO

    try:
        return int(text)
    except ValueError:
        pass

    upper = text.upper()
    if upper in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[upper]

    return getattr(logging, upper, logging.INFO)


def resolve_log_level(*candidates: str | int | None, default: str | int | None = None) -> int:
    """Return the first non-None candidate as a logging level."""
    for candidate in candidates:
        if candidate is None:
            continue
        return _normalize(candidate)

    if default is not None:
        return _normalize(default)

    return logging.INFO


def setup_logging(
    level: str | int | None = None,
    *,
    env_key: str = ENV_KEY,
    default: str | int | None = logging.WARNING,
    console: Console | None = None,
) -> int:
    """Route log records through rich; explicit level wins over the environment."""
    resolved = resolve_log_level(level, os.getenv(env_key), default=default)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(level=resolved, format="%(message)s", handlers=[handler], force=True)
    logging.getLogger("huggingface_hub").setLevel(logging.WARNING)
    return resolved
