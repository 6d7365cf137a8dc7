"""Structured logging setup using loguru, with secret redaction."""
import sys
from collections import OrderedDict
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

REDACTED = "***"

MAX_SECRETS = 32

# insertion-ordered so the oldest registration is evicted first
_secrets: "OrderedDict[str, None]" = OrderedDict()


def register_secret(value: str) -> None:
    """Mark a value that must never be written to any log sink.

    Re-registering a value refreshes it; at most MAX_SECRETS are kept.
    """
    # very short values would mangle unrelated text
    if not value or len(value) < 8:
        return
    _secrets[value] = None
    _secrets.move_to_end(value)
    while len(_secrets) > MAX_SECRETS:
        _secrets.popitem(last=False)


def redact(text: str) -> str:
    for value in _secrets:
        if value in text:
            text = text.replace(value, REDACTED)
    return text


def _redacting_filter(record) -> bool:
    record["message"] = redact(record["message"])
    return True


def setup_logging(
    log_file: Optional[str] = "okx_rest.log",
    level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """Configure structured logging for the client.

    Args:
        log_file: Path to log file, or None to skip file logging
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to log to stderr as well
    """
    _logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            str(log_path),
            format=log_format,
            level=level,
            filter=_redacting_filter,
            rotation="100 MB",
            retention="7 days",
        )

    # stderr keeps stdout clean for scripts that print JSON
    if enable_console:
        _logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            filter=_redacting_filter,
            colorize=True,
        )


logger = _logger
