"""JSON console logging for the monitor and its query subcommands.

Every line is one JSON object. Messages and tracebacks pass through
``sanitize_text`` so webhook tokens and Matrix credentials never reach the
console. Records logged with ``extra={"channel": ...}`` carry the chat
channel name as its own key.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_text

# Accepts the LOG_LEVEL values allowed by Settings.
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class MonitorJsonFormatter(logging.Formatter):
    """One redacted JSON object per record, tagged with the chat channel when known."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        channel = getattr(record, "channel", None)
        if channel:
            entry["channel"] = channel
        if record.exc_info:
            entry["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logger(name: str = "spacecat_monitor", level: int | str = logging.INFO) -> logging.Logger:
    """Return the named logger with a single JSON console handler attached.

    ``level`` may be a ``logging`` constant or a LOG_LEVEL name; unknown names
    fall back to INFO. Repeated calls only adjust the level.
    """
    if isinstance(level, str):
        level = LOG_LEVELS.get(level.lower(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(MonitorJsonFormatter())
        logger.addHandler(handler)
    return logger
