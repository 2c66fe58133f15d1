"""Helpers for redacting chat credentials from log output."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEY_RE = re.compile(
    r"(authorization|token|secret|password|webhook[_-]?url|access[_-]?token)",
    re.IGNORECASE,
)
# Discord webhook URLs embed the webhook secret as the last path segment.
_WEBHOOK_URL_RE = re.compile(
    r"(https://(?:discord|discordapp)\.com/api/webhooks/\d+/)[A-Za-z0-9\-_.]+",
)
_AUTH_TOKEN_INLINE_RE = re.compile(
    r"(?i)\b(bearer)\s+[A-Za-z0-9\-._~+/]+=*",
)
_KEY_VALUE_SECRET_RE = re.compile(
    r"""(?ix)
    \b
    (
      authorization|
      access_token|
      password|
      token|
      secret
    )
    (["']?\s*[:=]\s*["']?)
    ([^\s,;"'&}]+)
    """
)


def sanitize_text(text: str) -> str:
    """Redact sensitive content embedded in plain text."""
    sanitized = _WEBHOOK_URL_RE.sub(r"\1" + REDACTED, text)
    sanitized = _AUTH_TOKEN_INLINE_RE.sub(r"\1 " + REDACTED, sanitized)
    sanitized = _KEY_VALUE_SECRET_RE.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", sanitized
    )
    return sanitized


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact sensitive values in nested structures."""
    if isinstance(value, dict):
        sanitized: dict[Any, Any] = {}
        for key, child in value.items():
            if _SENSITIVE_KEY_RE.search(str(key)):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = sanitize_for_logging(child)
        return sanitized
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_for_logging(item) for item in value)
    if isinstance(value, str):
        return sanitize_text(value)
    return value
