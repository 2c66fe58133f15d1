"""Credential redaction and JSON log formatting."""

from __future__ import annotations

import json
import logging

from spacecat_monitor.log_setup import MonitorJsonFormatter, setup_logger
from spacecat_monitor.redaction import REDACTED, sanitize_for_logging, sanitize_text


def test_webhook_token_is_redacted() -> None:
    text = "posting to https://discord.com/api/webhooks/42/AbC-def_123 failed"
    assert sanitize_text(text) == f"posting to https://discord.com/api/webhooks/42/{REDACTED} failed"


def test_bearer_and_key_value_secrets_are_redacted() -> None:
    text = 'Authorization: Bearer syt_secret123 {"access_token": "syt_abc", "password": "hunter2"}'
    sanitized = sanitize_text(text)
    assert "syt_secret123" not in sanitized
    assert "syt_abc" not in sanitized
    assert "hunter2" not in sanitized


def test_sanitize_for_logging_redacts_sensitive_keys() -> None:
    payload = {
        "discord_webhook_url": "https://discord.com/api/webhooks/1/x",
        "nested": {"matrix_password": "hunter2", "room": "!room:example.org"},
        "items": ["token=abc"],
    }
    sanitized = sanitize_for_logging(payload)
    assert sanitized["discord_webhook_url"] == REDACTED
    assert sanitized["nested"]["matrix_password"] == REDACTED
    assert sanitized["nested"]["room"] == "!room:example.org"
    assert sanitized["items"] == [f"token={REDACTED}"]


def test_json_formatter_redacts_message() -> None:
    record = logging.LogRecord(
        name="spacecat_monitor",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="sending to %s",
        args=("https://discord.com/api/webhooks/9/tok",),
        exc_info=None,
    )
    event = json.loads(MonitorJsonFormatter().format(record))
    assert event["level"] == "INFO"
    assert event["logger"] == "spacecat_monitor"
    assert "tok" not in event["message"].split("/")[-1]
    assert "channel" not in event


def test_json_formatter_tags_chat_channel() -> None:
    record = logging.LogRecord(
        name="spacecat_monitor",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg="Failed sending card",
        args=(),
        exc_info=None,
    )
    record.channel = "matrix"
    event = json.loads(MonitorJsonFormatter().format(record))
    assert event["channel"] == "matrix"
    assert event["message"] == "Failed sending card"


def test_setup_logger_maps_level_names() -> None:
    logger = setup_logger("test_spacecat_setup", level="warn")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    setup_logger("test_spacecat_setup", level="debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
