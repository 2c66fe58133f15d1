"""Fan-out of notification cards to every configured chat channel."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from ..redaction import sanitize_text
from .base import ChatChannel, NotificationCard


class NotificationDispatcher:
    """Send each card to all channels; a failing channel never stops the rest."""

    def __init__(self, channels: Sequence[ChatChannel], logger: logging.Logger) -> None:
        self.channels = list(channels)
        self.logger = logger

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    def dispatch(self, card: NotificationCard) -> list[str]:
        """Send ``card`` everywhere; return names of channels that failed."""
        failed: list[str] = []
        for channel in self.channels:
            try:
                channel.send_notification(card)
            except Exception as exc:
                failed.append(channel.name)
                self._log_failure(channel, card, exc)
        return failed

    def dispatch_with_attachment(
        self,
        card: NotificationCard,
        fetch_bytes: Callable[[], bytes],
        filename: str,
    ) -> list[str]:
        """Send ``card`` with an attachment, degrading to text-only if bytes are unavailable."""
        if not self.channels:
            return []
        try:
            data = fetch_bytes()
        except Exception as exc:
            self.logger.warning(
                "Attachment %s unavailable, sending text only: %s",
                filename,
                sanitize_text(str(exc)),
            )
            return self.dispatch(card)

        failed: list[str] = []
        for channel in self.channels:
            try:
                channel.send_notification_with_attachment(card, data, filename)
            except Exception as exc:
                failed.append(channel.name)
                self._log_failure(channel, card, exc)
        return failed

    def close(self) -> None:
        for channel in self.channels:
            try:
                channel.close()
            except Exception as exc:
                self.logger.warning("Failed closing %s channel: %s", channel.name, exc)

    def _log_failure(self, channel: ChatChannel, card: NotificationCard, exc: Exception) -> None:
        self.logger.error(
            "Failed sending '%s' to %s: %s",
            card.title,
            channel.name,
            sanitize_text(str(exc)),
            extra={"channel": channel.name},
        )
