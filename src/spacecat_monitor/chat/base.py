"""Notification card model and chat channel interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(slots=True)
class CardField:
    name: str
    value: str
    inline: bool = True


@dataclass(slots=True)
class NotificationCard:
    """Backend-neutral rendered notification."""

    title: str
    color: int | None = None
    fields: list[CardField] = field(default_factory=list)
    footer: str | None = None
    timestamp: str | None = field(default_factory=_utc_now_iso)

    def add_field(self, name: str, value: str, inline: bool = True) -> NotificationCard:
        self.fields.append(CardField(name=name, value=value, inline=inline))
        return self

    def field_value(self, name: str) -> str | None:
        for card_field in self.fields:
            if card_field.name == name:
                return card_field.value
        return None


class ChatChannel(ABC):
    """One notification destination.

    Sends may raise; the dispatcher isolates failures per channel. Channels do
    not retry on their own.
    """

    name: str

    @abstractmethod
    def send_notification(self, card: NotificationCard) -> None:
        """Deliver a text-only card."""

    @abstractmethod
    def send_notification_with_attachment(
        self,
        card: NotificationCard,
        data: bytes,
        filename: str,
    ) -> None:
        """Deliver a card together with an image attachment."""

    def close(self) -> None:
        """Release network resources held by the channel."""
        return None
