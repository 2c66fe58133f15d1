"""Discord webhook channel."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..config import DISCORD_WEBHOOK_PREFIXES
from ..exceptions import ChannelConstructionError, ChatError
from ..redaction import sanitize_text
from .base import ChatChannel, NotificationCard

DEFAULT_EMBED_COLOR = 0x808080


def card_to_embed(card: NotificationCard) -> dict[str, Any]:
    """Map a card onto Discord's embed object."""
    embed: dict[str, Any] = {
        "title": card.title,
        "color": card.color if card.color is not None else DEFAULT_EMBED_COLOR,
        "fields": [
            {"name": item.name, "value": item.value, "inline": item.inline}
            for item in card.fields
        ],
    }
    if card.timestamp:
        embed["timestamp"] = card.timestamp
    if card.footer:
        embed["footer"] = {"text": card.footer}
    return embed


class DiscordChannel(ChatChannel):
    """Posts embeds to a single Discord webhook."""

    name = "discord"

    def __init__(
        self,
        webhook_url: str,
        logger: logging.Logger,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not webhook_url.startswith(DISCORD_WEBHOOK_PREFIXES):
            raise ChannelConstructionError(
                "Invalid Discord webhook URL; expected https://discord.com/api/webhooks/...",
                channel=self.name,
            )
        self.webhook_url = webhook_url
        self.logger = logger
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def send_notification(self, card: NotificationCard) -> None:
        self._post(json_body={"embeds": [card_to_embed(card)]})

    def send_notification_with_attachment(
        self,
        card: NotificationCard,
        data: bytes,
        filename: str,
    ) -> None:
        embed = card_to_embed(card)
        embed["image"] = {"url": f"attachment://{filename}"}
        self._post(
            data={"payload_json": json.dumps({"embeds": [embed]})},
            files={"file": (filename, data, "image/jpeg")},
        )

    def close(self) -> None:
        self._client.close()

    def _post(
        self,
        json_body: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> None:
        try:
            response = self._client.post(self.webhook_url, json=json_body, data=data, files=files)
        except httpx.HTTPError as exc:
            raise ChatError(
                f"Discord webhook request failed: {sanitize_text(str(exc))}",
                channel=self.name,
            ) from exc
        if response.status_code >= 400:
            raise ChatError(
                f"Discord webhook returned {response.status_code}: "
                f"{sanitize_text(response.text[:300])}",
                channel=self.name,
            )
        self.logger.debug("Discord notification delivered (%d)", response.status_code)
