"""Build chat channels from validated settings."""

from __future__ import annotations

import logging

from ..config import DiscordChannelConfig, MatrixChannelConfig, Settings
from .base import ChatChannel
from .discord import DiscordChannel
from .matrix import MatrixChannel


def build_channels(settings: Settings, logger: logging.Logger) -> list[ChatChannel]:
    """Construct every enabled channel in order.

    Raises ``ChannelConstructionError`` on the first channel that cannot be
    built; channels created before the failure are closed first.
    """
    channels: list[ChatChannel] = []
    try:
        for config in settings.channel_configs():
            if isinstance(config, DiscordChannelConfig):
                channels.append(
                    DiscordChannel(
                        webhook_url=config.webhook_url,
                        logger=logger,
                        timeout_seconds=settings.api_timeout_seconds,
                    )
                )
            elif isinstance(config, MatrixChannelConfig):
                channels.append(
                    MatrixChannel(
                        homeserver_url=config.homeserver_url,
                        username=config.username,
                        password=config.password,
                        room_id=config.room_id,
                        logger=logger,
                        timeout_seconds=settings.api_timeout_seconds,
                    )
                )
    except Exception:
        for channel in channels:
            channel.close()
        raise

    if channels:
        logger.info("Chat channels ready: %s", ", ".join(channel.name for channel in channels))
    else:
        logger.warning("No chat channels configured; running in monitoring-only mode")
    return channels
