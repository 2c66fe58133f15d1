"""Chat channel backends and notification fan-out."""

from .base import CardField, ChatChannel, NotificationCard
from .discord import DiscordChannel
from .dispatcher import NotificationDispatcher
from .factory import build_channels
from .matrix import MatrixChannel

__all__ = [
    "CardField",
    "ChatChannel",
    "DiscordChannel",
    "MatrixChannel",
    "NotificationCard",
    "NotificationDispatcher",
    "build_channels",
]
