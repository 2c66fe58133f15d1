"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class SpaceCatAPIError(Exception):
    """Raised when imaging API calls fail or return malformed data."""


class SpaceCatRequestError(SpaceCatAPIError):
    """Raised for imaging API request failures with category/status metadata."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class ChatError(Exception):
    """Raised when a chat channel fails to deliver a notification."""

    def __init__(self, message: str, *, channel: str = "unknown") -> None:
        super().__init__(message)
        self.channel = channel


class ChannelConstructionError(ChatError):
    """Raised when a configured chat channel cannot be built at startup."""
