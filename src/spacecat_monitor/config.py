"""Typed settings loader for the imaging monitor."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

DISCORD_WEBHOOK_PREFIXES = (
    "https://discord.com/api/webhooks/",
    "https://discordapp.com/api/webhooks/",
)


class DiscordChannelConfig(BaseModel):
    """Credentials for one Discord webhook channel."""

    kind: Literal["discord"] = "discord"
    webhook_url: str = Field(repr=False)


class MatrixChannelConfig(BaseModel):
    """Credentials for one Matrix room channel."""

    kind: Literal["matrix"] = "matrix"
    homeserver_url: str
    username: str
    password: str = Field(repr=False)
    room_id: str


ChannelConfig = DiscordChannelConfig | MatrixChannelConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = Field(default="http://192.168.0.82:1888", alias="SPACECAT_API_BASE_URL")
    api_timeout_seconds: float = Field(default=30.0, alias="SPACECAT_TIMEOUT_SECONDS")
    api_retry_attempts: int = Field(default=3, alias="SPACECAT_RETRY_ATTEMPTS")

    poll_interval_seconds: float = Field(default=5.0, alias="POLL_INTERVAL_SECONDS")
    image_cooldown_seconds: float = Field(default=60.0, alias="IMAGE_COOLDOWN_SECONDS")

    discord_enabled: bool = Field(default=True, alias="DISCORD_ENABLED")
    discord_webhook_url: str | None = Field(
        default=None, alias="DISCORD_WEBHOOK_URL", repr=False
    )

    matrix_enabled: bool = Field(default=True, alias="MATRIX_ENABLED")
    matrix_homeserver_url: str | None = Field(default=None, alias="MATRIX_HOMESERVER_URL")
    matrix_username: str | None = Field(default=None, alias="MATRIX_USERNAME")
    matrix_password: str | None = Field(default=None, alias="MATRIX_PASSWORD", repr=False)
    matrix_room_id: str | None = Field(default=None, alias="MATRIX_ROOM_ID")

    log_level: Literal["error", "warn", "info", "debug"] = Field(
        default="info", alias="LOG_LEVEL"
    )

    @field_validator(
        "discord_webhook_url",
        "matrix_homeserver_url",
        "matrix_username",
        "matrix_password",
        "matrix_room_id",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset optional credentials."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def validate_settings(self) -> Settings:
        """Validate API bounds and chat credential completeness."""
        if not self.api_base_url:
            raise ValueError("SPACECAT_API_BASE_URL cannot be empty.")
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ValueError("SPACECAT_API_BASE_URL must start with http:// or https://.")
        if self.api_timeout_seconds <= 0:
            raise ValueError("SPACECAT_TIMEOUT_SECONDS must be > 0.")
        if self.api_timeout_seconds > 300:
            raise ValueError("SPACECAT_TIMEOUT_SECONDS should not exceed 300 (5 minutes).")
        if self.api_retry_attempts < 0:
            raise ValueError("SPACECAT_RETRY_ATTEMPTS must be >= 0.")
        if self.api_retry_attempts > 10:
            raise ValueError("SPACECAT_RETRY_ATTEMPTS should not exceed 10.")
        if self.poll_interval_seconds <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be > 0.")
        if self.image_cooldown_seconds < 0:
            raise ValueError("IMAGE_COOLDOWN_SECONDS must be >= 0.")

        matrix_values = [
            self.matrix_homeserver_url,
            self.matrix_username,
            self.matrix_password,
            self.matrix_room_id,
        ]
        has_any_matrix = any(value is not None for value in matrix_values)
        has_all_matrix = all(value is not None for value in matrix_values)
        if has_any_matrix and not has_all_matrix:
            raise ValueError(
                "MATRIX_HOMESERVER_URL, MATRIX_USERNAME, MATRIX_PASSWORD and "
                "MATRIX_ROOM_ID must be set together."
            )
        return self

    def channel_configs(self) -> list[ChannelConfig]:
        """Return enabled chat channel configurations in dispatch order."""
        channels: list[ChannelConfig] = []
        if self.discord_enabled and self.discord_webhook_url:
            channels.append(DiscordChannelConfig(webhook_url=self.discord_webhook_url))
        if (
            self.matrix_enabled
            and self.matrix_homeserver_url
            and self.matrix_username
            and self.matrix_password
            and self.matrix_room_id
        ):
            channels.append(
                MatrixChannelConfig(
                    homeserver_url=self.matrix_homeserver_url,
                    username=self.matrix_username,
                    password=self.matrix_password,
                    room_id=self.matrix_room_id,
                )
            )
        return channels

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "api_base_url": self.api_base_url,
            "api_timeout_seconds": self.api_timeout_seconds,
            "api_retry_attempts": self.api_retry_attempts,
            "poll_interval_seconds": self.poll_interval_seconds,
            "image_cooldown_seconds": self.image_cooldown_seconds,
            "channels": [config.kind for config in self.channel_configs()],
            "log_level": self.log_level,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
