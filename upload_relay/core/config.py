"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        discord_webhook_url: Webhook receiving one audit line per upload batch. Unset disables delivery.
        host: Interface the server binds to.
        port: Port the server listens on.
        blacklist_path: JSON file holding an array of denied client addresses.
        blacklist_refresh_interval: Seconds between blacklist reloads.
        upload_dir: Directory uploaded files are written to and served from.
        public_dir: Directory served as the site root.
        index_path: Landing page returned for ``GET /``.
        uploads_url_prefix: URL prefix under which ``upload_dir`` is served.
        webhook_timeout: Timeout in seconds for a single webhook delivery.
        trust_proxy: Resolve the caller from ``X-Forwarded-For`` instead of the socket peer.
    """

    discord_webhook_url: str | None = Field(default=None)

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    blacklist_path: Path = Field(default=Path("config/blacklist.json"))
    blacklist_refresh_interval: float = Field(default=60.0, description="Blacklist reload cadence in seconds.")

    upload_dir: Path = Field(default=Path("uploads"))
    public_dir: Path = Field(default=Path("public"))
    index_path: Path = Field(default=Path("public/index.html"))
    uploads_url_prefix: str = Field(default="/uploads")

    webhook_timeout: float = Field(default=10.0, description="Webhook client timeout in seconds.")

    trust_proxy: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("discord_webhook_url", mode="before")  # type: ignore
    @classmethod
    def blank_webhook_is_unset(cls, v: str | None) -> str | None:
        """Treats an empty or whitespace-only webhook URL as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("uploads_url_prefix")  # type: ignore
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Ensures the prefix has a single leading slash and no trailing one."""
        return "/" + v.strip("/")


settings = Settings()
