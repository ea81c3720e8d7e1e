from __future__ import annotations

from functools import lru_cache
from typing import Any

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

console = Console(stderr=True)
log = logger.bind(module="config")


class Settings(BaseSettings):
    """Client configuration read from ``DIFFBOT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DIFFBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    token: str | None = Field(default=None, description="Developer token sent with every request.")
    api_version: str = Field(default="v3", min_length=1)
    host: str = Field(default="diffbot.com", min_length=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default="diffbot-python", min_length=1)
    reuse_connections: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    def export_safe(self) -> dict[str, Any]:
        """Return non-sensitive settings for debugging/logging."""
        return {
            "token": "***" if self.token else None,
            "api_version": self.api_version,
            "host": self.host,
            "timeout_seconds": self.timeout_seconds,
            "user_agent": self.user_agent,
            "reuse_connections": self.reuse_connections,
        }


@lru_cache
def get_settings() -> Settings:
    """Load and cache client settings."""
    settings = Settings()
    console.log(
        f"[bold green]Loaded diffbot settings[/] version={settings.api_version!r} "
        f"host={settings.host!r}",
    )
    log.info("Settings initialised: {}", settings.export_safe())
    return settings
