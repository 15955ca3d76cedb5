"""Application configuration."""

import os
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    telegram_allowed_user_ids: str | None = None
    bot_username: str = "avatarelitebot"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    image_backend: Literal["nano_banana", "seedream"] = "nano_banana"
    nano_banana_api_key: str | None = None
    nano_banana_model: str = "nano-banana-pro-preview"
    seedream_api_key: str | None = None
    seedream_model: str = "seedream-4-5-251128"
    seedream_base_url: str = "https://ark.cn-beijing.volces.com/api/v3"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    starting_credits: int = 15
    refund_on_backend_failure: bool = False
    session_idle_ttl_seconds: int | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_credentials(self) -> "Settings":
        if bool(self.supabase_url) != bool(self.supabase_service_key):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set together"
            )
        if self.image_backend == "nano_banana" and not self.nano_banana_api_key:
            raise ValueError("NANO_BANANA_API_KEY is required for nano_banana")
        if self.image_backend == "seedream" and not self.seedream_api_key:
            raise ValueError("SEEDREAM_API_KEY is required for seedream")
        return self

    @property
    def store_configured(self) -> bool:
        """Return True when a durable account store is configured."""
        return bool(self.supabase_url and self.supabase_service_key)


def parse_allowed_user_ids(raw: str | None) -> set[int] | None:
    """Parse allowed Telegram user IDs from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[int] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        if value.isdigit():
            ids.add(int(value))
    return ids or None
