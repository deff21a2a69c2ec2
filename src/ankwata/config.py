"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

GATEWAY_SECRET_PLACEHOLDER = "FLW_SECRET_KEY_HERE"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    play_amount: int = 5000
    currency: str = "UGX"
    payment_type: str = "mobile_money_uganda"
    flutterwave_secret_key: str | None = None
    flutterwave_base_url: str = "https://api.flutterwave.com/v3"
    flutterwave_webhook_hash: str | None = None
    poll_interval_seconds: float = 2.0
    poll_timeout_seconds: float = 30.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_gateway_secret(raw: str | None) -> str | None:
    """Return the gateway secret, or None when running in demo mode."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", GATEWAY_SECRET_PLACEHOLDER}:
        return None
    return cleaned
