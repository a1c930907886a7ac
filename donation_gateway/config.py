"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_version: str = "2025-08-27.basil"
    currency: str = "usd"

    # Processed webhook event store
    database_url: str = "sqlite:///./donation_gateway.db"
    webhook_dedupe_enabled: bool = True

    # Service
    service_name: str = "donation-gateway"
    log_level: str = "INFO"


settings = Settings()
