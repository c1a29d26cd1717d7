"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3002

    # Twenty CRM GraphQL API
    TWENTY_API_URL: str = ""
    TWENTY_API_TOKEN: str = ""
    TWENTY_TIMEOUT: float = 15.0
    TWENTY_MAX_ATTEMPTS: int = 3
    TWENTY_INITIAL_BACKOFF_MS: int = 200

    # SmartLead webhook shared secret (validation skipped when empty)
    SMARTLEAD_WEBHOOK_SECRET: str = ""

    # Monitoring
    SENTRY_DSN: str = ""

    # LLM categorization (recognized, not wired into processing)
    OPENROUTER_API_KEY: str = ""
    LLM_MODEL_NAME: str = ""
    OPENROUTER_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"

    def twenty_configured(self) -> bool:
        """Return True if both the Twenty API URL and token are set."""
        return bool(self.TWENTY_API_URL and self.TWENTY_API_TOKEN)

    def missing_settings(self) -> list[str]:
        """Names of optional-but-expected settings that are unset.

        Used at startup to emit one warning per gap.
        """
        missing = []
        for name in (
            "TWENTY_API_URL",
            "TWENTY_API_TOKEN",
            "SMARTLEAD_WEBHOOK_SECRET",
            "OPENROUTER_API_KEY",
            "LLM_MODEL_NAME",
        ):
            if not getattr(self, name):
                missing.append(name)
        return missing


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
