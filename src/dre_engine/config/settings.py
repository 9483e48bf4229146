"""Configuration settings for the DRE engine."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Finance API
    finance_api_url: str = Field(
        default="http://localhost:8000", validation_alias="FINANCE_API_URL"
    )
    finance_api_token: SecretStr | None = Field(
        default=None, validation_alias="FINANCE_API_TOKEN"
    )
    finance_api_timeout: float = Field(
        default=30.0, validation_alias="FINANCE_API_TIMEOUT"
    )

    # Presentation
    currency_symbol: str = Field(default="R$", validation_alias="CURRENCY_SYMBOL")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
