"""Service settings read from the environment or a local .env file."""
from __future__ import annotations

from decimal import Decimal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = Field(default="invoice_gst", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    # Invoice numbering service
    NUMBERING_SERVICE_URL: str = Field(
        default="http://localhost:8080",
        validation_alias=AliasChoices("NUMBERING_SERVICE_URL", "numbering_service_url"),
    )
    NUMBERING_API_TOKEN: str = Field(default="", validation_alias=AliasChoices("NUMBERING_API_TOKEN", "numbering_api_token"))
    NUMBERING_TIMEOUT: float = Field(default=10.0, validation_alias=AliasChoices("NUMBERING_TIMEOUT", "numbering_timeout"))

    # Largest difference between stored and recomputed figures the validator accepts
    TOTALS_TOLERANCE: Decimal = Field(
        default=Decimal("0.01"),
        validation_alias=AliasChoices("TOTALS_TOLERANCE", "totals_tolerance"),
    )


settings = Settings()
