from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="LuxeLedger Customer Service")
    billing_service_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    billing_service_timeout: float = Field(
        default=10.0
    )
    billing_service_token: str | None = Field(
        default=None
    )
    use_mock_data: bool = Field(
        default=True
    )
    customer_store_path: Path | None = Field(
        default=None
    )
    identity_strategy: Literal["name", "name_mobile"] = Field(
        default="name"
    )
    currency: str = Field(
        default="INR"
    )
    log_level: str = Field(
        default="INFO"
    )

    model_config = SettingsConfigDict(env_prefix="LUXELEDGER_", case_sensitive=False)

    @field_validator("log_level", mode="before")
    def _upper_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("customer_store_path", mode="before")
    def _blank_path(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
