"""
Configuration management for the hospital billing client
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    APP_NAME: str = "Hospital Billing Client"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = Field(default="INFO")

    # REST API
    API_URL: str = Field(default="http://localhost:3001/api")
    REQUEST_TIMEOUT: float = Field(default=10.0, gt=0)  # seconds

    # Durable client state
    TOKEN_STORAGE_PATH: Path = Field(
        default=Path.home() / ".hospital_billing" / "storage.json"
    )
    TOKEN_STORAGE_KEY: str = Field(default="token", min_length=1)

    # Display
    CURRENCY_SYMBOL: str = Field(default="₦")

    @field_validator("API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> str:
        """Endpoints are joined as API_URL + '/path'."""
        return str(v).rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if str(v).upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return str(v).upper()

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
