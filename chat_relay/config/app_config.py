from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Environment
    app_env: str = Field("development")
    app_debug: bool = Field(False)
    app_host: str = Field("0.0.0.0")
    app_port: int = Field(8000)
    cors_allow_origins: str = Field("*")

    # Logging
    log_level: str = Field("INFO")
    log_file: Optional[str] = Field(None)

    # Abuse controls
    rate_limit_window_ms: int = Field(2000)
    rate_limit_max_entries: int = Field(10_000)
    rate_limit_sweep_interval: int = Field(1000)
    max_message_length: int = Field(500)

    # Hard ceiling on a single relay, in seconds
    app_max_duration: float = Field(30.0)

    @field_validator("app_env")
    def validate_app_env(cls, value: str) -> str:
        if value not in ["development", "staging", "production"]:
            raise ValueError("APP_ENV must be development, staging, or production")
        return value

    @field_validator("log_level")
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be a valid Loguru level")
        return level

    @field_validator(
        "rate_limit_window_ms",
        "rate_limit_max_entries",
        "rate_limit_sweep_interval",
        "max_message_length",
    )
    def validate_positive(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name.upper()} must be positive")
        return value

    @field_validator("app_max_duration")
    def validate_max_duration(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("APP_MAX_DURATION must be positive")
        return value

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_app_config() -> AppConfig:
    """Return a cached application configuration instance."""

    return AppConfig()
