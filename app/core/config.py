"""
Settings for the attendance review backend, read from the environment or .env
"""
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENVS = ("local", "staging", "prod")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
MIN_PROD_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True)

    # Database and token verification (required)
    DATABASE_URL: str = Field(..., description="PostgreSQL in production, SQLite locally")
    JWT_SECRET_KEY: str = Field(..., description="Secret shared with the authentication service")
    JWT_ALGORITHM: str = "HS256"

    APP_ENV: str = Field(default="local", description="local, staging or prod")
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = Field(default="*", description="Comma-separated CORS origins; '*' for local only")
    VERSION: Optional[str] = Field(default=None, description="git SHA or semver")

    # Photo evidence storage
    UPLOAD_PATH: str = "./uploads"
    UPLOAD_MAX_SIZE: int = Field(default=10 * 1024 * 1024, description="Bytes per photo")
    UPLOAD_ALLOWED_TYPES: str = "image/jpeg,image/png,image/jpg"

    # How far after server receipt an offline client timestamp may lie
    OFFLINE_CLOCK_SKEW_SECONDS: int = 300

    # Listings
    HISTORY_DEFAULT_LIMIT: int = 30
    HISTORY_MAX_LIMIT: int = 100
    REPORT_DEFAULT_WINDOW_DAYS: int = 30

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        if v not in APP_ENVS:
            raise ValueError(f"APP_ENV must be one of {list(APP_ENVS)}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {list(LOG_LEVELS)}")
        return level

    @field_validator("OFFLINE_CLOCK_SKEW_SECONDS")
    @classmethod
    def validate_skew(cls, v: int) -> int:
        if v < 0:
            raise ValueError("OFFLINE_CLOCK_SKEW_SECONDS must not be negative")
        return v

    @field_validator("UPLOAD_MAX_SIZE", "HISTORY_DEFAULT_LIMIT", "HISTORY_MAX_LIMIT", "REPORT_DEFAULT_WINDOW_DAYS")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    def validate_production(self) -> None:
        """
        Refuse weak production settings.

        Raises:
            ValueError: short JWT_SECRET_KEY or wildcard/empty ALLOWED_ORIGINS in prod
        """
        if self.APP_ENV != "prod":
            return
        if len(self.JWT_SECRET_KEY) < MIN_PROD_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET_KEY must be at least {MIN_PROD_SECRET_LENGTH} characters in production environment"
            )
        if self.ALLOWED_ORIGINS.strip() in ("", "*"):
            raise ValueError("ALLOWED_ORIGINS must be explicitly set (not '*') in production environment")

    def get_allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS.strip() == "*":
            return ["*"]
        return _split_csv(self.ALLOWED_ORIGINS)

    def get_allowed_upload_types(self) -> List[str]:
        """Accepted photo MIME types, lower-cased."""
        return [t.lower() for t in _split_csv(self.UPLOAD_ALLOWED_TYPES)]


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


settings = Settings()

if settings.APP_ENV == "prod":
    settings.validate_production()
