"""Runtime configuration.

Every option can be set through a ``DATAPLAYGROUND_<NAME>`` environment
variable or a ``.env`` file. Entry points call :func:`get_settings` once;
the resulting :class:`Settings` object is then passed down explicitly.
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"

Environment = Literal["development", "production", "testing"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Validated settings for the API server, the CLI and migrations."""

    model_config = SettingsConfigDict(
        env_prefix="DATAPLAYGROUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Data Playground"
    app_version: str = "0.1.0"
    environment: Environment = "development"
    debug: bool = False
    api_prefix: str = "/api"

    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = Field(default=1, ge=1)

    # Pool options apply to server databases only.
    database_url: str = "sqlite+aiosqlite:///./data/dataplayground.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600

    secret_key: str = Field(default=DEFAULT_SECRET_KEY, description="HS256 signing key for access tokens")
    access_token_expire_minutes: int = Field(default=7 * 24 * 60, ge=1)
    registration_code: str | None = Field(
        default=None,
        description="Shared code new accounts must present; unset means open registration",
    )

    cors_origins: Annotated[list[str], NoDecode] = Field(default=["http://localhost:3000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default=["Authorization", "Content-Type", "Accept"])

    log_level: LogLevel = "INFO"
    log_format: Literal["json", "console"] = "json"

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        """Accept a JSON array or a comma-separated string."""
        if not isinstance(value, str):
            return value
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [part.strip() for part in value.split(",") if part.strip()]

    @model_validator(mode="after")
    def check_consistency(self) -> "Settings":
        if self.is_production and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("DATAPLAYGROUND_SECRET_KEY must be changed before running in production")
        if self.uses_sqlite and self.workers > 1:
            raise ValueError(
                f"workers={self.workers} is not possible with SQLite; "
                "run a single worker or use a server database"
            )
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def uses_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment, once per process."""
    return Settings()
