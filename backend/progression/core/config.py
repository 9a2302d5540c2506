"""
Settings for the progression service.

Values come from environment variables (or a local ``.env``); names are
case-insensitive, so ``ACHIEVEMENTS_CACHE_TTL_SECONDS=60`` works.
"""
import json
import warnings
from functools import lru_cache
from typing import Any, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "Read Master Progression"
    api_debug: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Tokens are issued by the account service; we only verify them
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"

    # Logging (level defaults to DEBUG in debug mode, INFO otherwise)
    log_level: Optional[str] = None
    log_json: Optional[bool] = None

    # Database
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_user: str = "readmaster"
    postgres_password: str = "readmaster"
    postgres_db: str = "read_master"
    database_url: Optional[str] = None
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_echo: bool = False

    # Redis
    redis_url: str = "redis://redis:6379/0"

    # Per-user achievement list cache
    achievements_cache_ttl_seconds: int = 30

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Accept a JSON list or a single origin."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [v]
        return v

    @property
    def database_url_computed(self) -> str:
        """``database_url`` if set, else an asyncpg URL from the postgres_* parts."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.api_debug else "INFO"

    @property
    def use_json_logs(self) -> bool:
        if self.log_json is not None:
            return self.log_json
        return not self.api_debug


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    if not settings.api_debug and settings.secret_key == DEFAULT_SECRET_KEY:
        warnings.warn(
            "SECURITY WARNING: SECRET_KEY is the development default. "
            "Set it to the key the auth service signs tokens with.",
            UserWarning,
        )

    return settings


settings = get_settings()
