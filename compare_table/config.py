"""
Service configuration.

Values are read from the environment (prefix ``COMPARE_``) or a local ``.env``
file, e.g. ``COMPARE_UPSTREAM_URL`` or ``COMPARE_LOG_LEVEL``.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .rules import DEFAULT_SUBJECT_COUNT


class Settings(BaseSettings):
    """Upstream service and normalizer settings"""

    model_config = SettingsConfigDict(
        env_prefix="COMPARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    upstream_url: str = Field(
        default="https://geekageddon-api.vercel.app/api/geekseek",
        description="GET endpoint of the places/compare search service",
    )
    upstream_timeout: float = Field(
        default=30.0,
        description="Upstream request timeout in seconds",
    )
    subject_count: int = Field(
        default=DEFAULT_SUBJECT_COUNT,
        ge=1,
        description="Number of compared subjects a table is expected to hold",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance, usable with FastAPI's Depends()"""
    return Settings()
