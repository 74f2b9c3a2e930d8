"""Application settings powered by Pydantic BaseSettings."""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    policy_path: Path | None = Field(
        default=None, validation_alias="MODERATION_POLICY_PATH"
    )
    db_path: Path = Field(
        default=Path("state/moderation.sqlite"), validation_alias="MODERATION_DB_PATH"
    )
    analyzer_base_url: str | None = Field(
        default=None, validation_alias="ANALYZER_BASE_URL"
    )
    analyzer_api_key: str | None = Field(
        default=None, validation_alias="ANALYZER_API_KEY"
    )
    analyzer_timeout_seconds: float = Field(
        default=5.0, gt=0.0, le=60.0, validation_alias="ANALYZER_TIMEOUT_SECONDS"
    )
    source_tokens: dict[str, str] = Field(
        default_factory=dict, validation_alias="SOURCE_TOKENS"
    )
    allow_anonymous_sources: bool = Field(
        default=True, validation_alias="ALLOW_ANONYMOUS_SOURCES"
    )
    intake_workers: int = Field(default=8, ge=1, le=64, validation_alias="INTAKE_WORKERS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is a known stdlib level name."""
        name = v.upper()
        if not isinstance(logging.getLevelName(name), int):
            msg = f"Unknown log level: {v}"
            raise ValueError(msg)
        return name

    @property
    def analyzer_configured(self) -> bool:
        """Whether an external content analyzer endpoint is configured."""
        return bool(self.analyzer_base_url)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
