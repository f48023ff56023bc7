from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("pedident.config")

IN_MEMORY_DATABASE_URL = "sqlite+pysqlite:///:memory:"


class Settings(BaseSettings):
    app_env: str = "development"
    database_url: str = IN_MEMORY_DATABASE_URL
    report_title: str = "Pedident Dental Charting System"
    default_location: str = "Faculty"
    keymap_path: str | None = Field(default=None, alias="KEYMAP_PATH")
    session_limit: int = Field(default=100, alias="CHARTING_SESSION_LIMIT")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("session_limit", mode="before")
    @classmethod
    def _coerce_empty_ints(cls, value, info):
        if value in {"", None}:
            return cls.model_fields[info.field_name].default
        return value


def _is_production(app_env: str) -> bool:
    return app_env.strip().lower() in {"prod", "production"}


def _is_in_memory(database_url: str) -> bool:
    return database_url.startswith("sqlite") and ":memory:" in database_url


def validate_settings(settings: Settings) -> None:
    production = _is_production(settings.app_env)
    failures: list[str] = []
    warnings: list[str] = []

    if _is_in_memory(settings.database_url):
        msg = "DATABASE_URL is in-memory; charts are lost on restart"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)

    if settings.session_limit < 1:
        failures.append("CHARTING_SESSION_LIMIT must be at least 1")

    if not settings.report_title.strip():
        warnings.append("REPORT_TITLE is empty")

    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    if failures:
        raise RuntimeError("Config validation failed: " + "; ".join(failures))


settings = Settings()
