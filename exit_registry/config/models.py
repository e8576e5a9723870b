"""Pydantic models describing exit-registry configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_FEED_URL = "https://www.dan.me.uk/torlist/?exit"
DEFAULT_LOOKUP_TEMPLATE = "https://ipinfo.io/{address}/country"


class FeedConfig(BaseModel):
    """Upstream plaintext feed listing one exit-node address per line."""

    url: str = DEFAULT_FEED_URL
    timeout: float = 30.0

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value


class EnrichmentConfig(BaseModel):
    """Country lookup service settings."""

    url_template: str = DEFAULT_LOOKUP_TEMPLATE
    token: str | None = Field(
        default=None,
        description="Optional API token appended as the `token` query parameter.",
    )
    timeout: float = 10.0

    @field_validator("url_template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if "{address}" not in value:
            raise ValueError("url_template must contain an {address} placeholder")
        return value

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value


class ScheduleConfig(BaseModel):
    """When the ingestion pipeline runs."""

    interval_seconds: int = 3600
    run_on_start: bool = True

    @model_validator(mode="after")
    def _validate_interval(self) -> "ScheduleConfig":
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        return self


class StorageConfig(BaseModel):
    """SQLite database location."""

    database: Path = Field(default=Path("data/exit_nodes.db"))

    @field_validator("database", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_database(self, base_dir: Path) -> Path:
        """Return the database path, relative paths anchored at ``base_dir``."""

        if not self.database.is_absolute():
            return (base_dir / self.database).resolve()
        return self.database


class ServerConfig(BaseModel):
    """HTTP listener settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)


class AppConfig(BaseModel):
    """Top level configuration document."""

    feed: FeedConfig = Field(default_factory=FeedConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


__all__ = [
    "AppConfig",
    "DEFAULT_FEED_URL",
    "DEFAULT_LOOKUP_TEMPLATE",
    "EnrichmentConfig",
    "FeedConfig",
    "ScheduleConfig",
    "ServerConfig",
    "StorageConfig",
]
