"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    AppConfig,
    EnrichmentConfig,
    FeedConfig,
    ScheduleConfig,
    ServerConfig,
    StorageConfig,
)

__all__ = [
    "AppConfig",
    "ConfigLocator",
    "ConfigRepository",
    "EnrichmentConfig",
    "FeedConfig",
    "ScheduleConfig",
    "ServerConfig",
    "StorageConfig",
]
