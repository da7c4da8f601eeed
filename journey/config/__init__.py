"""Configuration for the Journey client."""

from .provider import (
    STORAGE_MEMORY,
    STORAGE_REDIS,
    ConfigProvider,
    EnvConfigProvider,
    JourneyConfig,
)

__all__ = [
    "ConfigProvider",
    "EnvConfigProvider",
    "JourneyConfig",
    "STORAGE_MEMORY",
    "STORAGE_REDIS",
]
