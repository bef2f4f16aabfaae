"""Configuration for the BirdWeather client."""

from .settings import (
    API_ENDPOINT,
    DEFAULT_CONFIG_YAML,
    MAX_PAGE_SIZE,
    ClientConfig,
    create_default_config,
)

__all__ = [
    "API_ENDPOINT",
    "DEFAULT_CONFIG_YAML",
    "MAX_PAGE_SIZE",
    "ClientConfig",
    "create_default_config",
]
