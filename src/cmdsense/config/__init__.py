"""Configuration module for cmdsense."""

from cmdsense.config.loader import ENV_MAPPINGS, get_config_paths, load_config
from cmdsense.config.settings import (
    ConfigValidationError,
    ContextSettings,
    HistorySettings,
    LoggingSettings,
    Settings,
)

__all__ = [
    # Settings
    "ConfigValidationError",
    "ContextSettings",
    "HistorySettings",
    "LoggingSettings",
    "Settings",
    # Loader
    "ENV_MAPPINGS",
    "get_config_paths",
    "load_config",
]
