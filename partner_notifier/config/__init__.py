"""Configuration management module for Partner Notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, load_settings_file
from .models import (
    AppConfig,
    EmailConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    ServiceLayerConfig,
    SMSConfig,
    TemplateConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_settings_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "EmailConfig",
    "LoggingConfig",
    "ServiceLayerConfig",
    "SMSConfig",
    "TemplateConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
