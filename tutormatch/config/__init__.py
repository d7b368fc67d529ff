"""Configuration management for the tutor/course matcher."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AppConfig,
    EmailConfig,
    FlowPolicy,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MatchingConfig,
    ServicesConfig,
)

__all__ = [
    "load_config",
    "validate_config_file",
    "load_environment_config",
    "AppConfig",
    "MatchingConfig",
    "FlowPolicy",
    "ServicesConfig",
    "EmailConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
