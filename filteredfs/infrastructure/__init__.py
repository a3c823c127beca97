"""FilteredFS Infrastructure Layer.

Services used by the filesystem and its entry point:
- ConfigManager: Layered process settings (defaults, YAML, environment, CLI)
- Logger: Structured logging to stderr, file and syslog
"""

from .config_manager import ConfigError, ConfigManager, ConfigSource
from .logger import Logger, LogLevel, get_logger, set_global_logger

__all__ = [
    # Logger exports
    "Logger",
    "LogLevel",
    "get_logger",
    "set_global_logger",
    # ConfigManager exports
    "ConfigSource",
    "ConfigError",
    "ConfigManager",
]
