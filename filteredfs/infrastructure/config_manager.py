#!/usr/bin/env python3
"""Layered process settings for FilteredFS.

This module merges the process-level settings (source directory, rules file,
invert and preserve-permissions flags, logging and FUSE options) from:
- Compiled defaults
- An optional YAML settings file
- Environment variables (FILTEREDFS_*)
- Command-line arguments

Settings are read once at startup. The filter rules themselves live in the
line-oriented rules file and are parsed by ``filteredfs.rules.ruleset``.

Example:
    >>> config = ConfigManager()
    >>> config.load_file("filteredfs.yaml")
    >>> config.load_dict({"invert": True}, ConfigSource.CLI_ARGS)
    >>> config.get("invert")
    True
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from filteredfs.core.constants import DEFAULT_CONFIG, ENV_PREFIX, ConfigKey, ErrorCode


class ConfigSource(Enum):
    """Configuration source precedence levels."""

    COMPILED_DEFAULTS = 1  # Lowest precedence
    SETTINGS_FILE = 2
    ENVIRONMENT = 3
    CLI_ARGS = 4  # Highest precedence


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


_BOOLEAN_KEYS = (
    ConfigKey.INVERT,
    ConfigKey.PRESERVE_PERMISSIONS,
    ConfigKey.DEBUG,
    ConfigKey.FOREGROUND,
    ConfigKey.ALLOW_OTHER,
    ConfigKey.SYSLOG,
)


class ConfigManager:
    """Thread-safe layered settings manager.

    Values are looked up from the highest precedence source down:
    CLI arguments, environment, settings file, compiled defaults.
    """

    def __init__(self, settings_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            settings_file: Optional YAML settings file to load
            load_environment: Whether to read FILTEREDFS_* variables
        """
        self._config: Dict[ConfigSource, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        self._config[ConfigSource.COMPILED_DEFAULTS] = copy.deepcopy(DEFAULT_CONFIG)

        if settings_file:
            self.load_file(settings_file)

        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.SETTINGS_FILE) -> None:
        """Load settings from a YAML file.

        Args:
            file_path: Path to YAML settings file
            source: Configuration source level

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            raise ConfigError(f"Settings file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}")
        except OSError as e:
            raise ConfigError(f"Error loading settings {file_path}: {e}", ErrorCode.PERMISSION_DENIED)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ConfigError(f"Settings file must contain a YAML mapping: {file_path}")

        # Accept both a bare mapping and one nested under "filteredfs:"
        if isinstance(config_data.get("filteredfs"), dict):
            config_data = config_data["filteredfs"]

        self.load_dict(config_data, source)

    def load_dict(self, config_data: Dict[str, Any], source: ConfigSource = ConfigSource.CLI_ARGS) -> None:
        """Load settings from a dictionary, ignoring None values.

        Args:
            config_data: Settings dictionary
            source: Configuration source level
        """
        cleaned = {k: v for k, v in config_data.items() if v is not None}
        with self._lock:
            self._config[source] = cleaned

    def _load_environment(self) -> None:
        """Load settings from environment variables.

        Environment variables in format: FILTEREDFS_KEY=value
        Example: FILTEREDFS_PRESERVE_PERMISSIONS=true
        """
        env_config = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            name = key[len(ENV_PREFIX):].lower()
            if name not in DEFAULT_CONFIG:
                continue

            env_config[name] = self._parse_env_value(value)

        if env_config:
            with self._lock:
                self._config[ConfigSource.ENVIRONMENT] = env_config

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value.

        Args:
            value: String value from environment

        Returns:
            Parsed value (bool or str)
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get setting by key.

        Args:
            key: Setting name (e.g., "source")
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        with self._lock:
            for source in sorted(self._config.keys(), key=lambda s: s.value, reverse=True):
                value = self._config[source].get(key)
                if value is not None:
                    return value

            return default

    def get_bool(self, key: str) -> bool:
        """Get a boolean setting.

        Raises:
            ConfigError: If the value is not a boolean
        """
        value = self.get(key, False)
        if not isinstance(value, bool):
            raise ConfigError(f"Expected boolean for {key}, got {type(value).__name__}")
        return value

    def get_all(self) -> Dict[str, Any]:
        """Get merged settings from all sources.

        Returns:
            Merged settings dictionary
        """
        with self._lock:
            merged: Dict[str, Any] = {}

            for source in sorted(self._config.keys(), key=lambda s: s.value):
                for key, value in self._config[source].items():
                    if isinstance(value, dict) and isinstance(merged.get(key), dict):
                        merged[key] = {**merged[key], **value}
                    else:
                        merged[key] = value

            return merged

    def validate(self) -> bool:
        """Validate setting types.

        Returns:
            True if valid

        Raises:
            ConfigError: If validation fails
        """
        for key in _BOOLEAN_KEYS:
            self.get_bool(key)

        fuse_options = self.get(ConfigKey.FUSE_OPTIONS, {})
        if not isinstance(fuse_options, dict):
            raise ConfigError(
                f"Expected mapping for {ConfigKey.FUSE_OPTIONS}, got {type(fuse_options).__name__}"
            )

        for key in (ConfigKey.SOURCE, ConfigKey.RULES_FILE, ConfigKey.LOG_FILE):
            value = self.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"Expected string for {key}, got {type(value).__name__}")

        return True

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Clear settings.

        Args:
            source: Specific source to clear, or None for all except defaults
        """
        with self._lock:
            if source:
                if source in self._config and source != ConfigSource.COMPILED_DEFAULTS:
                    del self._config[source]
            else:
                for s in [s for s in self._config if s != ConfigSource.COMPILED_DEFAULTS]:
                    del self._config[s]
