#!/usr/bin/env python3
"""Command-line interface for FilteredFS.

This module provides the CLI for mounting a filtered read-only view:
- Argument parsing, including mount(8)-style "-o key=value" options
- Settings file loading and merging (YAML, environment, arguments)
- Mount point validation
- Logging setup
- Help and version information

Example:
    >>> from filteredfs.cli import parse_arguments
    >>> args = parse_arguments(["/mnt/music", "-o", "source=/srv/music,invert"])
"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

from filteredfs.core.constants import (
    DEFAULT_RULES_FILE,
    EXEC_NAME,
    FILTEREDFS_VERSION,
    ConfigKey,
    ExitCode,
)
from filteredfs.core.validators import ValidationError, validate_mount_point
from filteredfs.infrastructure.config_manager import ConfigError, ConfigManager, ConfigSource
from filteredfs.infrastructure.logger import Logger, LogLevel, set_global_logger

DESCRIPTION = "FilteredFS - read-only filtered view of a directory tree"

# "-o" options consumed by FilteredFS rather than passed on to FUSE
MOUNT_OPTION_KEYS = {
    "source": ConfigKey.SOURCE,
    "config": ConfigKey.RULES_FILE,
    "invert": ConfigKey.INVERT,
    "preserve-perms": ConfigKey.PRESERVE_PERMISSIONS,
    "debug": ConfigKey.DEBUG,
}


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    def __init__(self, message: str, exit_code: int = ExitCode.FAILURE):
        super().__init__(message)
        self.exit_code = exit_code


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If the mount point is unusable
    """
    parser = argparse.ArgumentParser(
        prog=EXEC_NAME,
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Hide everything matching the default rules file
  {EXEC_NAME} /mnt/music -o source=/srv/music

  # Only show what the rules file allows
  {EXEC_NAME} /mnt/music --source /srv/music --config music.rc --invert

  # Run in the foreground with debug logging
  {EXEC_NAME} /mnt/music -o source=/srv/music,debug --foreground

Rules file format (default: {DEFAULT_RULES_FILE}):
  # comment
  \\.flac$                       regex matched against the full path
  |type: LNK                    CHR, BLK, FIFO, LNK or SOCK
  |extensionPriority:flac,mp3   hide a.mp3 when a.flac exists
        """,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {FILTEREDFS_VERSION}",
    )

    parser.add_argument(
        "mount",
        metavar="MOUNTPOINT",
        help="Mount point directory",
    )

    parser.add_argument(
        "-o",
        metavar="OPT[,OPT...]",
        action="append",
        dest="mount_options",
        default=[],
        help="Mount options: source=DIR, config=FILE, invert, preserve-perms, "
        "debug; anything else is passed to FUSE",
    )

    # Filter options
    filter_group = parser.add_argument_group("filter options")

    filter_group.add_argument(
        "-s",
        "--source",
        metavar="DIR",
        help="Directory to mount read-only and filter",
    )

    filter_group.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        dest="rules_file",
        help=f"Rules file path (default: {DEFAULT_RULES_FILE})",
    )

    filter_group.add_argument(
        "--invert",
        action="store_true",
        default=None,
        help="The rules file specifies files to allow",
    )

    filter_group.add_argument(
        "--preserve-perms",
        action="store_true",
        default=None,
        dest="preserve_permissions",
        help="Do not clear write permission bits",
    )

    filter_group.add_argument(
        "--settings",
        metavar="FILE",
        help="YAML settings file",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "-f",
        "--foreground",
        action="store_true",
        default=None,
        help="Run in foreground (don't daemonize)",
    )

    log_group.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also log to this file",
    )

    log_group.add_argument(
        "--no-syslog",
        action="store_false",
        default=None,
        dest="syslog",
        help="Do not log to syslog",
    )

    # FUSE options
    fuse_group = parser.add_argument_group("FUSE options")

    fuse_group.add_argument(
        "--allow-other",
        action="store_true",
        default=None,
        help="Allow other users to access the filesystem",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        CLIError: If validation fails
    """
    try:
        validate_mount_point(args.mount)
    except ValidationError as e:
        raise CLIError(str(e))


def parse_mount_options(option_strings: List[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Split "-o" option strings into FilteredFS settings and FUSE options.

    Args:
        option_strings: Values given to "-o", each possibly comma-separated

    Returns:
        (settings, fuse_options)

    Raises:
        CLIError: If a FilteredFS option is malformed
    """
    settings: Dict[str, Any] = {}
    fuse_options: Dict[str, Any] = {}

    for option_string in option_strings:
        for option in option_string.split(","):
            option = option.strip()
            if not option:
                continue

            key, sep, value = option.partition("=")

            if key in MOUNT_OPTION_KEYS:
                setting = MOUNT_OPTION_KEYS[key]
                if setting in (ConfigKey.SOURCE, ConfigKey.RULES_FILE):
                    if not sep or not value:
                        raise CLIError(f"Mount option {key} requires a value")
                    settings[setting] = value
                else:
                    if sep:
                        raise CLIError(f"Mount option {key} does not take a value")
                    settings[setting] = True
            else:
                fuse_options[key] = value if sep else True

    return settings, fuse_options


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build the settings dictionary from command-line arguments.

    Explicit flags take precedence over "-o" options.

    Args:
        args: Parsed arguments namespace

    Returns:
        Settings dictionary for ConfigManager (unset values are None)
    """
    config, fuse_options = parse_mount_options(args.mount_options)

    explicit = {
        ConfigKey.SOURCE: args.source,
        ConfigKey.RULES_FILE: args.rules_file,
        ConfigKey.INVERT: args.invert,
        ConfigKey.PRESERVE_PERMISSIONS: args.preserve_permissions,
        ConfigKey.DEBUG: args.debug,
        ConfigKey.FOREGROUND: args.foreground,
        ConfigKey.ALLOW_OTHER: args.allow_other,
        ConfigKey.LOG_FILE: args.log_file,
        ConfigKey.SYSLOG: args.syslog,
    }
    for key, value in explicit.items():
        if value is not None:
            config[key] = value

    if fuse_options:
        config[ConfigKey.FUSE_OPTIONS] = fuse_options

    return config


def load_settings(args: argparse.Namespace) -> ConfigManager:
    """
    Merge defaults, settings file, environment and arguments.

    Raises:
        CLIError: If the settings file is unusable
    """
    try:
        config = ConfigManager(settings_file=args.settings)
        config.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)
        config.validate()
    except ConfigError as e:
        raise CLIError(f"Invalid settings: {e.message}")

    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging based on settings.

    Logs go to stderr, to syslog when available, and to a log file if one
    is configured. The logger also becomes the process-wide default.

    Args:
        config: Merged settings

    Returns:
        Configured logger instance
    """
    level = LogLevel.DEBUG if config.get_bool(ConfigKey.DEBUG) else LogLevel.INFO
    logger = Logger(EXEC_NAME, level=level)

    if config.get_bool(ConfigKey.SYSLOG):
        handler = logger.create_syslog_handler()
        if handler is not None:
            logger.add_handler(handler)

    log_file = config.get(ConfigKey.LOG_FILE)
    if log_file:
        try:
            logger.add_handler(logger.create_file_handler(log_file))
        except OSError as e:
            raise CLIError(f"Cannot open log file {log_file}: {e}")

    set_global_logger(logger)
    return logger


def validate_runtime_environment() -> None:
    """
    Validate runtime environment for FilteredFS.

    Raises:
        CLIError: If FUSE is unavailable
    """
    if not os.path.exists("/dev/fuse"):
        raise CLIError(
            "/dev/fuse not found\n" "FUSE kernel module may not be loaded\n" "Try: sudo modprobe fuse"
        )


def print_banner(logger: Logger) -> None:
    """Log startup banner with version information."""
    logger.info(f"{EXEC_NAME} v{FILTEREDFS_VERSION}")
    logger.info(DESCRIPTION)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing and settings, then passes control to
    filteredfs.main for mounting.

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)

        validate_runtime_environment()

        config = load_settings(args)

        logger = setup_logging(config)

        for i, arg in enumerate(argv if argv is not None else sys.argv[1:]):
            logger.debug(f"    arg {i} = {arg}")

        if config.get_bool(ConfigKey.FOREGROUND):
            print_banner(logger)

        from filteredfs.main import run_filteredfs

        return run_filteredfs(args.mount, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return ExitCode.INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
