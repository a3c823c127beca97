"""
FilteredFS Core: Constants and Type Definitions

This module provides system-wide constants, error codes, and type definitions
shared by the rule parser, the filter engine and the FUSE operations.
"""
import os
import stat
from enum import Enum, IntEnum
from typing import Dict, TypeAlias

# Version information
FILTEREDFS_VERSION = "1.8.0"
EXEC_NAME = "filteredfs"


class ErrorCode(IntEnum):
    """Standardized error codes for FilteredFS startup failures."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    DEPENDENCY_ERROR = 5  # Missing dependency (libfuse)
    INTERNAL_ERROR = 6  # Bug in FilteredFS


class ExitCode(IntEnum):
    """Process exit codes reported by the command-line entry point."""

    OK = 0
    FAILURE = 1
    BAD_SOURCE = 2  # Source directory missing or not given
    BAD_RULES = 3  # Rules file unreadable or empty of rules
    INTERRUPTED = 130


# Type aliases for clarity
VirtualPath: TypeAlias = str
RealPath: TypeAlias = str


class FileType(Enum):
    """File type tag used by the filter engine."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    BLOCK_DEVICE = "block"
    CHARACTER_DEVICE = "char"
    FIFO = "fifo"
    SOCKET = "socket"
    UNKNOWN = "unknown"

    @classmethod
    def from_mode(cls, mode: int) -> "FileType":
        """Determine file type from an st_mode value."""
        if stat.S_ISREG(mode):
            return cls.REGULAR
        elif stat.S_ISDIR(mode):
            return cls.DIRECTORY
        elif stat.S_ISLNK(mode):
            return cls.SYMLINK
        elif stat.S_ISBLK(mode):
            return cls.BLOCK_DEVICE
        elif stat.S_ISCHR(mode):
            return cls.CHARACTER_DEVICE
        elif stat.S_ISFIFO(mode):
            return cls.FIFO
        elif stat.S_ISSOCK(mode):
            return cls.SOCKET
        else:
            return cls.UNKNOWN


# Names accepted by the "|type:" rules file directive
TYPE_FILTER_NAMES: Dict[str, FileType] = {
    "CHR": FileType.CHARACTER_DEVICE,
    "BLK": FileType.BLOCK_DEVICE,
    "FIFO": FileType.FIFO,
    "LNK": FileType.SYMLINK,
    "SOCK": FileType.SOCKET,
}

# Permission bits cleared from reported metadata (chmod a-w)
WRITE_PERMISSION_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH

# open() flags refused by the read-only mount
WRITE_OPEN_FLAGS = os.O_WRONLY | os.O_RDWR | os.O_CREAT | os.O_EXCL | os.O_TRUNC

# Default location of the rules file
DEFAULT_RULES_FILE = "/etc/filteredfs.rc"

# Environment variable prefix for process settings
ENV_PREFIX = "FILTEREDFS_"


class Limits:
    """System limits."""

    MAX_PATH_LENGTH = 4096
    MAX_FILENAME_LENGTH = 255


class ConfigKey:
    """Process settings key constants."""

    SOURCE = "source"
    RULES_FILE = "rules_file"
    INVERT = "invert"
    PRESERVE_PERMISSIONS = "preserve_permissions"
    DEBUG = "debug"
    FOREGROUND = "foreground"
    ALLOW_OTHER = "allow_other"
    LOG_FILE = "log_file"
    SYSLOG = "syslog"
    FUSE_OPTIONS = "fuse_options"


# Default process settings
DEFAULT_CONFIG = {
    ConfigKey.SOURCE: None,
    ConfigKey.RULES_FILE: DEFAULT_RULES_FILE,
    ConfigKey.INVERT: False,
    ConfigKey.PRESERVE_PERMISSIONS: False,
    ConfigKey.DEBUG: False,
    ConfigKey.FOREGROUND: False,
    ConfigKey.ALLOW_OTHER: False,
    ConfigKey.LOG_FILE: None,
    ConfigKey.SYSLOG: True,
    ConfigKey.FUSE_OPTIONS: {},
}
