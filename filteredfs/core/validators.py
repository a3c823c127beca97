"""
FilteredFS Core: Input Validators.

Validation for the inputs handed to the filesystem at startup: the source
directory, the mount point, the rules file location and rules file entries.
"""
import os
import re
from pathlib import Path
from typing import Pattern

from filteredfs.core.constants import ErrorCode, Limits


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_path(path: str) -> bool:
    """Validate that a path string is usable.

    Args:
        path: Path to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If path is invalid
    """
    if not path:
        raise ValidationError("Path cannot be empty")

    if not isinstance(path, str):
        raise ValidationError(f"Path must be string, got {type(path)}")

    if len(path) > Limits.MAX_PATH_LENGTH:
        raise ValidationError(f"Path exceeds maximum length ({Limits.MAX_PATH_LENGTH})")

    if "\0" in path:
        raise ValidationError("Path contains null bytes")

    return True


def validate_source_directory(source: str) -> str:
    """Validate the directory to expose through the mount.

    Args:
        source: Source directory path

    Returns:
        Absolute path of the source directory

    Raises:
        ValidationError: If the source is missing or not a directory
    """
    if not source:
        raise ValidationError("A source directory was not provided", ErrorCode.NOT_FOUND)

    validate_path(source)

    if not os.path.exists(source):
        raise ValidationError(
            f"The following source directory does not exist: {source}", ErrorCode.NOT_FOUND
        )

    if not os.path.isdir(source):
        raise ValidationError(f"Source is not a directory: {source}")

    if not os.access(source, os.R_OK | os.X_OK):
        raise ValidationError(
            f"Source directory is not accessible: {source}", ErrorCode.PERMISSION_DENIED
        )

    return os.path.abspath(source)


def validate_mount_point(mount: str) -> str:
    """Validate the mount point directory.

    Args:
        mount: Mount point path

    Returns:
        Absolute path of the mount point

    Raises:
        ValidationError: If the mount point is missing or not a directory
    """
    validate_path(mount)

    mount_path = Path(mount)

    if not mount_path.exists():
        raise ValidationError(f"Mount point does not exist: {mount}", ErrorCode.NOT_FOUND)

    if not mount_path.is_dir():
        raise ValidationError(f"Mount point is not a directory: {mount}")

    return str(mount_path.absolute())


def validate_rules_file(rules_file: str) -> str:
    """Validate the rules file location.

    Raises:
        ValidationError: If the rules file is missing or unreadable
    """
    validate_path(rules_file)

    path = Path(rules_file)

    if not path.exists():
        raise ValidationError(f"Rules file does not exist: {rules_file}", ErrorCode.NOT_FOUND)

    if not path.is_file():
        raise ValidationError(f"Rules file path is not a file: {rules_file}")

    return str(path)


def validate_regex(pattern: str) -> Pattern[str]:
    """Validate and compile a regex pattern.

    Args:
        pattern: Regex pattern string

    Returns:
        Compiled regex pattern

    Raises:
        ValidationError: If pattern is invalid
    """
    if not pattern:
        raise ValidationError("Regex pattern cannot be empty")

    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(f"Invalid regex pattern: {e}")


def validate_extension(extension: str) -> bool:
    """Validate an extension from an extensionPriority declaration.

    Raises:
        ValidationError: If the extension could never be a filename suffix
    """
    if not extension:
        raise ValidationError("Extension cannot be empty")

    if "/" in extension or "\0" in extension:
        raise ValidationError(f"Invalid extension: {extension!r}")

    if len(extension) > Limits.MAX_FILENAME_LENGTH:
        raise ValidationError(f"Extension exceeds maximum length ({Limits.MAX_FILENAME_LENGTH})")

    return True
