#!/usr/bin/env python3
r"""Regex name patterns for the FilteredFS rules file.

Every plain line of the rules file is a regular expression matched against
the full virtual path. This module collects those lines, rejects the ones that
do not compile on their own, and freezes the survivors into a single
``NamePattern`` that matches when any line matches.

POSIX bracket classes such as ``[[:digit:]]`` are common in rules files
written for extended regular expressions; they are rewritten to the
equivalent Python character ranges before compiling.

Example:
    >>> matcher = PatternMatcher()
    >>> matcher.add_regex_pattern(r"\.flac$")
    True
    >>> matcher.add_regex_pattern(r"^/tmp/")
    True
    >>> matcher.build().search("/music/a.flac")
    True
"""

from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from filteredfs.core.validators import ValidationError, validate_regex
from filteredfs.infrastructure.logger import Logger, get_logger

# POSIX character classes and their Python equivalents (inside brackets)
POSIX_CLASSES = {
    "[:alnum:]": "a-zA-Z0-9",
    "[:alpha:]": "a-zA-Z",
    "[:blank:]": " \\t",
    "[:cntrl:]": "\\x00-\\x1f\\x7f",
    "[:digit:]": "0-9",
    "[:graph:]": "\\x21-\\x7e",
    "[:lower:]": "a-z",
    "[:print:]": "\\x20-\\x7e",
    "[:punct:]": "!-/:-@\\[-`{-~",
    "[:space:]": " \\t\\n\\r\\f\\v",
    "[:upper:]": "A-Z",
    "[:xdigit:]": "0-9A-Fa-f",
}


def translate_posix_classes(pattern: str) -> str:
    """Rewrite POSIX bracket classes into Python regex ranges.

    Args:
        pattern: Extended regular expression

    Returns:
        Pattern usable by the ``re`` module
    """
    for posix, python in POSIX_CLASSES.items():
        pattern = pattern.replace(posix, python)
    return pattern


@dataclass(frozen=True)
class NamePattern:
    """Immutable OR of all compiled name patterns.

    Lines are kept as separate compiled expressions rather than one merged
    alternation so that group numbers and back-references inside a line keep
    their meaning.
    """

    compiled: Tuple[Pattern[str], ...]

    @property
    def source(self) -> str:
        """The equivalent single alternation, for logging."""
        return "|".join(f"({p.pattern})" for p in self.compiled)

    def search(self, path: str) -> bool:
        """Check whether any pattern matches anywhere in ``path``."""
        return any(p.search(path) for p in self.compiled)

    def __len__(self) -> int:
        return len(self.compiled)


class PatternMatcher:
    """Collects rules file regex lines.

    Lines that fail to compile are logged and skipped; they never make the
    whole rules file fail.
    """

    def __init__(self, logger: Optional[Logger] = None):
        self._patterns: List[Pattern[str]] = []
        self._logger = logger or get_logger()

    def add_regex_pattern(self, pattern: str, line_number: Optional[int] = None) -> bool:
        """Add a regex pattern line.

        Args:
            pattern: Regular expression (extended syntax)
            line_number: Rules file line, for error reporting

        Returns:
            True if the pattern compiled and was added
        """
        try:
            compiled = validate_regex(translate_posix_classes(pattern))
        except ValidationError as e:
            self._logger.error(
                f'RegEx error: "{e}" while parsing pattern: "{pattern}"', line=line_number
            )
            return False

        self._logger.debug(f"Pattern: {pattern}")
        self._patterns.append(compiled)
        return True

    def build(self) -> Optional[NamePattern]:
        """Freeze the collected patterns.

        Returns:
            NamePattern, or None when no pattern line was accepted
        """
        if not self._patterns:
            return None
        return NamePattern(compiled=tuple(self._patterns))

    def __len__(self) -> int:
        return len(self._patterns)
