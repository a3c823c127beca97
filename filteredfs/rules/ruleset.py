#!/usr/bin/env python3
"""Immutable rule set and the rules file parser.

The rules file is line oriented:

    # comment
    \\.flac$                        hide anything ending in .flac
    |type: LNK                     hide symbolic links
    |extensionPriority:flac,mp3    hide a.mp3 when a.flac exists

Parsing happens once at startup. The resulting ``RuleSet`` is frozen and is
shared by every FUSE worker thread without locking.

Example:
    >>> rules = parse_rules(["\\\\.flac$", "|type: FIFO"], source_root="/srv/music")
    >>> FileType.FIFO in rules.hidden_types
    True
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from filteredfs.core.constants import TYPE_FILTER_NAMES, ErrorCode, FileType
from filteredfs.core.validators import ValidationError, validate_extension, validate_rules_file
from filteredfs.infrastructure.logger import Logger, get_logger
from filteredfs.rules.patterns import NamePattern, PatternMatcher

IGNORE_LINE = re.compile(r"^#|^\s*$")
TYPE_LINE = re.compile(r"^\|\s*type:\s*(CHR|BLK|FIFO|LNK|SOCK)\s*$")
EXTENSION_PRIORITY_PREFIX = "|extensionPriority:"


class RulesError(Exception):
    """Fatal rules file error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


@dataclass(frozen=True)
class RuleSet:
    """Filter configuration for the lifetime of the mount.

    Attributes:
        source_root: Directory exposed through the mount
        name_pattern: OR of all regex lines, None if there were none
        hidden_types: Special file types named by "|type:" lines
        extension_priority: Extension to the extensions that shadow it
        invert: Rules list files to allow instead of files to hide
        preserve_permissions: Report write permission bits unchanged
    """

    source_root: str
    name_pattern: Optional[NamePattern] = None
    hidden_types: FrozenSet[FileType] = frozenset()
    extension_priority: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    invert: bool = False
    preserve_permissions: bool = False

    @property
    def has_rules(self) -> bool:
        """Whether any pattern, type or priority rule is configured."""
        return bool(self.name_pattern or self.hidden_types or self.extension_priority)


def build_extension_priority(
    declarations: Iterable[Sequence[str]],
) -> Mapping[str, Tuple[str, ...]]:
    """Build the extension shadowing map from priority declarations.

    For a declared list ``[e0, e1, ..., en]`` every earlier extension
    shadows every later one: ``ek`` maps to ``(e0, ..., ek-1)``. Several
    declarations accumulate.

    Args:
        declarations: Ordered extension lists, highest priority first,
            each extension including its leading dot

    Returns:
        Read-only mapping of extension to dominating extensions
    """
    priority: Dict[str, List[str]] = {}

    for extensions in declarations:
        for k, lower in enumerate(extensions):
            dominating = priority.setdefault(lower, [])
            for higher in extensions[:k]:
                if higher != lower and higher not in dominating:
                    dominating.append(higher)

    return MappingProxyType({ext: tuple(exts) for ext, exts in priority.items() if exts})


class RuleSetBuilder:
    """Accumulates rules file lines into a RuleSet."""

    def __init__(self, logger: Optional[Logger] = None):
        self._logger = logger or get_logger()
        self._patterns = PatternMatcher(logger=self._logger)
        self._types: Set[FileType] = set()
        self._priorities: List[List[str]] = []

    def add_line(self, line: str, line_number: Optional[int] = None) -> None:
        """Interpret one rules file line.

        Args:
            line: Raw line, trailing newline allowed
            line_number: 1-based line number for diagnostics
        """
        line = line.rstrip("\n")

        if IGNORE_LINE.search(line):
            return

        match = TYPE_LINE.match(line)
        if match:
            self._logger.debug(f"Type: {match.group(1)}")
            self._types.add(TYPE_FILTER_NAMES[match.group(1)])
            return

        if line.startswith(EXTENSION_PRIORITY_PREFIX):
            self._add_priority(line[len(EXTENSION_PRIORITY_PREFIX):], line_number)
            return

        self._patterns.add_regex_pattern(line, line_number)

    def _add_priority(self, declaration: str, line_number: Optional[int]) -> None:
        extensions = []
        for ext in declaration.split(","):
            try:
                validate_extension(ext)
            except ValidationError as e:
                self._logger.warning(f"Skipping extension: {e}", line=line_number)
                continue
            extensions.append("." + ext)

        if not extensions:
            return

        for k, lower in enumerate(extensions):
            for higher in extensions[:k]:
                self._logger.debug(f"{higher[1:]} overrides {lower[1:]}")

        self._priorities.append(extensions)

    def build(
        self, source_root: str, invert: bool = False, preserve_permissions: bool = False
    ) -> RuleSet:
        """Freeze the accumulated rules.

        Raises:
            RulesError: If no pattern, type or priority rule was found
        """
        rules = RuleSet(
            source_root=source_root,
            name_pattern=self._patterns.build(),
            hidden_types=frozenset(self._types),
            extension_priority=build_extension_priority(self._priorities),
            invert=invert,
            preserve_permissions=preserve_permissions,
        )

        if not rules.has_rules:
            raise RulesError("Rules file contains no valid pattern.")

        if rules.name_pattern:
            self._logger.debug(f"Full regex: {rules.name_pattern.source}")

        return rules


def parse_rules(
    lines: Iterable[str],
    source_root: str,
    invert: bool = False,
    preserve_permissions: bool = False,
    logger: Optional[Logger] = None,
) -> RuleSet:
    """Build a RuleSet from rules file lines.

    Args:
        lines: Rules file content, one rule per line
        source_root: Directory exposed through the mount
        invert: Treat the rules as an allow-list
        preserve_permissions: Keep write bits in reported metadata
        logger: Logger for diagnostics

    Returns:
        Frozen RuleSet

    Raises:
        RulesError: If no rule survives parsing
    """
    builder = RuleSetBuilder(logger=logger)
    for line_number, line in enumerate(lines, start=1):
        builder.add_line(line, line_number)
    return builder.build(source_root, invert=invert, preserve_permissions=preserve_permissions)


def load_rules(
    rules_file: str,
    source_root: str,
    invert: bool = False,
    preserve_permissions: bool = False,
    logger: Optional[Logger] = None,
) -> RuleSet:
    """Read and parse a rules file.

    Raises:
        RulesError: If the file cannot be read or contains no rule
    """
    try:
        validate_rules_file(rules_file)
    except ValidationError as e:
        raise RulesError(str(e), e.error_code)

    try:
        with open(rules_file, "r", encoding="utf-8", errors="surrogateescape") as f:
            return parse_rules(
                f,
                source_root,
                invert=invert,
                preserve_permissions=preserve_permissions,
                logger=logger,
            )
    except OSError as e:
        raise RulesError(f"Failed to open rules file: {rules_file}: {e}", ErrorCode.NOT_FOUND)
