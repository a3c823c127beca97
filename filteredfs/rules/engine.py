#!/usr/bin/env python3
"""Filter engine deciding whether an entry is visible through the mount.

The decision for a virtual path and its file type is taken in a fixed
order; the first step that applies wins:

1. Extension priority (deny-list mode only): hidden if a sibling with a
   higher-priority extension exists in the source tree.
2. Type filter: hidden in deny-list mode, visible in allow-list mode.
3. Allow-list mode hides anything that is neither a regular file nor a
   directory.
4. Name pattern: hidden in deny-list mode, visible in allow-list mode.
5. Default: visible in deny-list mode, hidden in allow-list mode.

The engine holds no mutable state. Step 1 is the only one that touches the
filesystem, and its result is never cached.

Example:
    >>> engine = FilterEngine(parse_rules([r"\\.flac$"], source_root="/srv"))
    >>> engine.decide("/music/a.flac", FileType.REGULAR)
    <FilterDecision.HIDDEN: 'hidden'>
"""

import os
from enum import Enum
from typing import Optional

from filteredfs.core.constants import FileType, VirtualPath
from filteredfs.core.path_utils import get_extension, replace_extension, translate_path
from filteredfs.infrastructure.logger import Logger, get_logger
from filteredfs.rules.ruleset import RuleSet


class FilterDecision(Enum):
    """Outcome of a filter decision."""

    HIDDEN = "hidden"
    VISIBLE = "visible"


class FilterEngine:
    """Applies a RuleSet to (virtual path, file type) pairs.

    Safe to call from any number of threads concurrently.
    """

    def __init__(self, rules: RuleSet, logger: Optional[Logger] = None):
        """Initialize filter engine.

        Args:
            rules: Frozen rule set
            logger: Logger for decision tracing
        """
        self.rules = rules
        self.logger = logger or get_logger()

    def decide(self, path: VirtualPath, file_type: FileType) -> FilterDecision:
        """Decide whether ``path`` of type ``file_type`` is visible.

        Args:
            path: Virtual path (starts with "/")
            file_type: Type of the entry

        Returns:
            FilterDecision.HIDDEN or FilterDecision.VISIBLE
        """
        rules = self.rules
        self.logger.debug("should_hide test", path=path, type=file_type.value)

        if not rules.invert and rules.extension_priority:
            shadow = self._find_shadowing_sibling(path)
            if shadow is not None:
                self.logger.debug("shadowed", path=path, by=shadow)
                return FilterDecision.HIDDEN

        if file_type in rules.hidden_types:
            self.logger.debug("type", path=path, type=file_type.value)
            return self._matched()

        if rules.invert and file_type not in (FileType.REGULAR, FileType.DIRECTORY):
            return FilterDecision.HIDDEN

        if rules.name_pattern is not None and rules.name_pattern.search(path):
            self.logger.debug("match", path=path)
            return self._matched()

        return self._unmatched()

    def should_hide(self, path: VirtualPath, file_type: FileType) -> bool:
        """Return True when ``path`` must not be shown."""
        return self.decide(path, file_type) is FilterDecision.HIDDEN

    def _find_shadowing_sibling(self, path: VirtualPath) -> Optional[str]:
        """Find an existing sibling with a higher-priority extension.

        The sibling is checked for raw existence only; it is not itself run
        through the filter.

        Returns:
            Real path of the first sibling found, or None
        """
        extension = get_extension(path)
        if not extension:
            return None

        real_path = translate_path(self.rules.source_root, path)
        for higher in self.rules.extension_priority.get(extension, ()):
            sibling = replace_extension(real_path, higher)
            if os.path.exists(sibling):
                return sibling

        return None

    def _matched(self) -> FilterDecision:
        return FilterDecision.VISIBLE if self.rules.invert else FilterDecision.HIDDEN

    def _unmatched(self) -> FilterDecision:
        return FilterDecision.HIDDEN if self.rules.invert else FilterDecision.VISIBLE
