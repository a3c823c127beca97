"""FilteredFS Rules System.

This module provides file visibility rules:
- PatternMatcher / NamePattern: regex lines from the rules file
- RuleSet: frozen filter configuration and the rules file parser
- FilterEngine: the hide/show decision

Rules control which entries of the source directory are visible in the
FilteredFS mount point.
"""

from .engine import FilterDecision, FilterEngine
from .patterns import NamePattern, PatternMatcher, translate_posix_classes
from .ruleset import (
    RuleSet,
    RuleSetBuilder,
    RulesError,
    build_extension_priority,
    load_rules,
    parse_rules,
)

__all__ = [
    # Pattern matching
    "NamePattern",
    "PatternMatcher",
    "translate_posix_classes",
    # Rule set
    "RuleSet",
    "RuleSetBuilder",
    "RulesError",
    "build_extension_priority",
    "load_rules",
    "parse_rules",
    # Filter engine
    "FilterDecision",
    "FilterEngine",
]
