#!/usr/bin/env python3
"""Tests for regex name patterns."""

import logging

import pytest

from filteredfs.infrastructure.logger import Logger
from filteredfs.rules.patterns import NamePattern, PatternMatcher, translate_posix_classes


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


class TestTranslatePosixClasses:
    """Tests for POSIX bracket class translation."""

    def test_digit(self):
        assert translate_posix_classes("[[:digit:]]+") == "[0-9]+"

    def test_mixed(self):
        assert translate_posix_classes("[[:upper:][:digit:]_]") == "[A-Z0-9_]"

    def test_untouched(self):
        assert translate_posix_classes(r"\.flac$") == r"\.flac$"


class TestPatternMatcher:
    """Tests for PatternMatcher."""

    def test_add_and_search(self, quiet_logger):
        matcher = PatternMatcher(logger=quiet_logger)
        assert matcher.add_regex_pattern(r"\.flac$")
        assert matcher.add_regex_pattern(r"^/tmp/")

        pattern = matcher.build()

        assert pattern.search("/music/a.flac")
        assert pattern.search("/tmp/scratch")
        assert not pattern.search("/music/a.mp3")
        assert not pattern.search("/music/tmp/a.mp3")

    def test_search_is_unanchored(self, quiet_logger):
        matcher = PatternMatcher(logger=quiet_logger)
        matcher.add_regex_pattern("live")
        assert matcher.build().search("/concerts/live/track.mp3")

    def test_invalid_pattern_skipped_and_logged(self):
        handler = RecordingHandler()
        logger = Logger("filteredfs.test.patterns", level="DEBUG", handlers=[handler])
        matcher = PatternMatcher(logger=logger)

        assert matcher.add_regex_pattern("(unclosed", line_number=4) is False
        assert matcher.add_regex_pattern(r"\.flac$") is True

        assert len(matcher) == 1
        assert any(
            m.startswith("RegEx error:") and 'while parsing pattern: "(unclosed"' in m
            for m in handler.messages
        )

    def test_empty_build(self, quiet_logger):
        assert PatternMatcher(logger=quiet_logger).build() is None

    def test_posix_class_pattern(self, quiet_logger):
        matcher = PatternMatcher(logger=quiet_logger)
        matcher.add_regex_pattern(r"/[[:digit:]]{2} ")
        pattern = matcher.build()
        assert pattern.search("/album/01 intro.mp3")
        assert not pattern.search("/album/intro.mp3")

    def test_backreference_per_line(self, quiet_logger):
        """Group numbers are local to the line that declares them."""
        matcher = PatternMatcher(logger=quiet_logger)
        matcher.add_regex_pattern(r"^/skip")
        matcher.add_regex_pattern(r"/(\w+)/\1\.")
        pattern = matcher.build()

        assert pattern.search("/music/abba/abba.mp3")
        assert not pattern.search("/music/abba/queen.mp3")


class TestNamePattern:
    """Tests for NamePattern."""

    def test_source_alternation(self, quiet_logger):
        matcher = PatternMatcher(logger=quiet_logger)
        matcher.add_regex_pattern(r"\.flac$")
        matcher.add_regex_pattern(r"^/tmp/")
        assert matcher.build().source == r"(\.flac$)|(^/tmp/)"

    def test_frozen(self, quiet_logger):
        matcher = PatternMatcher(logger=quiet_logger)
        matcher.add_regex_pattern("x")
        pattern = matcher.build()
        with pytest.raises(AttributeError):
            pattern.compiled = ()

    def test_len(self):
        import re

        assert len(NamePattern(compiled=(re.compile("a"), re.compile("b")))) == 2
