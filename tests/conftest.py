"""Shared pytest fixtures for FilteredFS tests."""
import logging
import os
from pathlib import Path
from typing import Callable, Iterable

import pytest

from filteredfs.fuse.operations import FilteredFSOperations
from filteredfs.infrastructure.logger import Logger
from filteredfs.rules.ruleset import RuleSet, parse_rules


@pytest.fixture
def quiet_logger() -> Logger:
    """Logger that discards everything."""
    return Logger("filteredfs.test", level="CRITICAL", handlers=[logging.NullHandler()])


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create a source directory with a music-library style tree.

    source/
        file1.flac  file1.mp3  file2.mp3  notes.txt  .hidden
        link -> file2.mp3
        dangling -> missing.mp3
        subDir1/  file3.flac  file3.mp3  fileA.mp3  pipe (FIFO)  subSubDir1/
        subDir2/  fileA.mp3  file4.flac  file4.mp3
    """
    source = tmp_path / "source"
    source.mkdir()

    (source / "file1.flac").write_bytes(b"FLAC1")
    (source / "file1.mp3").write_bytes(b"MP3-1")
    (source / "file2.mp3").write_bytes(b"MP3-2")
    (source / "notes.txt").write_text("Hello World")
    (source / ".hidden").write_text("dotfile")
    (source / "link").symlink_to("file2.mp3")
    (source / "dangling").symlink_to("missing.mp3")

    sub1 = source / "subDir1"
    sub1.mkdir()
    (sub1 / "file3.flac").write_bytes(b"FLAC3")
    (sub1 / "file3.mp3").write_bytes(b"MP3-3")
    (sub1 / "fileA.mp3").write_bytes(b"MP3-A")
    os.mkfifo(sub1 / "pipe")
    (sub1 / "subSubDir1").mkdir()

    sub2 = source / "subDir2"
    sub2.mkdir()
    (sub2 / "fileA.mp3").write_bytes(b"MP3-A2")
    (sub2 / "file4.flac").write_bytes(b"FLAC4")
    (sub2 / "file4.mp3").write_bytes(b"MP3-4")

    return source


@pytest.fixture
def make_rules(source_dir: Path, quiet_logger: Logger) -> Callable[..., RuleSet]:
    """Factory building a RuleSet over ``source_dir`` from rules file lines."""

    def _make(lines: Iterable[str], invert: bool = False, preserve_permissions: bool = False):
        return parse_rules(
            lines,
            source_root=str(source_dir),
            invert=invert,
            preserve_permissions=preserve_permissions,
            logger=quiet_logger,
        )

    return _make


@pytest.fixture
def make_ops(make_rules, quiet_logger: Logger) -> Callable[..., FilteredFSOperations]:
    """Factory building FilteredFSOperations from rules file lines."""

    def _make(lines: Iterable[str], invert: bool = False, preserve_permissions: bool = False):
        rules = make_rules(lines, invert=invert, preserve_permissions=preserve_permissions)
        return FilteredFSOperations(rules, logger=quiet_logger)

    return _make


@pytest.fixture
def rules_file(tmp_path: Path) -> Path:
    """Write a rules file in the documented format."""
    path = tmp_path / "filteredfs.rc"
    path.write_text(
        "# Hide lossless files and temporary files\n"
        "\n"
        "\\.flac$\n"
        "^/tmp/\n"
        "|type: FIFO\n"
    )
    return path


@pytest.fixture
def mount_dir(tmp_path: Path) -> Path:
    """Create a mount point directory."""
    mount = tmp_path / "mount"
    mount.mkdir()
    return mount
