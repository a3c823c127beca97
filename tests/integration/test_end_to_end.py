#!/usr/bin/env python3
"""End-to-end tests: rules file on disk through to FUSE callbacks.

These drive the operations object the way the FUSE loop would, without
mounting anything.
"""

import errno
import os

import pytest
from fuse import FuseOSError

from filteredfs.core.constants import ConfigKey
from filteredfs.infrastructure.config_manager import ConfigManager, ConfigSource
from filteredfs.main import FilteredFSMain


@pytest.fixture
def music_library(tmp_path):
    source = tmp_path / "library"
    music = source / "music"
    music.mkdir(parents=True)
    (music / "a.mp3").write_bytes(b"ID3-a")
    (music / "a.flac").write_bytes(b"fLaC-a")
    return source


def _mount(tmp_path, source, rules_text, quiet_logger, **settings):
    rules = tmp_path / "music.rc"
    rules.write_text(rules_text)
    mount = tmp_path / "mnt"
    mount.mkdir(exist_ok=True)

    config = ConfigManager(load_environment=False)
    config.load_dict(
        {ConfigKey.SOURCE: str(source), ConfigKey.RULES_FILE: str(rules), **settings},
        ConfigSource.CLI_ARGS,
    )
    controller = FilteredFSMain(str(mount), config, quiet_logger)
    controller.initialize_components()
    return controller.fuse_ops


class TestMusicLibrary:
    """Hiding lossless copies from a music library."""

    def test_flac_hidden(self, tmp_path, music_library, quiet_logger):
        ops = _mount(tmp_path, music_library, "\\.flac$\n", quiet_logger)

        assert ops("readdir", "/music", 0) == [".", "..", "a.mp3"]

        with pytest.raises(FuseOSError) as excinfo:
            ops("getattr", "/music/a.flac")
        assert excinfo.value.errno == errno.ENOENT

        assert ops("open", "/music/a.mp3", os.O_RDONLY) == 0
        assert ops("read", "/music/a.mp3", 4096, 0, 0) == b"ID3-a"

    def test_source_untouched_by_mutations(self, tmp_path, music_library, quiet_logger):
        ops = _mount(tmp_path, music_library, "\\.flac$\n", quiet_logger)

        for op, args in [
            ("unlink", ("/music/a.mp3",)),
            ("unlink", ("/music/a.flac",)),
            ("rename", ("/music/a.mp3", "/music/b.mp3")),
            ("mkdir", ("/music/new", 0o755)),
            ("create", ("/music/c.mp3", 0o644)),
        ]:
            with pytest.raises(FuseOSError) as excinfo:
                ops(op, *args)
            assert excinfo.value.errno == errno.EPERM

        assert sorted(os.listdir(music_library / "music")) == ["a.flac", "a.mp3"]

    def test_allow_list(self, tmp_path, music_library, quiet_logger):
        ops = _mount(tmp_path, music_library, "^/$\n^/music$\n\\.flac$\n", quiet_logger, invert=True)

        assert ops("readdir", "/", 0) == ["music"]
        assert ops("readdir", "/music", 0) == ["a.flac"]

        with pytest.raises(FuseOSError) as excinfo:
            ops("read", "/music/a.mp3", 10, 0, 0)
        assert excinfo.value.errno == errno.ENOENT

    def test_extension_priority(self, tmp_path, music_library, quiet_logger):
        (music_library / "music" / "b.mp3").write_bytes(b"ID3-b")
        ops = _mount(tmp_path, music_library, "|extensionPriority:flac,mp3\n", quiet_logger)

        assert sorted(ops("readdir", "/music", 0)[2:]) == ["a.flac", "b.mp3"]
        assert ops("read", "/music/a.flac", 4, 0, 0) == b"fLaC"

    def test_permissions_are_read_only(self, tmp_path, music_library, quiet_logger):
        os.chmod(music_library / "music" / "a.mp3", 0o664)
        ops = _mount(tmp_path, music_library, "\\.flac$\n", quiet_logger)

        assert ops("getattr", "/music/a.mp3")["st_mode"] & 0o222 == 0
