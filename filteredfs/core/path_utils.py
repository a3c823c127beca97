"""
FilteredFS Core: Path Utilities

Purely textual helpers for moving between the virtual namespace seen through
the mount and the real namespace of the source directory. None of these
functions touch the filesystem and none normalize "." or "..": the kernel
hands FUSE canonical paths already.
"""
import os

from filteredfs.core.constants import RealPath, VirtualPath

SEPARATOR = "/"


def translate_path(root: RealPath, virtual_path: VirtualPath) -> RealPath:
    """Translate a virtual path into its path under the source root.

    Exactly one separator is placed at the join point, whichever side
    supplied it. Separators inside either argument are left alone.

    Args:
        root: Source directory root
        virtual_path: Path relative to the mount point, e.g. "/music/a.mp3"

    Returns:
        Path of the same entry in the source tree

    Example:
        >>> translate_path("/srv/data/", "//music/a.mp3")
        '/srv/data/music/a.mp3'
    """
    return root.rstrip(SEPARATOR) + SEPARATOR + virtual_path.lstrip(SEPARATOR)


def join_virtual_path(directory: VirtualPath, name: str) -> VirtualPath:
    """Join a virtual directory path and an entry name."""
    return directory.rstrip(SEPARATOR) + SEPARATOR + name


def get_extension(path: str) -> str:
    """Get the extension of the final path component, including the dot.

    Dotfiles such as ".profile" have no extension.

    Args:
        path: Virtual or real path

    Returns:
        Extension (e.g. ".flac") or empty string
    """
    return os.path.splitext(os.path.basename(path))[1]


def replace_extension(path: str, extension: str) -> str:
    """Replace the extension of the final path component.

    Args:
        path: Virtual or real path
        extension: New extension including the leading dot

    Returns:
        Path with the extension replaced (or appended if it had none)
    """
    stem, _ = os.path.splitext(path)
    return stem + extension
