"""FilteredFS - read-only, filtering pass-through FUSE filesystem.

A source directory is exposed at a mount point with selected entries hidden
by a rules file and every mutation refused.
"""

from filteredfs.core.constants import FILTEREDFS_VERSION as __version__

__all__ = ["__version__"]
