"""FilteredFS FUSE Interface.

This module implements the FUSE filesystem interface for FilteredFS:
- FilteredFSOperations: FUSE callback implementations

Usage:
    from filteredfs.fuse import FilteredFSOperations
    from filteredfs.rules import load_rules

    rules = load_rules("/etc/filteredfs.rc", source_root="/srv/music")
    ops = FilteredFSOperations(rules)
"""

from filteredfs.fuse.operations import FilteredFSOperations

__all__ = [
    "FilteredFSOperations",
]
