"""FilteredFS Core - Shared constants, path helpers and validators.

Import specific functions from submodules:
    from filteredfs.core import constants
    from filteredfs.core import path_utils
    from filteredfs.core import validators
"""

from filteredfs.core import constants, path_utils, validators

__all__ = [
    "constants",
    "path_utils",
    "validators",
]
