"""
FUSE filesystem operations for FilteredFS.

This module implements the FUSE callbacks of a read-only, filtering
pass-through filesystem:
- Metadata operations (getattr, readlink, statfs, access)
- Directory operations (readdir)
- File operations (open, read)
- Extended attribute reads (getxattr, listxattr)
- Every mutation (write, mkdir, rename, chmod, setxattr, ...) is refused

Each read operation translates the virtual path into the source tree, asks
the FilterEngine whether the entry is visible and either reports ENOENT or
forwards the call to the source filesystem. Errors from the source are
passed through with their original errno.
"""

import errno
import os
from typing import Any, Dict, List, Optional

from fuse import FuseOSError, Operations

from filteredfs.core.constants import (
    WRITE_OPEN_FLAGS,
    WRITE_PERMISSION_BITS,
    FileType,
    RealPath,
    VirtualPath,
)
from filteredfs.core.path_utils import join_virtual_path, translate_path
from filteredfs.infrastructure.logger import Logger, get_logger
from filteredfs.rules.engine import FilterEngine
from filteredfs.rules.ruleset import RuleSet

STAT_FIELDS = (
    "st_atime",
    "st_ctime",
    "st_mtime",
    "st_gid",
    "st_uid",
    "st_mode",
    "st_nlink",
    "st_size",
    "st_ino",
    "st_dev",
    "st_rdev",
    "st_blocks",
    "st_blksize",
)

STATVFS_FIELDS = (
    "f_bsize",
    "f_frsize",
    "f_blocks",
    "f_bfree",
    "f_bavail",
    "f_files",
    "f_ffree",
    "f_favail",
    "f_flag",
    "f_namemax",
)


class FilteredFSOperations(Operations):
    """
    FUSE filesystem operations implementation for FilteredFS.

    Integration Points:
    - RuleSet: source root, invert and permission flags
    - FilterEngine: hide/show decision for every path

    Thread Safety:
    - No mutable state; the RuleSet is frozen and nothing is cached, so
      concurrent FUSE worker threads need no locking
    """

    def __init__(
        self,
        rules: RuleSet,
        filter_engine: Optional[FilterEngine] = None,
        logger: Optional[Logger] = None,
    ):
        """
        Initialize FUSE operations.

        Args:
            rules: Frozen rule set, including the source root
            filter_engine: Filter engine (created from ``rules`` if None)
            logger: Logger (the process-wide logger if None)
        """
        self.rules = rules
        self.root = rules.source_root
        self.logger = logger or get_logger()
        self.filter_engine = (
            filter_engine if filter_engine is not None else FilterEngine(rules, self.logger)
        )

    def __call__(self, op: str, *args):
        with self.logger.add_context(op=op):
            return super().__call__(op, *args)

    # =========================================================================
    # Path Resolution
    # =========================================================================

    def _real_path(self, path: VirtualPath) -> RealPath:
        """Translate a virtual path into the source tree."""
        real_path = translate_path(self.root, path)
        self.logger.debug("translate", path=path, real_path=real_path)
        return real_path

    def _lstat(self, real_path: RealPath) -> os.stat_result:
        """lstat() the source entry, raising FuseOSError on failure."""
        try:
            return os.lstat(real_path)
        except OSError as e:
            raise FuseOSError(e.errno)

    def _check_visible(self, path: VirtualPath, file_type: FileType) -> None:
        """Raise ENOENT if the filter hides ``path``."""
        if self.filter_engine.should_hide(path, file_type):
            raise FuseOSError(errno.ENOENT)

    def _resolve(self, path: VirtualPath) -> RealPath:
        """
        Resolve a virtual path for a read operation.

        The source entry is stat'ed first so that its error wins over the
        filter, and so that the filter sees the entry's real type.

        Returns:
            Real path of a visible entry

        Raises:
            FuseOSError: lstat errno, or ENOENT if hidden
        """
        real_path = self._real_path(path)
        st = self._lstat(real_path)
        self._check_visible(path, FileType.from_mode(st.st_mode))
        return real_path

    # =========================================================================
    # FUSE Metadata Operations
    # =========================================================================

    def getattr(self, path: str, fh: Optional[int] = None) -> Dict[str, Any]:
        """
        Get file attributes (equivalent to lstat()).

        Write permission bits are cleared unless the rule set preserves
        permissions.

        Args:
            path: Virtual path
            fh: Optional file handle (unused)

        Returns:
            Dictionary with stat attributes

        Raises:
            FuseOSError: lstat errno, or ENOENT if hidden
        """
        real_path = self._real_path(path)
        st = self._lstat(real_path)
        self._check_visible(path, FileType.from_mode(st.st_mode))

        attrs = {key: getattr(st, key) for key in STAT_FIELDS}

        if not self.rules.preserve_permissions:
            attrs["st_mode"] &= ~WRITE_PERMISSION_BITS

        return attrs

    def readlink(self, path: str) -> str:
        """
        Read symlink target.

        Args:
            path: Virtual path to symlink

        Returns:
            Target path, verbatim

        Raises:
            FuseOSError: ENOENT if hidden, readlink errno otherwise
        """
        real_path = self._real_path(path)
        self._check_visible(path, FileType.SYMLINK)

        try:
            return os.readlink(real_path)
        except OSError as e:
            raise FuseOSError(e.errno)

    def statfs(self, path: str) -> Dict[str, Any]:
        """
        Get filesystem statistics of the source filesystem.

        Raises:
            FuseOSError: lstat or statvfs errno, or ENOENT if hidden
        """
        real_path = self._resolve(path)

        try:
            stv = os.statvfs(real_path)
        except OSError as e:
            raise FuseOSError(e.errno)

        return {key: getattr(stv, key) for key in STATVFS_FIELDS}

    def access(self, path: str, amode: int) -> int:
        """
        Check file access permissions.

        Write access is always refused on the read-only mount.

        Args:
            path: Virtual path to file
            amode: Access mode to check (R_OK, W_OK, X_OK, F_OK)

        Raises:
            FuseOSError: ENOENT if hidden, EPERM for W_OK, the source errno
                (EACCES when the target exists) if denied
        """
        real_path = self._resolve(path)

        if amode & os.W_OK:
            raise FuseOSError(errno.EPERM)

        if not os.access(real_path, amode):
            # access() follows symlinks; report why the target is unusable
            try:
                os.stat(real_path)
            except OSError as e:
                raise FuseOSError(e.errno)
            raise FuseOSError(errno.EACCES)

        return 0

    # =========================================================================
    # FUSE Directory Operations
    # =========================================================================

    def readdir(self, path: str, fh: int) -> List[str]:
        """
        List directory contents, leaving out hidden entries.

        Each entry's type comes from the cached directory entry type when the
        source filesystem supplies one; otherwise the entry is lstat'ed.
        Entries are returned in the order of the source directory. "." and
        ".." are filtered like any other directory entry.

        Args:
            path: Virtual directory path
            fh: File handle (unused)

        Returns:
            Names of the visible directory entries

        Raises:
            FuseOSError: ENOENT if the directory is hidden, scandir errno
        """
        real_path = self._real_path(path)
        self._check_visible(path, FileType.DIRECTORY)

        entries = [
            name
            for name in (".", "..")
            if not self.filter_engine.should_hide(
                join_virtual_path(path, name), FileType.DIRECTORY
            )
        ]

        try:
            with os.scandir(real_path) as it:
                for entry in it:
                    entry_path = join_virtual_path(path, entry.name)
                    file_type = self._entry_type(entry, entry_path)
                    if self.filter_engine.should_hide(entry_path, file_type):
                        continue
                    entries.append(entry.name)
        except OSError as e:
            raise FuseOSError(e.errno)

        return entries

    def _entry_type(self, entry: os.DirEntry, entry_path: VirtualPath) -> FileType:
        """
        Determine the type of a directory entry.

        Regular files, directories and symlinks are answered from the cached
        dirent type. Special files (and filesystems that report no dirent
        type) need an explicit lstat; if that fails the error is logged and
        the type is UNKNOWN.
        """
        try:
            if entry.is_symlink():
                return FileType.SYMLINK
            if entry.is_dir(follow_symlinks=False):
                return FileType.DIRECTORY
            if entry.is_file(follow_symlinks=False):
                return FileType.REGULAR
            return FileType.from_mode(entry.stat(follow_symlinks=False).st_mode)
        except OSError as e:
            self.logger.error(
                f"unexpected lstat() error {e.errno}", path=entry_path, error=e.strerror
            )
            return FileType.UNKNOWN

    def opendir(self, path: str) -> int:
        return 0

    def releasedir(self, path: str, fh: int) -> int:
        return 0

    # =========================================================================
    # FUSE File Operations
    # =========================================================================

    def open(self, path: str, flags: int) -> int:
        """
        Check that a file may be opened for reading.

        The source file is opened once to check access and closed straight away;
        FUSE hands its own file handle to the caller.

        Args:
            path: Virtual path to file
            flags: Open flags

        Returns:
            0

        Raises:
            FuseOSError: ENOENT if hidden, EPERM for write flags, open errno
        """
        real_path = self._resolve(path)

        if flags & WRITE_OPEN_FLAGS:
            raise FuseOSError(errno.EPERM)

        try:
            os.close(os.open(real_path, flags))
        except OSError as e:
            raise FuseOSError(e.errno)

        return 0

    def read(self, path: str, size: int, offset: int, fh: int) -> bytes:
        """
        Read file content from the source.

        Args:
            path: Virtual path to file
            size: Number of bytes to read
            offset: Byte offset to start reading from
            fh: File handle from open() (unused)

        Returns:
            Up to ``size`` bytes starting at ``offset``

        Raises:
            FuseOSError: ENOENT if hidden, open/read errno otherwise
        """
        real_path = self._resolve(path)

        try:
            fd = os.open(real_path, os.O_RDONLY)
        except OSError as e:
            raise FuseOSError(e.errno)

        try:
            return os.pread(fd, size, offset)
        except OSError as e:
            raise FuseOSError(e.errno)
        finally:
            os.close(fd)

    def release(self, path: str, fh: int) -> int:
        return 0

    def flush(self, path: str, fh: int) -> int:
        return 0

    def fsync(self, path: str, datasync: bool, fh: int) -> int:
        return 0

    # =========================================================================
    # FUSE Extended Attribute Operations
    # =========================================================================

    def getxattr(self, path: str, name: str, position: int = 0) -> bytes:
        """
        Get the value of an extended attribute (without following symlinks).

        Raises:
            FuseOSError: ENOENT if hidden, getxattr errno otherwise
        """
        real_path = self._resolve(path)

        try:
            return os.getxattr(real_path, name, follow_symlinks=False)
        except OSError as e:
            raise FuseOSError(e.errno)

    def listxattr(self, path: str) -> List[str]:
        """
        List extended attribute names (without following symlinks).

        Raises:
            FuseOSError: ENOENT if hidden, listxattr errno otherwise
        """
        real_path = self._resolve(path)

        try:
            return os.listxattr(real_path, follow_symlinks=False)
        except OSError as e:
            raise FuseOSError(e.errno)

    # =========================================================================
    # Refused Mutations
    # =========================================================================

    def _refuse(self, path: str) -> None:
        self.logger.debug("refusing mutation", path=path)
        raise FuseOSError(errno.EPERM)

    def write(self, path: str, data: bytes, offset: int, fh: int) -> int:
        self._refuse(path)

    def truncate(self, path: str, length: int, fh: Optional[int] = None) -> None:
        self._refuse(path)

    def create(self, path: str, mode: int, fi=None) -> int:
        self._refuse(path)

    def mknod(self, path: str, mode: int, dev: int) -> None:
        self._refuse(path)

    def mkdir(self, path: str, mode: int) -> None:
        self._refuse(path)

    def unlink(self, path: str) -> None:
        self._refuse(path)

    def rmdir(self, path: str) -> None:
        self._refuse(path)

    def symlink(self, target: str, source: str) -> None:
        self._refuse(target)

    def rename(self, old: str, new: str) -> None:
        self._refuse(old)

    def link(self, target: str, source: str) -> None:
        self._refuse(target)

    def chmod(self, path: str, mode: int) -> None:
        self._refuse(path)

    def chown(self, path: str, uid: int, gid: int) -> None:
        self._refuse(path)

    def utimens(self, path: str, times=None) -> None:
        self._refuse(path)

    def setxattr(self, path: str, name: str, value: bytes, options: int, position: int = 0) -> None:
        self._refuse(path)

    def removexattr(self, path: str, name: str) -> None:
        self._refuse(path)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self, path: str) -> None:
        self.logger.info("Filesystem mounted", source=self.root)

    def destroy(self, path: str) -> None:
        self.logger.info("Filesystem unmounted", source=self.root)

    def get_stats(self) -> Dict[str, Any]:
        """
        Describe the active filter configuration.

        Returns:
            Dictionary with rule counts and flags
        """
        rules = self.rules
        return {
            "source": self.root,
            "patterns": len(rules.name_pattern) if rules.name_pattern else 0,
            "hidden_types": sorted(t.value for t in rules.hidden_types),
            "extension_priorities": len(rules.extension_priority),
            "invert": rules.invert,
            "preserve_permissions": rules.preserve_permissions,
        }
