"""Filesystem capability provider.

Directory creation, walking and deletion go through a ``FileSystem`` so tests
can inject faults (locked files, racing creators) without touching the OS.
"""

from __future__ import annotations

import logging
import os
import pathlib
import stat
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)

_IS_WINDOWS = os.name == "nt"


class FileSystem(Protocol):
    """Primitive filesystem operations used by the fs helpers."""

    def is_dir(self, path: PathLike) -> bool:
        """Return True if path is a directory, not following symlinks."""
        ...

    def list_files(self, path: PathLike) -> list[pathlib.Path]:
        """List non-directory entries directly under path."""
        ...

    def list_dirs(self, path: PathLike) -> list[pathlib.Path]:
        """List real (non-symlink) subdirectories directly under path."""
        ...

    def make_dir(self, path: PathLike) -> None:
        """Create a single directory; raises FileExistsError if present."""
        ...

    def remove_file(self, path: PathLike) -> None:
        """Remove a file or symlink."""
        ...

    def remove_dir(self, path: PathLike) -> None:
        """Remove an empty directory."""
        ...

    def clear_attributes(self, path: PathLike) -> None:
        """Clear read-only state that would prevent deleting path or its children."""
        ...


class LocalFileSystem:
    """FileSystem backed by the OS."""

    def is_dir(self, path: PathLike) -> bool:
        try:
            return stat.S_ISDIR(os.lstat(path).st_mode)
        except FileNotFoundError:
            return False

    def list_files(self, path: PathLike) -> list[pathlib.Path]:
        with os.scandir(path) as entries:
            return [
                pathlib.Path(entry.path)
                for entry in entries
                if not entry.is_dir(follow_symlinks=False)
            ]

    def list_dirs(self, path: PathLike) -> list[pathlib.Path]:
        with os.scandir(path) as entries:
            return [
                pathlib.Path(entry.path) for entry in entries if entry.is_dir(follow_symlinks=False)
            ]

    def make_dir(self, path: PathLike) -> None:
        os.mkdir(path)

    def remove_file(self, path: PathLike) -> None:
        os.unlink(path)

    def remove_dir(self, path: PathLike) -> None:
        os.rmdir(path)

    def clear_attributes(self, path: PathLike) -> None:
        st = os.lstat(path)
        if stat.S_ISLNK(st.st_mode):
            return
        if _IS_WINDOWS:
            # FILE_ATTRIBUTE_READONLY is the only attribute chmod can clear
            if not st.st_mode & stat.S_IWRITE:
                os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
            return
        # On POSIX, deleting a file only needs a writable parent directory.
        # Never chmod files - a hardlinked file shares its mode with every link.
        if stat.S_ISDIR(st.st_mode):
            wanted = stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR
            if st.st_mode & wanted != wanted:
                logger.debug(f"Making directory writable: {path}")
                os.chmod(path, stat.S_IMODE(st.st_mode) | wanted)


_default_filesystem: FileSystem = LocalFileSystem()


def get_filesystem() -> FileSystem:
    """Get the filesystem used when callers do not pass one."""
    return _default_filesystem


def set_filesystem(fs: FileSystem | None) -> None:
    """Replace the default filesystem; None restores the local one."""
    global _default_filesystem
    _default_filesystem = fs if fs is not None else LocalFileSystem()
