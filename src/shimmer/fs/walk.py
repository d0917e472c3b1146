from __future__ import annotations

import logging
import os
import pathlib
from typing import TYPE_CHECKING, override

from shimmer import exceptions
from shimmer.fs import filesystem

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)


class FileListing:
    """Restartable, lazy listing of every file under a root.

    Each iteration walks the tree afresh: files inside subdirectories come
    before the directory's own files. Symlinked directories are yielded as
    files and never followed.
    """

    _root: pathlib.Path
    _fs: filesystem.FileSystem

    def __init__(self, root: pathlib.Path, fs: filesystem.FileSystem) -> None:
        self._root = root
        self._fs = fs

    @property
    def root(self) -> pathlib.Path:
        return self._root

    def __iter__(self) -> Iterator[pathlib.Path]:
        return self._walk(self._root)

    def _walk(self, directory: pathlib.Path) -> Iterator[pathlib.Path]:
        for subdir in self._fs.list_dirs(directory):
            yield from self._walk(subdir)
        yield from self._fs.list_files(directory)

    @override
    def __repr__(self) -> str:
        return f"FileListing({str(self._root)!r})"


def list_all_files_recursively(
    root: PathLike, *, fs: filesystem.FileSystem | None = None
) -> FileListing:
    """List all files under root, recursing into subdirectories.

    The root is enumerated once up front so a missing or unreadable root fails
    here rather than on first iteration. Errors from subdirectories surface
    while iterating; nothing is skipped.
    """
    fs = fs or filesystem.get_filesystem()
    root_path = pathlib.Path(os.path.abspath(root))

    try:
        fs.list_dirs(root_path)
    except FileNotFoundError:
        raise exceptions.PathNotFoundError(f"Directory not found: {root_path}") from None
    except NotADirectoryError:
        raise exceptions.PathNotFoundError(f"Not a directory: {root_path}") from None
    except PermissionError as e:
        raise exceptions.AccessDeniedError(f"Cannot list directory {root_path}: {e}") from e

    logger.debug(f"Listing files under {root_path}")
    return FileListing(root_path, fs)
