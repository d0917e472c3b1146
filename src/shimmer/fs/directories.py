from __future__ import annotations

import logging
import ntpath
import os
import pathlib
from typing import TYPE_CHECKING

from shimmer.fs import filesystem

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)

_VOLUME_SEPARATOR = ":" if os.name == "nt" else None


def iter_path_prefixes(
    path: str,
    *,
    sep: str = os.sep,
    volume_sep: str | None = _VOLUME_SEPARATOR,
) -> Iterator[str]:
    """Yield every prefix of path, shortest first.

    A prefix ending exactly at a volume separator gets a trailing separator,
    so ``C:`` is yielded as ``C:\\`` (the drive root, not the drive's cwd).

    A UNC path starts from its share root: ``\\\\server\\share\\app`` yields
    ``\\\\server\\share\\`` then ``\\\\server\\share\\app``. UNC handling only
    applies when volume_sep is set (Windows semantics).

    Example: ``/srv/app/data`` yields ``/``, ``/srv``, ``/srv/app``, ``/srv/app/data``.
    """
    acc = ""
    if volume_sep is not None and path.startswith(sep * 2):
        share, path = ntpath.splitdrive(path)
        acc = share + sep
        yield acc
        path = path.strip(sep)
        if not path:
            return

    for component in path.split(sep):
        if not acc:
            acc = component or sep
        elif acc.endswith(sep):
            acc += component
        else:
            acc += sep + component

        if volume_sep is not None and acc.endswith(volume_sep):
            acc += sep

        yield acc


def create_recursive(path: PathLike, *, fs: filesystem.FileSystem | None = None) -> pathlib.Path:
    """Ensure path and all of its ancestors exist as directories.

    Already-existing directories are left alone, including ones created by a
    concurrent caller between our existence check and mkdir. Any other
    failure (permission denied, a file in the way) propagates.
    """
    fs = fs or filesystem.get_filesystem()
    full_path = os.path.abspath(path)
    if os.altsep:
        full_path = full_path.replace(os.altsep, os.sep)

    for prefix in iter_path_prefixes(full_path):
        if fs.is_dir(prefix):
            continue
        try:
            fs.make_dir(prefix)
            logger.debug(f"Created directory: {prefix}")
        except FileExistsError:
            if not fs.is_dir(prefix):
                raise
            logger.debug(f"Directory created concurrently: {prefix}")

    return pathlib.Path(full_path)
