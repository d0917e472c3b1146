from __future__ import annotations

import logging
import os
import pathlib
import tempfile
import uuid
from typing import TYPE_CHECKING, BinaryIO, Self, override

from shimmer import exceptions
from shimmer.fs import delete, filesystem

if TYPE_CHECKING:
    from types import TracebackType

    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)


class TempDirectory:
    """A uniquely named directory that is deleted exactly once on close.

    Use as a context manager so the directory goes away however the block
    exits (return, exception or cancellation):

        with with_temp_directory() as tmp:
            (tmp.path / "payload.bin").write_bytes(data)
    """

    _path: pathlib.Path
    _fs: filesystem.FileSystem
    _closed: bool

    def __init__(self, path: pathlib.Path, fs: filesystem.FileSystem) -> None:
        self._path = path
        self._fs = fs
        self._closed = False

    @property
    def path(self) -> pathlib.Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Delete the directory tree. Later calls do nothing.

        The handle counts as closed before deletion starts, so a deletion
        error propagates once and is never retried by this handle.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Removing temp directory {self._path}")
        delete.delete_directory_recursive(self._path, fs=self._fs)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @override
    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"TempDirectory({str(self._path)!r}, {state})"


def _resolve_temp_root(temp_root: PathLike | None) -> pathlib.Path:
    if temp_root is not None:
        root = pathlib.Path(temp_root)
        if not root.is_dir():
            raise exceptions.TempRootError(
                f"Temp root does not exist or is not a directory: {root}"
            )
        return root
    from shimmer import config

    return config.get_temp_root()


def with_temp_directory(
    *,
    temp_root: PathLike | None = None,
    fs: filesystem.FileSystem | None = None,
) -> TempDirectory:
    """Create a uniquely named directory under the temp root.

    Raises:
        TempRootError: If the temp root (given or configured) is missing or
            not a directory.
    """
    fs = fs or filesystem.get_filesystem()
    root = _resolve_temp_root(temp_root)
    path = root / str(uuid.uuid4())
    fs.make_dir(path)
    logger.debug(f"Created temp directory {path}")
    return TempDirectory(path, fs)


def create_temp_file(*, temp_root: PathLike | None = None) -> tuple[pathlib.Path, BinaryIO]:
    """Create an empty, uniquely named file and return it open for writing.

    The caller owns both the stream and the file.
    """
    root = _resolve_temp_root(temp_root)
    fd, name = tempfile.mkstemp(dir=root, suffix=".tmp")
    try:
        stream = os.fdopen(fd, "wb")
    except BaseException:
        os.close(fd)
        raise
    return pathlib.Path(name), stream
