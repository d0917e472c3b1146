from __future__ import annotations

import logging
import os
import pathlib
import shutil
from typing import TYPE_CHECKING

import anyio.to_thread

from shimmer import exceptions

if TYPE_CHECKING:
    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)


async def copy_to_async(source: PathLike, dest: PathLike) -> pathlib.Path:
    """Copy source to dest in a worker thread, overwriting dest.

    Raises:
        PathNotFoundError: If source is not an existing file.
        ValueError: If dest is empty.
    """
    if not os.fspath(dest):
        raise ValueError("dest must not be empty")
    src = pathlib.Path(source)
    if not src.is_file():
        raise exceptions.PathNotFoundError(f"Source file not found: {src}")

    logger.debug(f"Copying {src} -> {dest}")
    copied = await anyio.to_thread.run_sync(shutil.copyfile, src, dest)
    return pathlib.Path(copied)
