from __future__ import annotations

import functools
import logging
import pathlib
from typing import TYPE_CHECKING

from shimmer import exceptions, retry
from shimmer.fs import filesystem

if TYPE_CHECKING:
    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)


def delete_directory_recursive(
    path: PathLike,
    *,
    policy: retry.RetryPolicy | None = None,
    fs: filesystem.FileSystem | None = None,
) -> None:
    """Delete a directory tree, riding out read-only entries and transient locks.

    Each file removal is retried under ``policy`` (the configured retry policy
    by default) to absorb short-lived locks such as virus scanners or handles
    that are still closing. Not transactional: if a file still cannot be
    removed after the last retry, its original error propagates and whatever
    was already deleted stays deleted. Calling again finishes the job.

    Raises:
        PathNotFoundError: If path is not an existing directory.
    """
    fs = fs or filesystem.get_filesystem()
    if policy is None:
        from shimmer import config

        policy = config.get_retry_policy()

    root = pathlib.Path(path)
    if not fs.is_dir(root):
        raise exceptions.PathNotFoundError(f"Directory not found: {root}")

    logger.debug(f"Deleting directory tree: {root}")
    _delete_tree(root, policy, fs)


def _delete_tree(
    directory: pathlib.Path, policy: retry.RetryPolicy, fs: filesystem.FileSystem
) -> None:
    # Children of a read-only directory cannot be unlinked on POSIX
    fs.clear_attributes(directory)

    for file_path in fs.list_files(directory):
        fs.clear_attributes(file_path)
        retry.retry(functools.partial(_remove_file, fs, file_path), policy, retry_on=(OSError,))

    for subdir in fs.list_dirs(directory):
        _delete_tree(subdir, policy, fs)

    fs.clear_attributes(directory)
    fs.remove_dir(directory)


def _remove_file(fs: filesystem.FileSystem, file_path: pathlib.Path) -> None:
    try:
        fs.remove_file(file_path)
    except FileNotFoundError:
        logger.debug(f"Already gone: {file_path}")
