from __future__ import annotations

import os
import pathlib
from typing import TYPE_CHECKING

import pytest

from helpers import make_read_only, make_tree, restore_writable
from shimmer import config, exceptions, retry
from shimmer.fs import delete, filesystem

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from shimmer.fs import PathLike

_FAST = retry.RetryPolicy(max_attempts=2, delay=0)


class _LockedFileSystem(filesystem.LocalFileSystem):
    """Local filesystem where named files refuse removal a number of times."""

    locked: dict[str, int]
    attempts: dict[str, int]

    def __init__(self, locked: dict[str, int]) -> None:
        self.locked = locked
        self.attempts = {}

    def remove_file(self, path: PathLike) -> None:
        name = pathlib.Path(path).name
        self.attempts[name] = self.attempts.get(name, 0) + 1
        if self.locked.get(name, 0) > 0:
            self.locked[name] -= 1
            raise PermissionError(f"{name} is in use by another process")
        super().remove_file(path)


def test_deletes_nested_tree(tmp_path: pathlib.Path) -> None:
    root = make_tree(tmp_path / "tree", {"a.txt": "1", "sub/b.txt": "2", "sub/deep/c.txt": "3"})
    (root / "empty").mkdir()

    delete.delete_directory_recursive(root, policy=_FAST)

    assert not root.exists()
    assert tmp_path.exists()


def test_deletes_read_only_files_and_directories(tmp_path: pathlib.Path) -> None:
    root = make_tree(tmp_path / "tree", {"ro.txt": "x", "sub/ro2.txt": "y", "sub/rw.txt": "z"})
    make_read_only(root / "ro.txt")
    make_read_only(root / "sub" / "ro2.txt")
    make_read_only(root / "sub")

    try:
        delete.delete_directory_recursive(root, policy=_FAST)
    finally:
        restore_writable(root)

    assert not root.exists()


def test_retries_transiently_locked_file(tmp_path: pathlib.Path) -> None:
    root = make_tree(tmp_path / "tree", {"busy.dll": "", "free.txt": ""})
    fs = _LockedFileSystem({"busy.dll": 2})

    delete.delete_directory_recursive(root, policy=_FAST, fs=fs)

    assert not root.exists()
    assert fs.attempts["busy.dll"] == 3
    assert fs.attempts["free.txt"] == 1


def test_persistent_lock_propagates_original_error_and_is_resumable(tmp_path: pathlib.Path) -> None:
    root = make_tree(tmp_path / "tree", {"busy.dll": "", "sub/other.txt": ""})
    fs = _LockedFileSystem({"busy.dll": 10})

    with pytest.raises(PermissionError, match="in use by another process"):
        delete.delete_directory_recursive(root, policy=_FAST, fs=fs)

    assert fs.attempts["busy.dll"] == _FAST.max_attempts + 1
    assert (root / "busy.dll").exists()

    # The lock goes away; deleting again finishes the job
    delete.delete_directory_recursive(root, policy=_FAST)
    assert not root.exists()


def test_missing_directory_raises_not_found(tmp_path: pathlib.Path) -> None:
    with pytest.raises(exceptions.PathNotFoundError):
        delete.delete_directory_recursive(tmp_path / "missing", policy=_FAST)


def test_file_path_raises_not_found(tmp_path: pathlib.Path) -> None:
    (tmp_path / "file.txt").write_text("")
    with pytest.raises(exceptions.PathNotFoundError):
        delete.delete_directory_recursive(tmp_path / "file.txt", policy=_FAST)


def test_uses_configured_policy_by_default(tmp_path: pathlib.Path, mocker: MockerFixture) -> None:
    root = make_tree(tmp_path / "tree", {"a.txt": ""})
    configured = retry.RetryPolicy(max_attempts=5, delay=0)
    mocker.patch.object(config, "get_retry_policy", autospec=True, return_value=configured)
    spy = mocker.spy(retry, "retry")

    delete.delete_directory_recursive(root)

    assert spy.call_args.args[1] is configured


def test_file_vanishing_mid_delete_is_not_an_error(tmp_path: pathlib.Path) -> None:
    root = make_tree(tmp_path / "tree", {"gone.txt": ""})

    class VanishingFileSystem(filesystem.LocalFileSystem):
        def remove_file(self, path: PathLike) -> None:
            super().remove_file(path)
            raise FileNotFoundError(path)

    delete.delete_directory_recursive(root, policy=_FAST, fs=VanishingFileSystem())

    assert not root.exists()


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
def test_symlinked_directory_target_survives(tmp_path: pathlib.Path) -> None:
    outside = make_tree(tmp_path / "outside", {"keep.txt": "precious"})
    root = make_tree(tmp_path / "tree", {"a.txt": ""})
    (root / "link").symlink_to(outside, target_is_directory=True)

    delete.delete_directory_recursive(root, policy=_FAST)

    assert not root.exists()
    assert (outside / "keep.txt").read_text() == "precious"
