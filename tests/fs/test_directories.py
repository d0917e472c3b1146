from __future__ import annotations

import pathlib
import threading
from typing import TYPE_CHECKING

import pytest

from shimmer.fs import directories, filesystem

if TYPE_CHECKING:
    from shimmer.fs import PathLike

# =============================================================================
# iter_path_prefixes
# =============================================================================


def test_prefixes_posix_absolute() -> None:
    prefixes = list(directories.iter_path_prefixes("/srv/app/data", sep="/", volume_sep=None))
    assert prefixes == ["/", "/srv", "/srv/app", "/srv/app/data"]


def test_prefixes_drive_letter_gets_trailing_separator() -> None:
    prefixes = list(directories.iter_path_prefixes(r"C:\Apps\Tool", sep="\\", volume_sep=":"))
    assert prefixes == ["C:\\", r"C:\Apps", r"C:\Apps\Tool"]


def test_prefixes_bare_drive() -> None:
    assert list(directories.iter_path_prefixes("D:", sep="\\", volume_sep=":")) == ["D:\\"]


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        (
            r"\\server\share\app\bin",
            ["\\\\server\\share\\", r"\\server\share\app", r"\\server\share\app\bin"],
        ),
        ("\\\\server\\share\\", ["\\\\server\\share\\"]),
        (r"\\server\share", ["\\\\server\\share\\"]),
    ],
)
def test_prefixes_unc_path_starts_at_share_root(path: str, expected: list[str]) -> None:
    assert list(directories.iter_path_prefixes(path, sep="\\", volume_sep=":")) == expected


def test_prefixes_unc_never_yields_drive_relative_paths() -> None:
    prefixes = list(directories.iter_path_prefixes(r"\\nas\apps\tool", sep="\\", volume_sep=":"))
    assert all(prefix.startswith("\\\\nas\\apps") for prefix in prefixes)


def test_prefixes_colon_mid_path_is_not_a_volume() -> None:
    prefixes = list(directories.iter_path_prefixes("/data/a:b", sep="/", volume_sep=":"))
    assert prefixes == ["/", "/data", "/data/a:b"]


# =============================================================================
# create_recursive
# =============================================================================


def test_create_recursive_creates_all_ancestors(tmp_path: pathlib.Path) -> None:
    target = tmp_path / "a" / "b" / "c"

    result = directories.create_recursive(target)

    assert result == target
    for ancestor in (tmp_path / "a", tmp_path / "a" / "b", target):
        assert ancestor.is_dir()


def test_create_recursive_twice_is_noop(tmp_path: pathlib.Path) -> None:
    target = tmp_path / "x" / "y"
    (target / "keep.txt").parent.mkdir(parents=True)
    (target / "keep.txt").write_text("data")

    directories.create_recursive(target)
    directories.create_recursive(target)

    assert (target / "keep.txt").read_text() == "data"
    assert sorted(p.name for p in (tmp_path / "x").iterdir()) == ["y"]


def test_create_recursive_relative_path_is_made_absolute(tmp_path: pathlib.Path) -> None:
    result = directories.create_recursive("rel/dir")

    assert result.is_absolute()
    assert result == tmp_path / "rel" / "dir"
    assert result.is_dir()


def test_create_recursive_file_in_the_way_raises(tmp_path: pathlib.Path) -> None:
    (tmp_path / "blocker").write_text("not a dir")

    with pytest.raises(FileExistsError):
        directories.create_recursive(tmp_path / "blocker" / "child")


def test_create_recursive_tolerates_concurrent_creator(tmp_path: pathlib.Path) -> None:
    target = tmp_path / "raced"

    class RacingFileSystem(filesystem.LocalFileSystem):
        """Another process creates the directory between the check and mkdir."""

        def make_dir(self, path: PathLike) -> None:
            super().make_dir(path)
            raise FileExistsError(path)

    result = directories.create_recursive(target, fs=RacingFileSystem())

    assert result.is_dir()


def test_create_recursive_propagates_permission_error(tmp_path: pathlib.Path) -> None:
    class DenyingFileSystem(filesystem.LocalFileSystem):
        def make_dir(self, path: PathLike) -> None:
            raise PermissionError(f"denied: {path}")

    with pytest.raises(PermissionError, match="denied"):
        directories.create_recursive(tmp_path / "nope", fs=DenyingFileSystem())


def test_create_recursive_many_threads_overlapping(tmp_path: pathlib.Path) -> None:
    errors = list[BaseException]()
    targets = [tmp_path / "shared" / "tree" / f"leaf{i}" for i in range(8)]

    def create(target: pathlib.Path) -> None:
        try:
            directories.create_recursive(target)
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=create, args=(t,)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert all(t.is_dir() for t in targets)
