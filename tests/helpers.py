"""Filesystem helpers shared across tests."""

from __future__ import annotations

import os
import stat
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pathlib


def make_tree(root: pathlib.Path, files: dict[str, str]) -> pathlib.Path:
    """Create files (relative path -> content) under root, with parents."""
    for rel_path, content in files.items():
        file_path = root / rel_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
    return root


def make_read_only(path: pathlib.Path) -> None:
    """Strip write permission from a file or directory."""
    mode = stat.S_IMODE(path.stat().st_mode)
    os.chmod(path, mode & ~(stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH))


def restore_writable(root: pathlib.Path) -> None:
    """Make a tree writable again so tmp_path cleanup succeeds."""
    if not root.exists():
        return
    for dirpath, _dirnames, _filenames in os.walk(root):
        os.chmod(dirpath, 0o755)
