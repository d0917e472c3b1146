from __future__ import annotations

import logging
import pathlib
import sys
from typing import TYPE_CHECKING

import click.testing
import pytest

from shimmer.config import io as config_io
from shimmer.fs import filesystem

# Add tests directory to sys.path so helpers.py can be imported
_tests_dir = pathlib.Path(__file__).parent
if str(_tests_dir) not in sys.path:
    sys.path.insert(0, str(_tests_dir))

if TYPE_CHECKING:
    from collections.abc import Generator

_SHIMMER_LOGGERS = ("shimmer",)


@pytest.fixture(autouse=True)
def reset_shimmer_state(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None]:
    """Isolate config, lock directory and default filesystem between tests.

    HOME and cwd point into tmp_path so no real ~/.config/shimmer or
    ./.shimmer config file leaks into a test.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(config_io.LOCK_DIR_ENV, str(tmp_path / "locks"))
    for name in (config_io.TEMP_ROOT_ENV, "TEMP", "TMPDIR", "TMP"):
        monkeypatch.delenv(name, raising=False)

    config_io.clear_config_cache()
    filesystem.set_filesystem(None)
    for name in _SHIMMER_LOGGERS:
        logging.getLogger(name).handlers.clear()
    yield
    config_io.clear_config_cache()
    filesystem.set_filesystem(None)


@pytest.fixture
def temp_root(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """Configured temp root (via SHIMMER_TEMP_ROOT)."""
    root = tmp_path / "temp-root"
    root.mkdir()
    monkeypatch.setenv(config_io.TEMP_ROOT_ENV, str(root))
    return root


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Create a CLI runner for testing."""
    return click.testing.CliRunner()
