"""Resilience helpers for installers and updaters.

The names below are the operations installers call directly and are imported
on first use, so ``import shimmer`` stays cheap for a CLI that only needs one
of them. Supporting types live in their modules (``shimmer.fs.filesystem``,
``shimmer.exceptions``, ``shimmer.config``).
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from shimmer.concurrency import map_reduce as map_reduce
    from shimmer.fs.delete import delete_directory_recursive as delete_directory_recursive
    from shimmer.fs.directories import create_recursive as create_recursive
    from shimmer.fs.temp import with_temp_directory as with_temp_directory
    from shimmer.fs.walk import list_all_files_recursively as list_all_files_recursively
    from shimmer.instance import SingleInstanceGuard as SingleInstanceGuard
    from shimmer.instance import single_instance as single_instance
    from shimmer.retry import RetryPolicy as RetryPolicy

# Owning module -> public names it provides
_PUBLIC_API: dict[str, tuple[str, ...]] = {
    "shimmer.concurrency": ("map_reduce",),
    "shimmer.fs.delete": ("delete_directory_recursive",),
    "shimmer.fs.directories": ("create_recursive",),
    "shimmer.fs.temp": ("with_temp_directory",),
    "shimmer.fs.walk": ("list_all_files_recursively",),
    "shimmer.instance": ("SingleInstanceGuard", "single_instance"),
    # Not ``retry`` itself: that name is the shimmer.retry submodule
    "shimmer.retry": ("RetryPolicy",),
}

_NAME_TO_MODULE = {name: module for module, names in _PUBLIC_API.items() for name in names}

__all__ = sorted(_NAME_TO_MODULE)


def __getattr__(name: str) -> object:
    module_path = _NAME_TO_MODULE.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(importlib.import_module(module_path), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted({*globals(), *__all__})
