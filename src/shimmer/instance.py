"""Cross-process "only one instance running" guard.

A named lock is a ``filelock.FileLock`` on a well-known file in a shared lock
directory. Lock files are world read/write and the lock directory is sticky
and world-writable, so processes running as different users or privilege
levels (an elevated updater and an unprivileged watcher) all see and can take
the same lock.

The OS releases an advisory lock when its holder dies. To tell a clean
hand-over from a crashed holder, the holder's PID is kept in an ``.owner``
record next to the lock file and cleared on release; a non-empty record found
on acquire means the previous holder never released. That is treated as a
successful acquisition so a crash cannot wedge every future instance.
"""

from __future__ import annotations

import contextlib
import dataclasses
import hashlib
import logging
import os
import pathlib
import re
import stat
from typing import TYPE_CHECKING, Self, override

import filelock

from shimmer import exceptions

if TYPE_CHECKING:
    from collections.abc import Generator
    from types import TracebackType

    from shimmer.fs import PathLike

logger = logging.getLogger(__name__)

_NAMESPACE = "Global"
_SAFE_NAME = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LOCK_FILE_MODE = 0o666
_LOCK_DIR_MODE = 0o1777
_IS_WINDOWS = os.name == "nt"


def get_lock_filename(name: str) -> str:
    """Lock file name for a lock name, hashing names that are not filename-safe."""
    if _SAFE_NAME.match(name):
        stem = name
    else:
        # First 32 hex chars of SHA-256 = 128 bits
        stem = hashlib.sha256(name.encode()).hexdigest()[:32]
    return f"{_NAMESPACE}-{stem}.lock"


def _ensure_shared_dir(lock_dir: pathlib.Path) -> None:
    """Create lock_dir and, if we own it, make it sticky and world-writable."""
    lock_dir.mkdir(parents=True, exist_ok=True)
    if _IS_WINDOWS:
        return
    st = lock_dir.stat()
    if stat.S_IMODE(st.st_mode) != _LOCK_DIR_MODE and st.st_uid == os.getuid():
        os.chmod(lock_dir, _LOCK_DIR_MODE)


@dataclasses.dataclass(frozen=True, slots=True)
class AcquireResult:
    """Outcome of a named lock acquisition."""

    acquired: bool
    recovered_from_abandoned: bool = False


class NamedLock:
    """Cross-process lock identified by name."""

    _name: str
    _path: pathlib.Path
    _owner_path: pathlib.Path
    _lock: filelock.BaseFileLock
    _held: bool

    def __init__(self, name: str, *, lock_dir: PathLike | None = None) -> None:
        if not name:
            raise ValueError("lock name must not be empty")
        if lock_dir is None:
            from shimmer import config

            lock_dir = config.get_lock_dir()
        self._name = name
        self._path = pathlib.Path(lock_dir) / get_lock_filename(name)
        self._owner_path = self._path.with_suffix(".owner")
        self._lock = filelock.FileLock(self._path, mode=_LOCK_FILE_MODE, thread_local=False)
        self._held = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> pathlib.Path:
        return self._path

    @property
    def is_held(self) -> bool:
        return self._held

    def acquire(self, timeout: float = -1) -> AcquireResult:
        """Wait up to timeout seconds for the lock.

        Args:
            timeout: Seconds to wait. Negative waits forever, 0 tries once.

        Returns:
            AcquireResult; ``acquired`` is False if the timeout expired.
        """
        if self._held:
            raise RuntimeError(f"Lock '{self._name}' is already held by this instance")

        _ensure_shared_dir(self._path.parent)
        logger.debug(f"Waiting for named lock: {self._path}")
        try:
            self._lock.acquire(timeout=timeout)
        except filelock.Timeout:
            logger.debug(f"Timed out waiting for named lock: {self._path}")
            return AcquireResult(acquired=False)

        try:
            recovered = self._claim_owner_record()
        except BaseException:
            self._lock.release()
            raise
        self._held = True
        logger.debug(f"Named lock acquired: {self._path}")
        return AcquireResult(acquired=True, recovered_from_abandoned=recovered)

    def release(self) -> None:
        """Release the lock. Does nothing if it is not held."""
        if not self._held:
            return
        self._held = False
        try:
            self._write_owner_record("")
        finally:
            self._lock.release()
        logger.debug(f"Released named lock: {self._path}")

    def _claim_owner_record(self) -> bool:
        """Record this process as owner; return True if a previous owner never released."""
        try:
            previous = self._owner_path.read_text().strip()
        except FileNotFoundError:
            previous = ""

        if previous:
            logger.warning(
                f"Lock '{self._name}' was abandoned by process {previous}; taking ownership"
            )
        self._write_owner_record(str(os.getpid()))
        return bool(previous)

    def _write_owner_record(self, content: str) -> None:
        # Truncate in place rather than replace: in a sticky directory only the
        # file's creator may unlink or rename it, but anyone may write it.
        fd = os.open(self._owner_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _LOCK_FILE_MODE)
        with os.fdopen(fd, "w") as f:
            f.write(content)
        # Best effort - only the file's owner may chmod
        with contextlib.suppress(PermissionError):
            os.chmod(self._owner_path, _LOCK_FILE_MODE)

    @override
    def __repr__(self) -> str:
        return f"NamedLock({self._name!r}, held={self._held})"


class SingleInstanceGuard:
    """Holds a named lock for as long as this instance should be the only one.

    Acquires on construction:

        with SingleInstanceGuard("my-updater", timeout_ms=5000):
            run_update()

    ``timeout_ms <= 0`` waits indefinitely; ``blocking=False`` tries exactly
    once. If the lock is not obtained, LockTimeoutError is raised and nothing
    is held.
    """

    _key: str
    _timeout_ms: int
    _lock: NamedLock
    _acquired: bool
    _released: bool
    _recovered: bool

    def __init__(
        self,
        key: str,
        timeout_ms: int = 0,
        *,
        blocking: bool = True,
        lock_dir: PathLike | None = None,
    ) -> None:
        self._key = key
        self._timeout_ms = timeout_ms
        self._acquired = False
        self._released = False
        self._recovered = False
        self._lock = NamedLock(key, lock_dir=lock_dir)

        if not blocking:
            timeout = 0.0
        elif timeout_ms <= 0:
            timeout = -1.0
        else:
            timeout = timeout_ms / 1000

        result = self._lock.acquire(timeout)
        if not result.acquired:
            raise exceptions.LockTimeoutError(key, timeout_ms if blocking else 0)
        self._acquired = True
        self._recovered = result.recovered_from_abandoned

    @property
    def key(self) -> str:
        return self._key

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def acquired(self) -> bool:
        return self._acquired and not self._released

    @property
    def recovered_from_abandoned(self) -> bool:
        return self._recovered

    def release(self) -> None:
        """Release the lock if this guard holds it; later calls do nothing."""
        if not self._acquired or self._released:
            return
        self._released = True
        self._lock.release()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()


@contextlib.contextmanager
def single_instance(
    key: str,
    timeout_ms: int = 0,
    *,
    blocking: bool = True,
    lock_dir: PathLike | None = None,
) -> Generator[SingleInstanceGuard]:
    """Context manager holding the single-instance lock for key."""
    with SingleInstanceGuard(key, timeout_ms, blocking=blocking, lock_dir=lock_dir) as guard:
        yield guard
