from typing import override


class ShimmerError(Exception):
    """Base exception for Shimmer errors."""

    def format_user_message(self) -> str:
        """Format a user-friendly error message."""
        return str(self)

    def get_suggestion(self) -> str | None:
        """Return actionable suggestion for resolving the error."""
        return None


class PathNotFoundError(ShimmerError, FileNotFoundError):
    """Raised when a path an operation requires does not exist."""

    pass


class AccessDeniedError(ShimmerError, PermissionError):
    """Raised when a path cannot be read or modified due to permissions."""

    @override
    def get_suggestion(self) -> str:
        return "Check file permissions, or close programs that may hold the files open"


class LockTimeoutError(ShimmerError, TimeoutError):
    """Raised when a named lock could not be acquired within the timeout."""

    _key: str
    _timeout_ms: int

    def __init__(self, key: str, timeout_ms: int) -> None:
        self._key = key
        self._timeout_ms = timeout_ms
        if timeout_ms > 0:
            message = f"Timeout waiting for exclusive access on '{key}' after {timeout_ms} ms"
        else:
            message = f"Exclusive access on '{key}' is held by another instance"
        super().__init__(message)

    @property
    def key(self) -> str:
        return self._key

    @override
    def get_suggestion(self) -> str:
        return "Wait for the other instance to finish, or raise --timeout-ms"

    @override
    def __reduce__(self) -> tuple[type, tuple[str, int]]:
        return (self.__class__, (self._key, self._timeout_ms))


class ConfigError(ShimmerError):
    """Raised when configuration is missing or cannot be loaded."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when a configuration value fails validation."""

    pass


class TempRootError(ConfigError):
    """Raised when no usable temp root is configured."""

    @override
    def get_suggestion(self) -> str:
        return "Set SHIMMER_TEMP_ROOT or TEMP to an existing directory, or set temp.root in config"


class MapReduceError(ShimmerError):
    """Raised when a unit of work in a bounded-parallelism batch fails.

    Carries the item whose unit failed first; the original exception is the
    ``__cause__``. Later failures and completed results are not reported.
    """

    _item: object
    _error: BaseException

    def __init__(self, item: object, error: BaseException) -> None:
        self._item = item
        self._error = error
        super().__init__(f"Unit of work for item {item!r} failed: {error!r}")

    @property
    def item(self) -> object:
        return self._item

    @override
    def __reduce__(self) -> tuple[type, tuple[object, BaseException]]:
        return (self.__class__, (self._item, self._error))
