import copy
import logging
import os
import pathlib
from typing import Any, cast

import pydantic
import ruamel.yaml

from shimmer import exceptions, retry
from shimmer.config import models

logger = logging.getLogger(__name__)

TEMP_ROOT_ENV = "SHIMMER_TEMP_ROOT"
LOCK_DIR_ENV = "SHIMMER_LOCK_DIR"

_DEFAULT_LOCK_DIR_NAME = "shimmer-locks"
_POSIX_SHARED_TMP = "/tmp"
_WINDOWS_PROGRAM_DATA = r"C:\ProgramData"

# Module-level cache for merged config to avoid repeated disk I/O
_merged_config_cache: models.ShimmerConfig | None = None


def get_global_config_path() -> pathlib.Path:
    """Get user-level config path (~/.config/shimmer/config.yaml)."""
    return pathlib.Path.home() / ".config" / "shimmer" / "config.yaml"


def get_local_config_path() -> pathlib.Path:
    """Get working-directory config path (.shimmer/config.yaml)."""
    return pathlib.Path.cwd() / ".shimmer" / "config.yaml"


def load_config_file(path: pathlib.Path) -> dict[str, Any]:
    """Load YAML config as plain dict, returns empty dict if missing."""
    if not path.exists():
        return {}

    try:
        yaml = ruamel.yaml.YAML(typ="safe")
        with path.open() as f:
            data = yaml.load(f)
    except ruamel.yaml.YAMLError as e:
        raise exceptions.ConfigError(f"Invalid YAML in {path}: {e}") from e
    except PermissionError:
        raise exceptions.ConfigError(f"Permission denied reading {path}") from None
    except OSError as e:
        raise exceptions.ConfigError(f"Error reading {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise exceptions.ConfigError(f"Config file {path} must contain a mapping")
    return cast("dict[str, Any]", data)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into base, recursively for nested dicts."""
    result = copy.deepcopy(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            nested_override = cast("dict[str, Any]", val)
            result[key] = deep_merge(result[key], nested_override)
        else:
            result[key] = copy.deepcopy(val)
    return result


def get_merged_config() -> models.ShimmerConfig:
    """Load and merge configs: defaults < global < local.

    Results are cached to avoid repeated disk I/O within a single command.
    Call clear_config_cache() to reset (e.g., in tests).
    """
    global _merged_config_cache
    if _merged_config_cache is not None:
        return _merged_config_cache

    merged = models.ShimmerConfig.get_default().model_dump()
    for path in (get_global_config_path(), get_local_config_path()):
        data = load_config_file(path)
        if data:
            logger.debug(f"Loaded config from {path}")
        merged = deep_merge(merged, data)

    try:
        _merged_config_cache = models.ShimmerConfig.model_validate(merged)
    except pydantic.ValidationError as e:
        msg = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise exceptions.ConfigValidationError(f"Invalid configuration: {msg}") from None
    return _merged_config_cache


def clear_config_cache() -> None:
    """Clear the merged config cache. Call this when config files change."""
    global _merged_config_cache
    _merged_config_cache = None


def get_temp_root() -> pathlib.Path:
    """Resolve the temp root: SHIMMER_TEMP_ROOT, then temp.root, then temp.env_vars.

    Raises:
        TempRootError: If nothing is set or the resolved path is not a directory.
    """
    merged = get_merged_config()
    candidates: list[tuple[str, str | None]] = [
        (TEMP_ROOT_ENV, os.environ.get(TEMP_ROOT_ENV)),
        ("temp.root", merged.temp.root),
        *((name, os.environ.get(name)) for name in merged.temp.env_vars),
    ]

    for source, value in candidates:
        if not value:
            continue
        temp_root = pathlib.Path(value)
        if not temp_root.is_dir():
            raise exceptions.TempRootError(
                f"Temp root from {source} does not exist or is not a directory: {temp_root}"
            )
        return temp_root

    names = ", ".join([TEMP_ROOT_ENV, *merged.temp.env_vars])
    raise exceptions.TempRootError(f"No temp root configured (checked temp.root and {names})")


def get_retry_policy() -> retry.RetryPolicy:
    """Get the file-operation retry policy from merged config."""
    merged = get_merged_config()
    return retry.RetryPolicy(
        max_attempts=merged.retry.attempts,
        delay=merged.retry.delay_ms / 1000,
        jitter=merged.retry.jitter_ms / 1000,
    )


def get_default_parallelism() -> int:
    """Get the default degree of parallelism from merged config."""
    merged = get_merged_config()
    return merged.concurrency.parallelism


def get_lock_dir() -> pathlib.Path:
    """Get the directory holding named lock files.

    Every process on the machine must resolve the same directory, whoever it
    runs as. The default therefore ignores TMPDIR/TEMP/TMP, which are per-user
    on Windows and macOS and reset by sudo.
    """
    if env_dir := os.environ.get(LOCK_DIR_ENV):
        return pathlib.Path(env_dir)
    merged = get_merged_config()
    if merged.instance.lock_dir:
        return pathlib.Path(merged.instance.lock_dir)
    return get_default_lock_dir()


def get_default_lock_dir() -> pathlib.Path:
    """Machine-wide lock directory: %ProgramData%\\shimmer\\locks or /tmp/shimmer-locks."""
    if os.name == "nt":
        program_data = os.environ.get("ProgramData") or _WINDOWS_PROGRAM_DATA
        return pathlib.Path(program_data) / "shimmer" / "locks"
    return pathlib.Path(_POSIX_SHARED_TMP) / _DEFAULT_LOCK_DIR_NAME


def dump_merged_config() -> str:
    """Render the merged config as YAML."""
    import io

    yaml = ruamel.yaml.YAML(typ="safe")
    yaml.default_flow_style = False
    stream = io.StringIO()
    yaml.dump(get_merged_config().model_dump(), stream)
    return stream.getvalue()
