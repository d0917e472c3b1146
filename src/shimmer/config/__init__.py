from shimmer.config.io import (
    clear_config_cache,
    dump_merged_config,
    get_default_parallelism,
    get_lock_dir,
    get_merged_config,
    get_retry_policy,
    get_temp_root,
)
from shimmer.config.models import ShimmerConfig

__all__ = [
    "ShimmerConfig",
    "clear_config_cache",
    "dump_merged_config",
    "get_default_parallelism",
    "get_lock_dir",
    "get_merged_config",
    "get_retry_policy",
    "get_temp_root",
]
