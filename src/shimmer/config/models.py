from typing import Annotated, Any, Self

import pydantic

# Environment variables consulted for the temp root when temp.root is unset
DEFAULT_TEMP_ENV_VARS: list[str] = ["TEMP", "TMPDIR", "TMP"]


class TempConfig(pydantic.BaseModel):
    """Temp directory configuration."""

    root: str | None = None
    env_vars: list[str] = pydantic.Field(default_factory=lambda: list(DEFAULT_TEMP_ENV_VARS))

    @pydantic.field_validator("env_vars", mode="before")
    @classmethod
    def parse_env_vars(cls, v: Any) -> list[str] | Any:
        """Parse comma-separated string into list."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v


class RetryConfig(pydantic.BaseModel):
    """Retry policy for file operations."""

    attempts: Annotated[int, pydantic.Field(ge=1)] = 2
    delay_ms: Annotated[int, pydantic.Field(ge=0)] = 250
    jitter_ms: Annotated[int, pydantic.Field(ge=0)] = 0


class ConcurrencyConfig(pydantic.BaseModel):
    """Bounded-parallelism defaults."""

    parallelism: Annotated[int, pydantic.Field(ge=1)] = 4


class InstanceConfig(pydantic.BaseModel):
    """Single-instance lock configuration."""

    lock_dir: str | None = None


class ShimmerConfig(pydantic.BaseModel):
    """Complete Shimmer configuration schema."""

    model_config = pydantic.ConfigDict(extra="forbid")

    temp: TempConfig = pydantic.Field(default_factory=TempConfig)
    retry: RetryConfig = pydantic.Field(default_factory=RetryConfig)
    concurrency: ConcurrencyConfig = pydantic.Field(default_factory=ConcurrencyConfig)
    instance: InstanceConfig = pydantic.Field(default_factory=InstanceConfig)

    @classmethod
    def get_default(cls) -> Self:
        """Get default configuration."""
        return cls()
