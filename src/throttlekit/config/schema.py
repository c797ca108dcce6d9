"""Pydantic models for validated settings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from throttlekit.config.defaults import (
    DEFAULT_CONCURRENCY,
    DEFAULT_LEADING,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SHELL,
    DEFAULT_TRAILING,
    DEFAULT_WAIT,
)
from throttlekit.errors.exceptions import ConfigurationError


class ThrottleConfig(BaseModel):
    wait: float = Field(default=DEFAULT_WAIT, ge=0, allow_inf_nan=False)
    leading: bool = DEFAULT_LEADING
    trailing: bool = DEFAULT_TRAILING


class QueueConfig(BaseModel):
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1, strict=True)


class Settings(BaseModel):
    """Fully resolved settings, built from the merged config hierarchy."""

    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    shell: str = DEFAULT_SHELL
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> Settings:
        """Validate a flat config dict (as returned by load_config_hierarchy).

        Raises ConfigurationError naming the first offending field.
        """
        throttle_fields = {k: config[k] for k in ("wait", "leading", "trailing") if k in config}
        queue_fields = {k: config[k] for k in ("concurrency",) if k in config}
        try:
            return cls(
                throttle=ThrottleConfig(**throttle_fields),
                queue=QueueConfig(**queue_fields),
                shell=config.get("shell", DEFAULT_SHELL),
                log_level=str(config.get("log_level", DEFAULT_LOG_LEVEL)).upper(),
            )
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            raise ConfigurationError(
                f"Invalid configuration: {field}: {first.get('msg')}",
                field=field,
                value=first.get("input"),
            ) from e
