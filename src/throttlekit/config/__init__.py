"""Configuration — defaults, YAML/env hierarchy, and validated settings."""

from throttlekit.config.hierarchy import ResolvedConfig, load_config_hierarchy, resolve_config
from throttlekit.config.schema import QueueConfig, Settings, ThrottleConfig

__all__ = [
    "QueueConfig",
    "ResolvedConfig",
    "Settings",
    "ThrottleConfig",
    "load_config_hierarchy",
    "resolve_config",
]
