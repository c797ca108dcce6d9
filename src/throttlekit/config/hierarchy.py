"""Layered configuration: merges sources and remembers where each value came from.

Layers, lowest priority first:
  default → ~/.throttlekit/config.yaml → ./throttlekit.yaml (searched upward)
  → THROTTLEKIT_<KEY> environment variables → runtime flags

The set of keys, their env var names and their env coercion all come from the
pydantic settings models, so a new field in ``schema.py`` is picked up here.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, TypeAdapter, ValidationError

from throttlekit.config.defaults import get_defaults
from throttlekit.config.schema import QueueConfig, Settings, ThrottleConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "THROTTLEKIT_"

_GLOBAL_CONFIG_PATH = Path.home() / ".throttlekit" / "config.yaml"
_PROJECT_CONFIG_NAME = "throttlekit.yaml"


def _scalar_fields() -> dict[str, Any]:
    """Flat config key → annotation of the settings field it feeds."""
    fields: dict[str, Any] = {}
    for model in (ThrottleConfig, QueueConfig, Settings):
        for name, info in model.model_fields.items():
            annotation = info.annotation
            if isinstance(annotation, type) and issubclass(annotation, BaseModel):
                continue
            fields[name] = annotation
    return fields


_FIELD_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(annotation) for name, annotation in _scalar_fields().items()
}


def config_keys() -> list[str]:
    return list(_FIELD_ADAPTERS)


def env_var_name(key: str) -> str:
    return f"{ENV_PREFIX}{key.upper()}"


@dataclass
class ResolvedConfig:
    """Merged config values plus the layer that supplied each one."""

    values: dict[str, Any] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)

    def apply(self, layer: str, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            if key not in _FIELD_ADAPTERS:
                logger.warning("Ignoring unknown config key '%s' from %s", key, layer)
                continue
            self.values[key] = value
            self.sources[key] = layer

    def source_of(self, key: str) -> str:
        return self.sources.get(key, "default")


def resolve_config(**runtime_overrides: Any) -> ResolvedConfig:
    """Merge every layer. Runtime overrides set to None count as "not given"."""
    resolved = ResolvedConfig()
    resolved.apply("default", get_defaults())

    for layer, path in (("global", _GLOBAL_CONFIG_PATH), ("project", _find_project_config())):
        if path is None:
            continue
        data = _load_yaml_config(path)
        if data:
            resolved.apply(f"{layer} ({path})", data)

    for key, value in _load_env_vars().items():
        resolved.apply(env_var_name(key), {key: value})

    resolved.apply(
        "runtime",
        {key: value for key, value in runtime_overrides.items() if value is not None},
    )
    return resolved


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Merged values only; see :func:`resolve_config`."""
    return resolve_config(**runtime_overrides).values


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Read a YAML mapping. Unreadable or non-mapping files are skipped with a warning."""
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data


def _find_project_config(start: Path | None = None) -> Path | None:
    start = start or Path.cwd()
    for directory in (start, *start.parents):
        candidate = directory / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in _FIELD_ADAPTERS:
        raw = os.environ.get(env_var_name(key))
        if raw is not None:
            result[key] = _parse_env_value(key, raw)
    return result


def _parse_env_value(key: str, raw: str) -> Any:
    """Coerce ``raw`` with the type its settings field declares.

    Values that don't parse are passed through untouched, so Settings
    validation reports them against the right field.
    """
    try:
        return _FIELD_ADAPTERS[key].validate_python(raw.strip())
    except ValidationError:
        logger.warning("Cannot parse %s=%r for '%s'", env_var_name(key), raw, key)
        return raw
