"""Configuration models and loading for poplar."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from poplar.validation import DEFAULT_MESSAGE, LEGACY_ALIASES


class HooksConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fallback_scan: bool = True
    route_handler_errors: bool = True
    max_listeners: int = Field(default=16, ge=0)


class ValidationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_message: str = DEFAULT_MESSAGE
    aliases: dict[str, str] = Field(default_factory=lambda: dict(LEGACY_ALIASES))


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    poplar_level: str | None = None
    configure: bool = False


class PoplarConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hooks: HooksConfig = Field(default_factory=HooksConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    freeze_on_dispatch: bool = False


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data or {}


def load_effective_config(
    path: str | Path,
    system_defaults: dict[str, Any] | None = None,
    runtime_override: dict[str, Any] | None = None,
) -> PoplarConfig:
    """Load config with precedence runtime > <path>/.poplar.yaml > system."""
    project_config = _load_yaml(Path(path) / ".poplar.yaml")

    merged: dict[str, Any] = {}
    if system_defaults:
        merged = _deep_merge(merged, system_defaults)
    if project_config:
        merged = _deep_merge(merged, project_config)
    if runtime_override:
        merged = _deep_merge(merged, runtime_override)

    return PoplarConfig.model_validate(merged)
