"""Typed configuration schema and loader for the docshield package."""

from __future__ import annotations

import os
from collections.abc import Mapping
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, confloat, conint

from docshield.utils.errors import ConfigError

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class RedactionSettings(BaseModel):
    """Category toggles and threshold used by the redaction engine."""

    enable_pii: bool
    enable_financial: bool
    enable_medical: bool
    enable_legal: bool
    enable_metadata: bool
    confidence_threshold: confloat(ge=0.0, le=1.0) = 0.7

    model_config = ConfigDict(extra="forbid")


class ClassifierSettings(BaseModel):
    """Threshold applied when flagging sections during analysis."""

    confidence_threshold: confloat(ge=0.0, le=1.0) = 0.7

    model_config = ConfigDict(extra="forbid")


class AnalysisSettings(BaseModel):
    """Section extraction settings."""

    preview_length: conint(ge=1) = 100

    model_config = ConfigDict(extra="forbid")


class CustomPattern(BaseModel):
    """A user supplied detector registered on top of the built-ins."""

    name: str
    regex: str
    severity: Literal["high", "medium", "low"]
    category: Literal["pii", "financial", "medical", "legal", "other"]
    ignore_case: bool = False

    model_config = ConfigDict(extra="forbid")


class PatternSettings(BaseModel):
    """Adjustments to the built-in pattern catalog."""

    disabled: list[str] = []
    custom: list[CustomPattern] = []

    model_config = ConfigDict(extra="forbid")


class StorageSettings(BaseModel):
    """Location of the SQLite database."""

    path: str
    path_env: str

    model_config = ConfigDict(extra="forbid")


class LoggingSettings(BaseModel):
    """Package log level."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    model_config = ConfigDict(extra="forbid")


class ConfigModel(BaseModel):
    """Top-level configuration model."""

    schema_version: conint(ge=1)
    redaction: RedactionSettings
    classifier: ClassifierSettings
    analysis: AnalysisSettings
    patterns: PatternSettings
    storage: StorageSettings
    logging: LoggingSettings

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Loader utilities
# ---------------------------------------------------------------------------


def deep_merge_dicts(a: dict[str, Any], b: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge mapping ``b`` onto ``a`` returning a new dict."""

    result: dict[str, Any] = dict(a)
    for key, b_val in b.items():
        if key in result and isinstance(result[key], dict) and isinstance(b_val, dict):
            result[key] = deep_merge_dicts(result[key], b_val)
        else:
            result[key] = b_val
    return result


def load_config(
    path: str | os.PathLike[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> ConfigModel:
    """Load configuration from defaults and optional user overrides.

    Precedence of sources: package ``defaults.yml`` < user-provided YAML <
    environment variable named by ``storage.path_env``.
    """

    with (
        importlib_resources.files("docshield.config")
        .joinpath("defaults.yml")
        .open("r", encoding="utf-8") as f
    ):
        defaults = yaml.safe_load(f) or {}

    if path is not None:
        with Path(path).open("r", encoding="utf-8") as f:
            try:
                overrides = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        merged = deep_merge_dicts(defaults, overrides)
    else:
        merged = defaults

    cfg = ConfigModel.model_validate(merged)

    environ = env if env is not None else os.environ
    path_env = cfg.storage.path_env
    if environ.get(path_env):
        cfg.storage.path = environ[path_env]

    return cfg


__all__ = [
    "ConfigModel",
    "RedactionSettings",
    "ClassifierSettings",
    "AnalysisSettings",
    "CustomPattern",
    "PatternSettings",
    "StorageSettings",
    "LoggingSettings",
    "deep_merge_dicts",
    "load_config",
]
