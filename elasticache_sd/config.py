"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AWSConfig:
    region: str = ""  # empty = resolve from instance metadata
    credential_profile: str = ""  # empty = use default boto3 credential chain


@dataclass(frozen=True)
class DiscoveryConfig:
    refresh_interval_seconds: int = 120


@dataclass(frozen=True)
class ResolverConfig:
    retry_delay_seconds: float = 5
    max_backoff_seconds: float = 60
    max_attempts: int = 0  # 0 = retry until shutdown


@dataclass(frozen=True)
class OutputConfig:
    file: str = "elasticache_sd.json"
    sd_name: str = "ELASTICACHESD"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    aws: AWSConfig = field(default_factory=AWSConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields.

    Unknown keys are ignored so that config files can carry extra sections.
    """
    hints = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        ft = hints.get(key)
        if ft is None:
            continue
        if dataclasses.is_dataclass(ft):
            if value is None:
                continue
            if not isinstance(value, dict):
                raise ConfigError(f"Section '{key}' must be a mapping")
            kwargs[key] = _build_nested(ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from a YAML file.

    With no path the built-in defaults are validated and returned.
    """
    if path is None:
        config = AppConfig()
        validate(config)
        return config

    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Configuration file is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    validate(config)
    return config


def _check_number(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number")


def _check_str(value: Any, name: str) -> None:
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")


def validate(config: AppConfig) -> None:
    """Validate configuration types and values."""
    _check_str(config.aws.region, "aws.region")
    _check_str(config.aws.credential_profile, "aws.credential_profile")

    interval = config.discovery.refresh_interval_seconds
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise ConfigError("discovery.refresh_interval_seconds must be an integer")
    if interval < 1:
        raise ConfigError("discovery.refresh_interval_seconds must be >= 1")

    resolver = config.resolver
    _check_number(resolver.retry_delay_seconds, "resolver.retry_delay_seconds")
    _check_number(resolver.max_backoff_seconds, "resolver.max_backoff_seconds")
    if isinstance(resolver.max_attempts, bool) or not isinstance(resolver.max_attempts, int):
        raise ConfigError("resolver.max_attempts must be an integer")
    if resolver.retry_delay_seconds <= 0:
        raise ConfigError("resolver.retry_delay_seconds must be > 0")
    if resolver.max_backoff_seconds < resolver.retry_delay_seconds:
        raise ConfigError("resolver.max_backoff_seconds must be >= resolver.retry_delay_seconds")
    if resolver.max_attempts < 0:
        raise ConfigError("resolver.max_attempts must be >= 0 (0 retries until shutdown)")

    _check_str(config.output.file, "output.file")
    _check_str(config.output.sd_name, "output.sd_name")
    if not config.output.file:
        raise ConfigError("output.file must not be empty")

    _check_str(config.logging.level, "logging.level")
    if not isinstance(logging.getLevelName(config.logging.level.upper()), int):
        raise ConfigError(f"logging.level '{config.logging.level}' is not a known level")
    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
