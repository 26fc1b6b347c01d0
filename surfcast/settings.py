"""Environment-driven settings for the forecast engine."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .entities import CredentialSet
from .providers.base import RequestConfig


class ConfigurationError(RuntimeError):
    """Raised when the environment holds a missing or malformed setting."""


def env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    environ = os.environ if environ is None else environ
    value = environ.get(name, default)
    if value is None:
        raise ConfigurationError(f"Environment variable {name} is required")
    return value


def _env_float(name: str, default: float, environ: Mapping[str, str]) -> float:
    raw = env(name, str(default), environ)
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"Environment variable {name} must be positive")
    return value


def _env_int(name: str, default: int, environ: Mapping[str, str]) -> int:
    raw = env(name, str(default), environ)
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"Environment variable {name} must not be negative")
    return value


@dataclass(frozen=True)
class Settings:
    request_timeout: float = 5.0
    request_retries: int = 0
    aggregate_timeout: float = 15.0
    cache_ttl: float = 30 * 60
    log_level: str = "WARNING"
    credentials: CredentialSet = field(default_factory=CredentialSet)

    def request_config(self) -> RequestConfig:
        return RequestConfig(timeout=self.request_timeout, retries=self.request_retries)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ
    log_level = env("SURFCAST_LOG_LEVEL", "WARNING", environ).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"Unknown log level {log_level!r}")
    return Settings(
        request_timeout=_env_float("SURFCAST_REQUEST_TIMEOUT", 5.0, environ),
        request_retries=_env_int("SURFCAST_REQUEST_RETRIES", 0, environ),
        aggregate_timeout=_env_float("SURFCAST_AGGREGATE_TIMEOUT", 15.0, environ),
        cache_ttl=_env_float("SURFCAST_CACHE_TTL", 30 * 60, environ),
        log_level=log_level,
        credentials=CredentialSet.from_env(environ),
    )


__all__ = ["ConfigurationError", "Settings", "env", "load_settings"]
