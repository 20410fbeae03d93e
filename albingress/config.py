"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from albingress.models.config import (
    AlbIngressConfig,
    APIConfig,
    ControllerConfig,
    LogConfig,
    QueueConfig,
)

_RE_INGRESS_CLASS = re.compile(r"^$|^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"ALBINGRESS_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float = 0.0) -> float:
    val = float(_env(key, str(default)))
    if val < min_val:
        raise ValueError(f"ALBINGRESS_{key} must be >= {min_val}, got {val}")
    return val


def _validate_ingress_class(value: str) -> str:
    if not _RE_INGRESS_CLASS.match(value):
        raise ValueError(f"Invalid ingress class: {value}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> AlbIngressConfig:
    """Load configuration from ALBINGRESS_* environment variables."""
    base_delay = _env_float("QUEUE_BASE_DELAY", 0.005)
    if base_delay <= 0:
        raise ValueError(f"ALBINGRESS_QUEUE_BASE_DELAY must be > 0, got {base_delay}")
    max_delay = _env_float("QUEUE_MAX_DELAY", 1000.0)
    if max_delay < base_delay:
        raise ValueError(f"ALBINGRESS_QUEUE_MAX_DELAY ({max_delay}) is below ALBINGRESS_QUEUE_BASE_DELAY ({base_delay})")

    return AlbIngressConfig(
        controller=ControllerConfig(
            ingress_class=_validate_ingress_class(_env("INGRESS_CLASS", "")),
            resync_period_seconds=_env_int("RESYNC_PERIOD", 300, min_val=30, max_val=3600),
            workers=_env_int("WORKERS", 2, min_val=1, max_val=32),
        ),
        queue=QueueConfig(
            base_delay_seconds=base_delay,
            max_delay_seconds=max_delay,
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
