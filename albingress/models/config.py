"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ControllerConfig:
    """Ingress controller configuration."""

    ingress_class: str = ""
    resync_period_seconds: int = 300
    workers: int = 2


@dataclass
class QueueConfig:
    """Work queue rate limiter configuration."""

    base_delay_seconds: float = 0.005
    max_delay_seconds: float = 1000.0


@dataclass
class APIConfig:
    """Health and metrics API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class AlbIngressConfig:
    """Top-level albingress configuration."""

    controller: ControllerConfig = field(default_factory=ControllerConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
