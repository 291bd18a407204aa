"""Configuration package."""

from .settings import (
    DEFAULT_CRITICAL,
    DEFAULT_ENDPOINT,
    DEFAULT_WARNING,
    ConnectionConfig,
    ProbeSettings,
    Thresholds,
    load_connection_config,
    load_settings,
)

__all__ = [
    "ConnectionConfig",
    "ProbeSettings",
    "Thresholds",
    "load_connection_config",
    "load_settings",
    "DEFAULT_ENDPOINT",
    "DEFAULT_WARNING",
    "DEFAULT_CRITICAL",
]
