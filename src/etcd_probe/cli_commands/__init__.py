"""CLI command modules for the etcd probe."""

from .alpr import alpr_command
from .health import health_command

__all__ = [
    "health_command",
    "alpr_command",
]
