"""etcd probe - cluster health and request latency checks for monitoring systems."""

__version__ = "0.1.0"

from .config.settings import ConnectionConfig, Thresholds, load_connection_config
from .evaluator import evaluate
from .logging.setup import get_logger, setup_logging
from .models import DiagnosticResult, StatusLevel

__all__ = [
    "ConnectionConfig",
    "Thresholds",
    "load_connection_config",
    "evaluate",
    "DiagnosticResult",
    "StatusLevel",
    "setup_logging",
    "get_logger",
]
