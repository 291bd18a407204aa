"""Centralized logging setup using Loguru.

All log output goes to stderr; stdout is reserved for the single status line
read by the monitoring system.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from .. import __version__

DEFAULT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)


def setup_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    diagnose: bool = False,
    format_template: str | None = None,
) -> None:
    """Setup logging for a probe run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file sink in addition to stderr
        rotation: Log rotation setting for the file sink
        retention: Log retention period for the file sink
        diagnose: Enable variable values in tracebacks
        format_template: Custom format template
    """
    # Remove default handler
    logger.remove()

    level = level.upper()
    format_template = format_template or DEFAULT_FORMAT

    logger.add(
        sys.stderr,
        level=level,
        format=format_template,
        colorize=False,
        diagnose=diagnose,
        catch=True,
    )

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=DEFAULT_FORMAT,
            rotation=rotation,
            retention=retention,
            diagnose=diagnose,
            catch=True,
        )

    logger.configure(extra={"service": "etcd-probe", "version": __version__})

    logger.debug(
        "Logging initialized (level={}, file_logging={})", level, log_file is not None
    )


def get_logger(name: str) -> Any:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logger.bind(name=name)
