"""Shared plumbing for probe commands: setup, configuration and output."""

from pydantic import ValidationError

from etcd_probe.config import Thresholds, load_connection_config, load_settings
from etcd_probe.errors import ThresholdConfigError
from etcd_probe.logging import get_logger, setup_logging
from etcd_probe.models import DiagnosticResult, StatusLevel
from etcd_probe.utils.env import load_environment

logger = get_logger(__name__)

CONNECTION_FLAGS = (
    "endpoints",
    "cacert",
    "cert",
    "key",
    "user",
    "password",
    "insecure_transport",
    "insecure_skip_tls_verify",
    "dial_timeout",
    "command_timeout",
)


def emit(result: DiagnosticResult) -> int:
    """Print the single status line and return the exit code."""
    print(result.output)
    return result.exit_code


def prepare(args):
    """Load env file, settings and logging; build thresholds and connection config.

    Returns:
        (settings, thresholds, config) or a DiagnosticResult describing why the
        probe cannot run. Nothing here touches the network.
    """
    env_file = getattr(args, "env_file", None)
    if env_file and not load_environment(env_file):
        return DiagnosticResult(status=StatusLevel.UNKNOWN, message=f"env file not found: {env_file}")

    try:
        settings = load_settings()
        setup_logging(
            level="DEBUG" if getattr(args, "verbose", False) else settings.log_level,
            log_file=settings.log_file,
        )
    except (ValidationError, ValueError) as e:
        return DiagnosticResult(status=StatusLevel.UNKNOWN, message=f"invalid probe settings: {_first_error(e)}")

    try:
        thresholds = Thresholds.from_values(getattr(args, "warning", None), getattr(args, "critical", None))
    except ThresholdConfigError as e:
        return DiagnosticResult(status=e.status, message=str(e))

    try:
        config = load_connection_config(**{flag: getattr(args, flag, None) for flag in CONNECTION_FLAGS})
    except ValidationError as e:
        return DiagnosticResult(status=StatusLevel.UNKNOWN, message=f"invalid connection settings: {_first_error(e)}")

    logger.debug(f"Endpoints: {config.endpoints}, TLS: {config.uses_tls}, thresholds: {thresholds}")
    return settings, thresholds, config


def _first_error(error: Exception) -> str:
    if isinstance(error, ValidationError):
        first = error.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first.get('msg')}" if location else first.get("msg", str(error))
    return str(error)

