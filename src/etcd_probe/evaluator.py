"""Diagnostic evaluator: runs one check and classifies the outcome.

Classification is kept in pure functions (``classify_latency`` and
``classify_health``); ``evaluate`` wires them to the cluster client and turns
every failure into a DiagnosticResult instead of an exception.
"""

import math
from typing import Callable, Iterable, Optional

from .client import EtcdClient
from .config.settings import ConnectionConfig, ProbeSettings, Thresholds
from .errors import EtcdConnectionError, ProbeError, ResponseParseError
from .logging import get_logger
from .models import DiagnosticResult, ProbeState, StatusLevel

logger = get_logger(__name__)

COMMANDS = ("health", "alpr")

HEALTH_MESSAGE = "ETCD state: {state}"
ALPR_MESSAGE = "Average Latency Per Request: {latency} secs"

ClientFactory = Callable[..., EtcdClient]


def classify_latency(latency: float, thresholds: Thresholds) -> StatusLevel:
    """Closed-open partition: [0, W) OK, [W, C) WARNING, [C, inf) CRITICAL."""
    if latency >= thresholds.critical:
        return StatusLevel.CRITICAL
    if latency >= thresholds.warning:
        return StatusLevel.WARNING
    return StatusLevel.OK


def classify_health(success: bool, members_healthy: Iterable[bool]) -> StatusLevel:
    """OK only when the call succeeded and every reporting member is healthy."""
    members = list(members_healthy)
    if success and members and all(members):
        return StatusLevel.OK
    return StatusLevel.CRITICAL


def format_latency(latency: float) -> str:
    """Round to 4 decimals and print in shortest form (0.05, not 0.0500)."""
    return str(round(latency, 4))


class ProbeRun:
    """Tracks one probe run through INIT -> CONNECTING -> MEASURING -> CLASSIFIED -> REPORTED."""

    def __init__(self, command: str):
        self.command = command
        self.state = ProbeState.INIT
        self.result: Optional[DiagnosticResult] = None

    def advance(self, state: ProbeState) -> None:
        logger.debug(f"{self.command}: {self.state.value} -> {state.value}")
        self.state = state

    def classify(self, result: DiagnosticResult) -> DiagnosticResult:
        if self.result is not None:
            raise RuntimeError(f"{self.command} probe already classified")
        self.result = result
        self.advance(ProbeState.CLASSIFIED)
        return result

    def report(self) -> DiagnosticResult:
        """Hand out the result exactly once."""
        if self.state is ProbeState.REPORTED:
            raise RuntimeError(f"{self.command} probe already reported")
        if self.result is None:
            raise RuntimeError(f"{self.command} probe has no result to report")
        self.advance(ProbeState.REPORTED)
        return self.result


def _check_health(client: EtcdClient, settings: ProbeSettings) -> DiagnosticResult:
    members = client.endpoint_health(key=settings.health_key)
    status = classify_health(True, (member.healthy for member in members))
    state = "healthy" if status is StatusLevel.OK else "unhealthy"
    return DiagnosticResult(
        status=status,
        message=HEALTH_MESSAGE.format(state=state),
        metadata={"members": [member.model_dump() for member in members]},
    )


def _check_alpr(
    client: EtcdClient,
    settings: ProbeSettings,
    thresholds: Thresholds,
    total: int,
) -> DiagnosticResult:
    measured = client.measure_latency(key=settings.alpr_key, total=total)
    if not isinstance(measured, (int, float)) or not math.isfinite(measured) or measured < 0:
        raise ResponseParseError(f"unusable latency value {measured!r}")

    # Classify the value that is printed so the line never contradicts itself
    latency = round(float(measured), 4)
    return DiagnosticResult(
        status=classify_latency(latency, thresholds),
        message=ALPR_MESSAGE.format(latency=format_latency(latency)),
        latency=latency,
        metadata={"total": total, "warning": thresholds.warning, "critical": thresholds.critical},
    )


def _failure_result(command: str, status: StatusLevel, reason: str) -> DiagnosticResult:
    if command == "health":
        # Health has no third state; anything short of OK reads as unhealthy
        return DiagnosticResult(status=status, message=HEALTH_MESSAGE.format(state="unhealthy"))
    return DiagnosticResult(
        status=status, message=f"Average Latency Per Request: {reason}"
    )


def evaluate(
    command: str,
    config: ConnectionConfig,
    thresholds: Optional[Thresholds] = None,
    settings: Optional[ProbeSettings] = None,
    total: int = 1,
    client_factory: Optional[ClientFactory] = None,
) -> ProbeRun:
    """Run one diagnostic operation and return the classified run.

    Never raises for cluster-side failures: connection problems classify as
    CRITICAL, malformed responses and unexpected errors as UNKNOWN. Raw error
    text goes to the log (stderr) only.
    """
    if command not in COMMANDS:
        raise ValueError(f"unknown command {command!r}")

    thresholds = thresholds or Thresholds()
    settings = settings or ProbeSettings()
    run = ProbeRun(command)

    run.advance(ProbeState.CONNECTING)
    try:
        client = (client_factory or EtcdClient)(config, api_prefix=settings.api_prefix)
        with client:
            run.advance(ProbeState.MEASURING)
            if command == "health":
                result = _check_health(client, settings)
            else:
                result = _check_alpr(client, settings, thresholds, total)
    except EtcdConnectionError as e:
        logger.error(f"{command}: connection failed: {e}")
        result = _failure_result(command, StatusLevel.CRITICAL, "unable to reach etcd")
    except ResponseParseError as e:
        logger.error(f"{command}: unexpected response: {e}")
        result = _failure_result(command, StatusLevel.UNKNOWN, "unexpected response from etcd")
    except ProbeError as e:
        logger.error(f"{command}: {e}")
        result = _failure_result(command, e.status, "probe failed")
    except Exception as e:
        logger.exception(f"{command}: probe failed: {e}")
        result = _failure_result(command, StatusLevel.UNKNOWN, "probe failed")

    run.classify(result)
    return run
