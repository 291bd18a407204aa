"""Health command: consensus read against every endpoint."""

from etcd_probe.evaluator import evaluate
from etcd_probe.models import DiagnosticResult

from .common import emit, prepare


def health_command(args):
    """Report OK only when every endpoint is healthy, CRITICAL otherwise."""
    prepared = prepare(args)
    if isinstance(prepared, DiagnosticResult):
        return emit(prepared)

    settings, thresholds, config = prepared
    run = evaluate("health", config, thresholds=thresholds, settings=settings)
    return emit(run.report())
