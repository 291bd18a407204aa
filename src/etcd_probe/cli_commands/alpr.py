"""ALPR command: average latency per linearizable request."""

from etcd_probe.evaluator import evaluate
from etcd_probe.models import DiagnosticResult

from .common import emit, prepare


def alpr_command(args):
    """Measure read latency and classify it against the warning/critical thresholds."""
    prepared = prepare(args)
    if isinstance(prepared, DiagnosticResult):
        return emit(prepared)

    settings, thresholds, config = prepared
    run = evaluate(
        "alpr",
        config,
        thresholds=thresholds,
        settings=settings,
        total=getattr(args, "total", 1),
    )
    return emit(run.report())
