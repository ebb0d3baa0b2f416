"""
Performance probes for stage calls.

A probe times a block, writes a structured log line, records Prometheus
metrics and wraps the block in an OpenTelemetry span.
"""

import contextlib
import time
from collections import OrderedDict
from typing import Any

from opentelemetry import trace
from prometheus_client import Counter, Histogram

from .logging import get_logger

log = get_logger("chimera.probe")

tracer = trace.get_tracer("chimera")

CALLS = Counter("chimera_stage_calls_total", "Stage call attempts", ["op", "ok"])
LATENCY = Histogram("chimera_stage_latency_seconds", "Stage call latency", ["op"])

# Per-run timings kept for the audit snapshot, oldest run evicted first
MAX_STORED_RUNS = 100
_METRICS_STORE: OrderedDict[str, dict[str, Any]] = OrderedDict()


def _timing_key(op: str, labels: dict[str, Any]) -> str:
    # Retries of the same op must not overwrite each other
    attempt = labels.get("attempt")
    return op if attempt is None else f"{op}#{attempt}"


def _store_timing(run_id: str, key: str, data: dict[str, Any]) -> None:
    if run_id not in _METRICS_STORE:
        _METRICS_STORE[run_id] = {}
        while len(_METRICS_STORE) > MAX_STORED_RUNS:
            _METRICS_STORE.popitem(last=False)
    _METRICS_STORE[run_id][key] = data


@contextlib.contextmanager
def probe(op: str, run_id: str | None = None, **labels):
    """
    Time the enclosed block.

    Args:
        op: Operation name (e.g. "stage.KERNEL")
        run_id: Optional run ID the timing is stored under, keyed
            "<op>#<attempt>" when an ``attempt`` label is given
        **labels: Extra fields appended to the log line
    """
    start_time = time.perf_counter()
    ok = "true"
    error_type = None

    with tracer.start_as_current_span(op) as span:
        for key, value in labels.items():
            span.set_attribute(f"chimera.{key}", str(value))
        try:
            yield
        except Exception as e:
            ok = "false"
            error_type = type(e).__name__
            span.record_exception(e)
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

            log.info(
                f"op={op} ok={ok}" + (f" error={error_type}" if error_type else ""),
                op=op,
                ms=duration_ms,
                **labels,
            )

            CALLS.labels(op=op, ok=ok).inc()
            LATENCY.labels(op=op).observe(duration_ms / 1000.0)

            if run_id:
                _store_timing(
                    run_id,
                    _timing_key(op, labels),
                    {
                        "duration_ms": duration_ms,
                        "success": ok == "true",
                        "error_type": error_type,
                        "labels": labels,
                        "timestamp": time.time(),
                    },
                )


def get_run_metrics(run_id: str) -> dict[str, Any]:
    """Get the probe timings recorded for a run."""
    return _METRICS_STORE.get(run_id, {})


def clear_run_metrics(run_id: str | None = None) -> None:
    """Forget timings for one run, or for every run when ``run_id`` is None."""
    if run_id is None:
        _METRICS_STORE.clear()
    else:
        _METRICS_STORE.pop(run_id, None)
