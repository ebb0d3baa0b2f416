"""
Observability for the coordination core: structured logs and stage probes.

Usage:
    >>> from chimera.observability import get_logger, probe
    >>> logger = get_logger(__name__)
    >>> with probe("stage.KERNEL", run_id="abc123"):
    ...     ...
"""

from .logging import get_logger, get_run_id, reset_run_id, set_run_id, setup_logging
from .probe import get_run_metrics, probe

__all__ = [
    "get_logger",
    "get_run_id",
    "set_run_id",
    "reset_run_id",
    "setup_logging",
    "probe",
    "get_run_metrics",
]
