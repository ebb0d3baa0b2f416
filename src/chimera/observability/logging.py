"""
Structured logging for the Chimera coordination core with run ID support.

Every line has the shape::

    t=<ISO8601> level=<LEVEL> run=<run id> mod=<module> op=<operation> msg="..." k=v ...
"""

import logging
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime

# Run ID of the workflow currently executing in this context
run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)

_loggers: dict[str, "StructuredLogger"] = {}

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "asctime",
    }
)

_FORMAT_ONLY = frozenset({"run_id", "op", "ms"})


class StructuredFormatter(logging.Formatter):
    """Render records as single key=value lines."""

    def format(self, record: logging.LogRecord) -> str:
        run_id = run_id_ctx.get() or getattr(record, "run_id", None) or "-"
        mod = record.name.rsplit(".", 1)[-1]
        op = getattr(record, "op", record.funcName or "-")

        duration = getattr(record, "ms", None)
        ms_part = f" ms={duration:.1f}" if duration is not None else ""

        extra_fields = "".join(
            f" {key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in _FORMAT_ONLY
        )

        timestamp = datetime.now(UTC).isoformat()
        line = (
            f"t={timestamp} level={record.levelname} run={run_id} mod={mod} op={op}"
            f'{ms_part} msg="{record.getMessage()}"{extra_fields}'
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger:
    """Thin wrapper over :mod:`logging` that accepts structured keyword fields."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, **kwargs):
        extra = {k: v for k, v in kwargs.items() if k not in _RECORD_ATTRS}
        extra["run_id"] = run_id_ctx.get()
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)


def get_logger(name: str) -> StructuredLogger:
    """Get a cached structured logger for the given module."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


def setup_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def set_run_id(run_id: str | None) -> Token:
    """Set the run ID for the current context; returns a token for :func:`reset_run_id`."""
    return run_id_ctx.set(run_id)


def reset_run_id(token: Token) -> None:
    """Restore the run ID that was current before the matching :func:`set_run_id`."""
    run_id_ctx.reset(token)


def get_run_id() -> str | None:
    """Get the run ID of the current context."""
    return run_id_ctx.get()


def clear_run_id() -> None:
    run_id_ctx.set(None)
