"""Event records carried by the bus and the payloads the core publishes."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Closed set of event types."""

    LOG = "log"
    PROGRESS = "progress"
    AGENT_START = "agent-start"
    AGENT_END = "agent-end"
    ERROR = "error"


class AgentType(str, Enum):
    """Identity of a pipeline agent, in pipeline order."""

    KERNEL = "KERNEL"
    SYNTH = "SYNTH"
    DRIVE = "DRIVE"
    AUDIT = "AUDIT"


# Agent name used in error payloads for failures outside any single stage
WORKFLOW_AGENT = "WORKFLOW"


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ChimeraEvent:
    """A published lifecycle signal. Never mutated after creation."""

    type: EventType
    payload: Any = None
    ts: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class ErrorPayload:
    """Payload of ``error`` events."""

    agent: str
    message: str
    details: Any = None


@dataclass(frozen=True)
class ProgressPayload:
    """Payload of ``progress`` events reported by stages that work in steps."""

    step_id: str
    step_index: int
    total_steps: int
    percent: int

    @classmethod
    def for_step(cls, step_id: str, step_index: int, total_steps: int) -> "ProgressPayload":
        """Build a payload for ``step_index`` (zero-based) completed out of ``total_steps``."""
        percent = round((step_index + 1) / total_steps * 100) if total_steps else 100
        return cls(step_id=step_id, step_index=step_index, total_steps=total_steps, percent=percent)


EventHandler = Callable[[ChimeraEvent], None]
