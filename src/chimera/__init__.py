"""
Chimera: coordination core for a four-agent pipeline.

A free-text request flows through KERNEL (intake / refinement), SYNTH (plan
synthesis), DRIVE (execution) and AUDIT (review). This package owns the
coordination layer around those agents:

- ``EventBus``: synchronous publish/subscribe with bounded history
- ``build_context_slice``: what part of the run context each agent may read
- ``with_timeout`` / ``with_retries``: recovery wrappers for async calls
- ``WorkflowStateMachine``: INIT → PLANNING → EXECUTING → REVIEW → DONE
- ``WorkflowEngine``: runs the four stages in order and reports on the bus

Quick Start:
    >>> from chimera import EventBus, WorkflowEngine, EchoAgent, AgentType
    >>> bus = EventBus()
    >>> engine = WorkflowEngine(bus, {a: EchoAgent(a) for a in AgentType})
    >>> await engine.run("echo hello")
    >>> [e.payload for e in bus.history()][0]
    'workflow-start'

Configuration:
    - CHIMERA_COORDINATION__STAGE_TIMEOUT=60
    - CHIMERA_COORDINATION__MAX_RETRIES=3
    - CHIMERA_COORDINATION__RETRY_BASE_DELAY=0.25
    - CHIMERA_OBSERVABILITY__LOG_LEVEL=INFO
"""

__version__ = "0.1.0"

from .agents.base import Agent, AgentContext, AgentResult, EchoAgent, FunctionAgent
from .config.settings import Settings, get_settings
from .context.broker import WorkflowContext, build_context_slice
from .core.engine import WorkflowEngine
from .core.exceptions import (
    ChimeraError,
    IllegalTransitionError,
    StageFailedError,
    StageTimeoutError,
    UnknownAgentError,
)
from .core.recovery import with_retries, with_timeout
from .core.workflow import WorkflowState, WorkflowStateMachine, advance
from .events.bus import EventBus
from .events.types import AgentType, ChimeraEvent, ErrorPayload, EventType

__all__ = [
    "WorkflowEngine",
    "WorkflowStateMachine",
    "WorkflowState",
    "advance",
    "EventBus",
    "ChimeraEvent",
    "EventType",
    "ErrorPayload",
    "AgentType",
    "WorkflowContext",
    "build_context_slice",
    "with_timeout",
    "with_retries",
    "Agent",
    "AgentContext",
    "AgentResult",
    "EchoAgent",
    "FunctionAgent",
    "Settings",
    "get_settings",
    "ChimeraError",
    "StageFailedError",
    "StageTimeoutError",
    "IllegalTransitionError",
    "UnknownAgentError",
]
