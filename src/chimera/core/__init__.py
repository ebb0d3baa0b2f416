"""
Coordination core: state machine, recovery wrappers, audit trail and the engine.
"""

from .audit import AgentExecutionRecord, ExecutionAudit
from .engine import PIPELINE_ORDER, Stage, WorkflowEngine
from .exceptions import (
    ChimeraError,
    IllegalTransitionError,
    StageFailedError,
    StageTimeoutError,
    UnknownAgentError,
)
from .recovery import as_error, with_retries, with_timeout
from .workflow import TRANSITIONS, Transition, WorkflowState, WorkflowStateMachine, advance

__all__ = [
    "WorkflowEngine",
    "Stage",
    "PIPELINE_ORDER",
    "WorkflowState",
    "WorkflowStateMachine",
    "Transition",
    "TRANSITIONS",
    "advance",
    "with_timeout",
    "with_retries",
    "as_error",
    "AgentExecutionRecord",
    "ExecutionAudit",
    "ChimeraError",
    "StageFailedError",
    "StageTimeoutError",
    "IllegalTransitionError",
    "UnknownAgentError",
]
