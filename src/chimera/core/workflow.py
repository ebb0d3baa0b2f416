"""
Workflow state machine for one pipeline run.

    INIT --start--> PLANNING --plan_ready--> EXECUTING
         --execution_complete--> REVIEW --review_pass--> DONE

States only move forward along these edges. Anything else, including every
event from DONE, is an illegal transition.
"""

from dataclasses import dataclass
from enum import Enum

from ..events.bus import EventBus
from ..events.types import EventType
from ..observability.logging import get_logger
from .exceptions import IllegalTransitionError

logger = get_logger(__name__)


class WorkflowState(str, Enum):
    """Pipeline progress for one run."""

    INIT = "INIT"
    PLANNING = "PLANNING"
    EXECUTING = "EXECUTING"
    REVIEW = "REVIEW"
    DONE = "DONE"


@dataclass(frozen=True)
class Transition:
    """A named edge of the workflow graph."""

    from_state: WorkflowState
    to_state: WorkflowState
    event: str


TRANSITIONS: tuple[Transition, ...] = (
    Transition(WorkflowState.INIT, WorkflowState.PLANNING, "start"),
    Transition(WorkflowState.PLANNING, WorkflowState.EXECUTING, "plan_ready"),
    Transition(WorkflowState.EXECUTING, WorkflowState.REVIEW, "execution_complete"),
    Transition(WorkflowState.REVIEW, WorkflowState.DONE, "review_pass"),
)

_TABLE: dict[tuple[WorkflowState, str], WorkflowState] = {
    (t.from_state, t.event): t.to_state for t in TRANSITIONS
}

# The single forward edge out of each non-final state, in pipeline order
_FORWARD_EVENT: dict[WorkflowState, str] = {t.from_state: t.event for t in TRANSITIONS}


def advance(current: WorkflowState, event: str) -> WorkflowState:
    """Return the state reached from ``current`` on ``event``.

    Raises:
        IllegalTransitionError: if ``(current, event)`` is not an edge.
    """
    try:
        return _TABLE[(WorkflowState(current), event)]
    except (KeyError, ValueError):
        raise IllegalTransitionError(current, event) from None


class WorkflowStateMachine:
    """
    Run-scoped state holder that announces every transition on the bus.

    Not shared between runs; the engine creates one per ``run``.
    """

    def __init__(self, bus: EventBus):
        self.bus = bus
        self._state = WorkflowState.INIT
        self._history: list[WorkflowState] = [WorkflowState.INIT]

    @property
    def state(self) -> WorkflowState:
        return self._state

    def advance(self, event: str | None = None) -> WorkflowState:
        """
        Move along one edge and publish a ``log`` event describing it.

        With no ``event`` the machine takes the forward edge of the current
        state, looked up in the same transition table.
        """
        if event is None:
            event = _FORWARD_EVENT.get(self._state)
        if event is None:
            raise IllegalTransitionError(self._state, event)

        previous = self._state
        self._state = advance(previous, event)
        self._history.append(self._state)

        description = f"State transition: {previous.value} → {self._state.value}"
        logger.debug(description, op="advance", transition_event=event)
        self.bus.emit(EventType.LOG, description)
        return self._state

    def reset(self) -> None:
        """Return to INIT, e.g. before reusing the machine for a new run."""
        self._state = WorkflowState.INIT
        self._history = [WorkflowState.INIT]
        self.bus.emit(EventType.LOG, "State reset to INIT")

    @property
    def is_done(self) -> bool:
        return self._state is WorkflowState.DONE

    def get_state_history(self) -> list[WorkflowState]:
        """States visited since the last reset, oldest first."""
        return self._history.copy()
