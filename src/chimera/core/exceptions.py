"""Exception hierarchy for the coordination core."""

from typing import Any


class ChimeraError(Exception):
    """Base class for coordination errors."""


class StageFailedError(ChimeraError):
    """An agent reported ``ok=False`` or raised while running its stage."""

    def __init__(self, agent: str, message: str, details: Any = None):
        super().__init__(message)
        self.agent = agent
        self.message = message
        self.details = details


class StageTimeoutError(ChimeraError, TimeoutError):
    """A wrapped operation did not settle within its budget."""

    def __init__(self, message: str = "timeout"):
        super().__init__(message)


class IllegalTransitionError(ChimeraError):
    """The workflow state machine was driven along an edge it does not have."""

    def __init__(self, state: Any, event: str | None):
        self.state = state
        self.event = event
        super().__init__(f"illegal transition: {event!r} from state {getattr(state, 'value', state)}")


class UnknownAgentError(ChimeraError):
    """A stage identity with no collaborator or slice rule."""

    def __init__(self, agent: Any):
        self.agent = agent
        super().__init__(f"unknown agent: {agent!r}")
