"""Event bus and event types for workflow lifecycle signals."""

from .bus import DEFAULT_MAX_EVENTS, EventBus
from .types import (
    WORKFLOW_AGENT,
    AgentType,
    ChimeraEvent,
    ErrorPayload,
    EventHandler,
    EventType,
    ProgressPayload,
)

__all__ = [
    "EventBus",
    "DEFAULT_MAX_EVENTS",
    "AgentType",
    "ChimeraEvent",
    "ErrorPayload",
    "EventHandler",
    "EventType",
    "ProgressPayload",
    "WORKFLOW_AGENT",
]
