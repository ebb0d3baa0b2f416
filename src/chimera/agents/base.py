"""
Agent contract for pipeline stages.

The coordination core does not know how an agent refines text, writes a plan
or touches files. It only relies on this boundary: an agent receives an
:class:`AgentContext` (its broker slice, the shared bus and injected
dependencies) and returns an :class:`AgentResult`.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..events.bus import EventBus
from ..events.types import AgentType


@dataclass
class AgentContext:
    """What an agent gets for one invocation."""

    input: dict[str, Any]
    bus: EventBus
    dependencies: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class AgentResult:
    """Outcome of one agent invocation. ``ok=False`` is a failure like any raised error."""

    ok: bool
    output: Any = None
    error: str | None = None

    @classmethod
    def success(cls, output: Any = None) -> "AgentResult":
        return cls(ok=True, output=output)

    @classmethod
    def failure(cls, error: str) -> "AgentResult":
        return cls(ok=False, error=error)


@runtime_checkable
class Agent(Protocol):
    """Protocol every pipeline collaborator implements."""

    async def run(self, ctx: AgentContext) -> AgentResult:
        """Run the stage once."""
        ...


class FunctionAgent:
    """Adapt a plain ``async def fn(ctx) -> AgentResult`` into an :class:`Agent`."""

    def __init__(self, agent_id: AgentType, fn: Callable[[AgentContext], Awaitable[AgentResult]]):
        self.id = AgentType(agent_id)
        self._fn = fn

    async def run(self, ctx: AgentContext) -> AgentResult:
        return await self._fn(ctx)

    def __repr__(self) -> str:
        return f"FunctionAgent({self.id.value})"


class EchoAgent:
    """Agent that succeeds immediately, echoing its slice back as output."""

    def __init__(self, agent_id: AgentType):
        self.id = AgentType(agent_id)

    async def run(self, ctx: AgentContext) -> AgentResult:
        return AgentResult.success(dict(ctx.input))
