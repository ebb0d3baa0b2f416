"""
Workflow engine: runs KERNEL, SYNTH, DRIVE and AUDIT in order over one shared context.

For every stage the engine publishes ``agent-start-<AGENT>``, advances the
state machine, calls the agent with its broker slice under
``with_retries(with_timeout(...))`` and publishes ``agent-end-<AGENT>``.
A stage that still fails after its retries gets an ``error`` event naming
it, and the error aborts the run.

The context is owned by the engine for the lifetime of ``run``. Agents only
ever see the slice built for them. Stage outputs are not folded back into
the context unless ``CoordinationConfig.merge_stage_outputs`` is set.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..agents.base import Agent, AgentContext, AgentResult
from ..config.container import Container
from ..config.settings import CoordinationConfig, get_settings
from ..context.broker import SLICE_BUILDERS, ContextSlice, WorkflowContext
from ..events.bus import EventBus
from ..events.types import WORKFLOW_AGENT, AgentType, ErrorPayload, EventType
from ..observability.logging import get_logger, reset_run_id, set_run_id
from ..observability.probe import probe
from .audit import AgentExecutionRecord, ExecutionAudit
from .exceptions import StageFailedError, StageTimeoutError, UnknownAgentError
from .recovery import with_retries, with_timeout
from .workflow import WorkflowState, WorkflowStateMachine

logger = get_logger(__name__)

PIPELINE_ORDER: tuple[AgentType, ...] = (
    AgentType.KERNEL,
    AgentType.SYNTH,
    AgentType.DRIVE,
    AgentType.AUDIT,
)


@dataclass(frozen=True)
class Stage:
    """A pipeline stage: who runs it and what part of the context it sees."""

    agent_type: AgentType
    agent: Agent
    build_slice: Callable[[WorkflowContext], ContextSlice]


class WorkflowEngine:
    """
    Sequential four-stage pipeline.

    Collaborators are injected: ``agents`` maps each stage identity to its
    agent and ``dependencies`` (tool registry, model client, ...) is handed
    to every agent untouched.
    """

    def __init__(
        self,
        bus: EventBus,
        agents: Mapping[AgentType | str, Agent],
        dependencies: Mapping[str, Any] | None = None,
        config: CoordinationConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.bus = bus
        self.config = config or get_settings().coordination
        self.dependencies = dict(dependencies or {})
        self.stages = self._build_stages(agents)
        self._sleep = sleep

        self.run_id: str | None = None
        self.state_machine = WorkflowStateMachine(bus)
        self.audit = ExecutionAudit()

    @classmethod
    def from_container(
        cls,
        container: Container,
        agents: Mapping[AgentType | str, Agent],
        bus: EventBus | None = None,
    ) -> "WorkflowEngine":
        """Build an engine from container settings and registered collaborators."""
        coordination = container.settings.coordination
        return cls(
            bus or EventBus(max_events=coordination.max_events),
            agents,
            dependencies=container.dependencies(),
            config=coordination,
        )

    @staticmethod
    def _build_stages(agents: Mapping[AgentType | str, Agent]) -> dict[AgentType, Stage]:
        by_type: dict[AgentType, Agent] = {}
        for key, agent in agents.items():
            try:
                by_type[AgentType(key)] = agent
            except ValueError:
                raise UnknownAgentError(key) from None

        stages = {}
        for agent_type in PIPELINE_ORDER:
            if agent_type not in by_type:
                raise UnknownAgentError(agent_type.value)
            stages[agent_type] = Stage(agent_type, by_type[agent_type], SLICE_BUILDERS[agent_type])
        return stages

    @property
    def state(self) -> WorkflowState:
        return self.state_machine.state

    @property
    def records(self) -> list[AgentExecutionRecord]:
        """Audit trail of the most recent run."""
        return self.audit.records

    async def run(self, user_input: str) -> None:
        """
        Run the whole pipeline on ``user_input``.

        Returns nothing on success. On failure the last error is raised after
        an ``error`` event has been published; no later stage runs and no
        ``workflow-complete`` event is sent.
        """
        self.run_id = uuid.uuid4().hex[:12]
        self.state_machine = WorkflowStateMachine(self.bus)
        self.audit = ExecutionAudit(self.run_id)

        token = set_run_id(self.run_id)
        try:
            await self._execute(user_input)
        finally:
            reset_run_id(token)

    async def _execute(self, user_input: str) -> None:
        logger.info("Workflow started", op="run", input_length=len(user_input))
        self.bus.emit(EventType.LOG, "workflow-start")

        context = WorkflowContext(user_input=user_input)

        for agent_type in PIPELINE_ORDER:
            self.bus.emit(EventType.LOG, f"agent-start-{agent_type.value}")
            try:
                self.state_machine.advance()
            except Exception as e:
                self._publish_error(WORKFLOW_AGENT, e)
                logger.error(f"Workflow aborted: {e}", op="run")
                raise

            await self._run_stage(self.stages[agent_type], context)
            self.bus.emit(EventType.LOG, f"agent-end-{agent_type.value}")

        self.bus.emit(EventType.LOG, "workflow-complete")
        logger.info("Workflow complete", op="run", attempts=len(self.audit))

    async def _run_stage(self, stage: Stage, context: WorkflowContext) -> None:
        attempt = 0

        def attempt_once() -> Awaitable[AgentResult]:
            nonlocal attempt
            attempt += 1
            return self._attempt(stage, context, attempt)

        try:
            result = await with_retries(
                attempt_once,
                max_retries=self.config.max_retries,
                base_delay=self.config.retry_base_delay,
                sleep=self._sleep,
            )
        except Exception as e:
            self._publish_error(stage.agent_type.value, e)
            logger.error(
                f"Stage {stage.agent_type.value} failed after {attempt} attempt(s): {e}",
                op="run_stage",
            )
            raise

        if self.config.merge_stage_outputs:
            context.merge(result.output)

    async def _attempt(self, stage: Stage, context: WorkflowContext, attempt: int) -> AgentResult:
        ctx_slice = stage.build_slice(context)
        record = self.audit.start(stage.agent_type, attempt, ctx_slice)
        try:
            return await with_timeout(self._call(stage, ctx_slice, record), self.config.stage_timeout)
        except StageTimeoutError as e:
            record.fail(e)
            raise

    async def _call(
        self, stage: Stage, ctx_slice: ContextSlice, record: AgentExecutionRecord
    ) -> AgentResult:
        name = stage.agent_type.value
        agent_ctx = AgentContext(input=ctx_slice, bus=self.bus, dependencies=self.dependencies)

        with probe(f"stage.{name}", run_id=self.run_id, attempt=record.attempt):
            try:
                result = await stage.agent.run(agent_ctx)
                if not isinstance(result, AgentResult):
                    raise StageFailedError(name, f"Agent {name} returned no result")
                if not result.ok:
                    raise StageFailedError(
                        name, str(result.error or f"Agent {name} execution failed"), result.output
                    )
            except Exception as e:
                record.fail(e)
                raise

        record.succeed(result.output)
        return result

    def _publish_error(self, agent: str, error: BaseException) -> None:
        details = getattr(error, "details", None)
        if details is None:
            details = {"type": type(error).__name__}
        payload = ErrorPayload(agent=agent, message=str(error) or type(error).__name__, details=details)
        self.bus.emit(EventType.ERROR, payload)
