"""
Smoke-run entry point: drives the pipeline with echo agents and prints every event.

    $ chimera-smoke "echo hello"
    $ chimera-smoke "echo hello" --fail DRIVE
"""

import argparse
import asyncio
import sys

from .agents.base import AgentContext, AgentResult, EchoAgent, FunctionAgent
from .config.container import Container
from .config.settings import get_settings
from .core.engine import PIPELINE_ORDER, WorkflowEngine
from .events.bus import EventBus
from .events.types import ChimeraEvent, EventType
from .observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _failing_agent(agent_type):
    async def fail(ctx: AgentContext) -> AgentResult:
        return AgentResult.failure(f"{agent_type.value} forced to fail")

    return FunctionAgent(agent_type, fail)


def _print_event(event: ChimeraEvent) -> None:
    print(f"[{event.ts}] {event.type.value:<11} {event.payload}")


def build_engine(fail: str | None = None, bus: EventBus | None = None) -> WorkflowEngine:
    """Echo agents for every stage, except ``fail`` which always reports failure."""
    container = Container(get_settings())
    agents = {
        agent_type: _failing_agent(agent_type) if agent_type.value == fail else EchoAgent(agent_type)
        for agent_type in PIPELINE_ORDER
    }
    return WorkflowEngine.from_container(container, agents, bus=bus)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the Chimera pipeline with echo agents")
    parser.add_argument("request", help="Free-text user request")
    parser.add_argument(
        "--fail",
        choices=[a.value for a in PIPELINE_ORDER],
        default=None,
        help="Make this stage fail on every attempt",
    )
    parser.add_argument("--retry-delay", type=float, default=None, help="Base retry delay in seconds")
    parser.add_argument("--log-level", default=None, help="Logging level")

    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(args.log_level or settings.observability.log_level)

    engine = build_engine(fail=args.fail)
    if args.retry_delay is not None:
        engine.config = engine.config.model_copy(update={"retry_base_delay": args.retry_delay})
    for event_type in EventType:
        engine.bus.subscribe(event_type, _print_event)

    try:
        asyncio.run(engine.run(args.request))
    except Exception as e:
        logger.error(f"Workflow failed: {e}")
        return 1
    return 0


def cli_main():
    """Console script entry point."""
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli_main()
