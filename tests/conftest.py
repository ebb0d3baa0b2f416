"""
Global pytest configuration and fixtures for test isolation.

Resets cached settings, the run ID context and stored probe timings so no
test sees state left behind by another.
"""

import logging

import pytest

from chimera.agents.base import EchoAgent, FunctionAgent
from chimera.config.settings import CoordinationConfig, get_settings
from chimera.core.engine import PIPELINE_ORDER
from chimera.events.bus import EventBus
from chimera.observability.logging import StructuredFormatter, clear_run_id
from chimera.observability.probe import clear_run_metrics


def reset_all_global_state():
    """Reset every module-level cache the package keeps."""
    get_settings.cache_clear()
    clear_run_id()
    clear_run_metrics()


@pytest.fixture(autouse=True)
def test_isolation():
    """Per-test isolation to ensure clean state for each test."""
    root = logging.getLogger()
    level = root.level
    reset_all_global_state()
    yield
    reset_all_global_state()
    # Drop handlers installed by setup_logging so later tests keep pytest's capture
    for handler in list(root.handlers):
        if isinstance(handler.formatter, StructuredFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def fast_config():
    """Coordination config with default retries and a short stage budget."""
    return CoordinationConfig(stage_timeout=1.0, max_retries=3, retry_base_delay=0.25)


@pytest.fixture
def echo_agents():
    return {agent_type: EchoAgent(agent_type) for agent_type in PIPELINE_ORDER}


def counting_agent(agent_type, outcomes):
    """
    Agent that replays ``outcomes`` in order (the last one repeats).

    Each outcome is an ``AgentResult`` to return or an exception to raise.
    The agent exposes ``calls`` (number of invocations) and ``inputs``.
    """

    async def run(ctx):
        agent.calls += 1
        agent.inputs.append(ctx.input)
        agent.contexts.append(ctx)
        outcome = outcomes[min(agent.calls, len(outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    agent = FunctionAgent(agent_type, run)
    agent.calls = 0
    agent.inputs = []
    agent.contexts = []
    return agent


@pytest.fixture
def make_agent():
    """Factory fixture for scripted agents, see ``counting_agent``."""
    return counting_agent
