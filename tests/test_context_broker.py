"""
Tests for the context broker and the workflow context.
"""

import pytest

from chimera.context.broker import (
    EMPTY_PLAN,
    INITIAL_STEP,
    SLICE_BUILDERS,
    WorkflowContext,
    build_context_slice,
)
from chimera.events.types import AgentType


@pytest.fixture
def full_context():
    return WorkflowContext(
        user_input="build a todo app",
        clarified_input="Build a CLI todo app in Python",
        assumptions=["single user"],
        constraints=["no network"],
        plan_json='{"plan": []}',
        plan_step="S1",
        artifacts=["todo.py"],
    )


class TestWorkflowContext:
    def test_defaults(self):
        ctx = WorkflowContext(user_input="echo hello")

        assert ctx.clarified_input == "echo hello"
        assert ctx.assumptions == []
        assert ctx.constraints == []
        assert ctx.plan_json == EMPTY_PLAN == "{}"
        assert ctx.plan_step == INITIAL_STEP
        assert ctx.artifacts == []

    def test_merge_replaces_scalars_and_extends_artifacts(self, full_context):
        full_context.merge(
            {
                "clarified_input": "Build a todo CLI",
                "assumptions": ["python 3.11"],
                "plan_json": '{"plan": [1]}',
                "artifacts": ["README.md"],
                "unrelated": "ignored",
            }
        )

        assert full_context.clarified_input == "Build a todo CLI"
        assert full_context.assumptions == ["python 3.11"]
        assert full_context.constraints == ["no network"]
        assert full_context.plan_json == '{"plan": [1]}'
        assert full_context.artifacts == ["todo.py", "README.md"]
        assert not hasattr(full_context, "unrelated")

    def test_merge_treats_strings_as_single_items(self, full_context):
        full_context.merge({"assumptions": "offline", "constraints": "no network", "artifacts": "b.py"})

        assert full_context.assumptions == ["offline"]
        assert full_context.constraints == ["no network"]
        assert full_context.artifacts == ["todo.py", "b.py"]

    def test_merge_ignores_non_mappings(self, full_context):
        full_context.merge("plain text output")
        full_context.merge(None)

        assert full_context.artifacts == ["todo.py"]


class TestBuildContextSlice:
    def test_kernel_sees_everything(self, full_context):
        slice_ = build_context_slice(AgentType.KERNEL, full_context)

        assert slice_ == {
            "user_input": "build a todo app",
            "clarified_input": "Build a CLI todo app in Python",
            "assumptions": ["single user"],
            "constraints": ["no network"],
            "plan_json": '{"plan": []}',
            "plan_step": "S1",
            "artifacts": ["todo.py"],
        }

    def test_synth_slice(self, full_context):
        slice_ = build_context_slice(AgentType.SYNTH, full_context)

        assert slice_ == {
            "clarified_input": "Build a CLI todo app in Python",
            "assumptions": ["single user"],
            "constraints": ["no network"],
            "plan_json": '{"plan": []}',
        }

    def test_synth_defaults_are_empty_lists(self):
        ctx = WorkflowContext(user_input="echo hello")

        slice_ = build_context_slice("SYNTH", ctx)

        assert slice_ == {
            "clarified_input": "echo hello",
            "assumptions": [],
            "constraints": [],
            "plan_json": "{}",
        }

    def test_synth_falls_back_to_raw_input(self):
        ctx = WorkflowContext(user_input="raw request")
        ctx.clarified_input = ""

        assert build_context_slice(AgentType.SYNTH, ctx)["clarified_input"] == "raw request"

    def test_drive_slice(self, full_context):
        assert build_context_slice(AgentType.DRIVE, full_context) == {
            "plan_step": "S1",
            "artifacts": ["todo.py"],
        }

    def test_audit_slice(self, full_context):
        assert build_context_slice(AgentType.AUDIT, full_context) == {
            "plan_json": '{"plan": []}',
            "artifacts": ["todo.py"],
        }

    def test_unknown_agent_gets_empty_slice(self, full_context):
        assert build_context_slice("CRITIC", full_context) == {}

    @pytest.mark.parametrize("agent", list(AgentType))
    def test_list_fields_are_copies(self, agent, full_context):
        slice_ = build_context_slice(agent, full_context)

        for value in slice_.values():
            if isinstance(value, list):
                value.append("tampered")

        assert full_context.artifacts == ["todo.py"]
        assert full_context.assumptions == ["single user"]
        assert full_context.constraints == ["no network"]

    def test_deterministic(self, full_context):
        assert build_context_slice(AgentType.AUDIT, full_context) == build_context_slice(
            AgentType.AUDIT, full_context
        )

    def test_every_agent_has_a_rule(self):
        assert set(SLICE_BUILDERS) == set(AgentType)
