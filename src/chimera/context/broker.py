"""
Context broker: decides which part of the shared workflow context each agent sees.

| agent  | visible keys                                                    |
|--------|-----------------------------------------------------------------|
| KERNEL | every field                                                     |
| SYNTH  | clarified_input, assumptions, constraints, plan_json            |
| DRIVE  | plan_step, artifacts                                            |
| AUDIT  | plan_json, artifacts                                            |

Slices are plain dicts built fresh on every call; list fields are copied so
an agent cannot reach back into the engine's context through them.
"""

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from ..events.types import AgentType

EMPTY_PLAN = "{}"
INITIAL_STEP = "initial"


@dataclass
class WorkflowContext:
    """Shared state of one run. Owned and mutated only by the engine."""

    user_input: str
    clarified_input: str | None = None
    assumptions: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    plan_json: str = EMPTY_PLAN
    plan_step: str = INITIAL_STEP
    artifacts: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.clarified_input is None:
            self.clarified_input = self.user_input

    def merge(self, output: Any) -> None:
        """Fold an agent's mapping output back into the context.

        Scalar fields are replaced, ``artifacts`` is extended. Anything that
        is not a mapping, and keys that are not context fields, are ignored.
        """
        if not isinstance(output, Mapping):
            return
        for key in ("clarified_input", "plan_json", "plan_step"):
            if output.get(key) is not None:
                setattr(self, key, str(output[key]))
        for key in ("assumptions", "constraints"):
            if output.get(key) is not None:
                setattr(self, key, _as_str_list(output[key]))
        if output.get("artifacts"):
            self.artifacts.extend(_as_str_list(output["artifacts"]))


def _as_str_list(value: Any) -> list[str]:
    # A bare string is one item, not a sequence of characters
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


ContextSlice = dict[str, Any]


def _kernel_slice(ctx: WorkflowContext) -> ContextSlice:
    # asdict copies the list fields
    return asdict(ctx)


def _synth_slice(ctx: WorkflowContext) -> ContextSlice:
    return {
        "clarified_input": ctx.clarified_input or ctx.user_input,
        "assumptions": list(ctx.assumptions or []),
        "constraints": list(ctx.constraints or []),
        "plan_json": ctx.plan_json,
    }


def _drive_slice(ctx: WorkflowContext) -> ContextSlice:
    return {"plan_step": ctx.plan_step, "artifacts": list(ctx.artifacts)}


def _audit_slice(ctx: WorkflowContext) -> ContextSlice:
    return {"plan_json": ctx.plan_json, "artifacts": list(ctx.artifacts)}


SLICE_BUILDERS: Mapping[AgentType, Callable[[WorkflowContext], ContextSlice]] = {
    AgentType.KERNEL: _kernel_slice,
    AgentType.SYNTH: _synth_slice,
    AgentType.DRIVE: _drive_slice,
    AgentType.AUDIT: _audit_slice,
}


def build_context_slice(agent: AgentType | str, context: WorkflowContext) -> ContextSlice:
    """Return the part of ``context`` that ``agent`` may read; ``{}`` for unknown agents."""
    try:
        builder = SLICE_BUILDERS[AgentType(agent)]
    except (KeyError, ValueError):
        return {}
    return builder(context)
