"""Workflow context and the per-agent slices derived from it."""

from .broker import (
    EMPTY_PLAN,
    INITIAL_STEP,
    SLICE_BUILDERS,
    ContextSlice,
    WorkflowContext,
    build_context_slice,
)

__all__ = [
    "WorkflowContext",
    "ContextSlice",
    "build_context_slice",
    "SLICE_BUILDERS",
    "EMPTY_PLAN",
    "INITIAL_STEP",
]
