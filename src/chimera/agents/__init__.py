"""Agent boundary used by the workflow engine."""

from .base import Agent, AgentContext, AgentResult, EchoAgent, FunctionAgent

__all__ = ["Agent", "AgentContext", "AgentResult", "EchoAgent", "FunctionAgent"]
