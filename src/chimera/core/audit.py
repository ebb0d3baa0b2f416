"""
Per-run audit trail of agent invocations.

The engine appends one :class:`AgentExecutionRecord` per attempt. Records are
never removed during a run; a new run starts a new trail.
"""

import time
from dataclasses import dataclass, field
from typing import Any

from ..events.types import AgentType
from ..observability.logging import get_logger
from ..observability.probe import get_run_metrics

logger = get_logger(__name__)


@dataclass
class AgentExecutionRecord:
    """One attempt of one agent."""

    agent: AgentType
    attempt: int
    input: dict[str, Any]
    started_at: float = field(default_factory=time.time)
    ended_at: float | None = None
    result: Any = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.ended_at is not None

    @property
    def succeeded(self) -> bool:
        return self.finished and self.error is None

    @property
    def duration(self) -> float | None:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    def succeed(self, result: Any) -> None:
        # A timed-out attempt may settle later; the first outcome wins
        if self.finished:
            return
        self.ended_at = time.time()
        self.result = result

    def fail(self, error: BaseException | str) -> None:
        if self.finished:
            return
        self.ended_at = time.time()
        self.error = str(error) or type(error).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent.value,
            "attempt": self.attempt,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration": self.duration,
            "succeeded": self.succeeded,
            "error": self.error,
        }


class ExecutionAudit:
    """Append-only list of execution records for one run."""

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id
        self._records: list[AgentExecutionRecord] = []

    def start(self, agent: AgentType, attempt: int, agent_input: dict[str, Any]) -> AgentExecutionRecord:
        record = AgentExecutionRecord(agent=AgentType(agent), attempt=attempt, input=agent_input)
        self._records.append(record)
        return record

    @property
    def records(self) -> list[AgentExecutionRecord]:
        return list(self._records)

    def for_agent(self, agent: AgentType | str) -> list[AgentExecutionRecord]:
        agent = AgentType(agent)
        return [r for r in self._records if r.agent is agent]

    def snapshot(self, success: bool | None = None) -> dict[str, Any]:
        """
        Summarize the run for audit purposes.

        Includes every record plus the probe timings stored under the run ID.
        """
        timings = get_run_metrics(self.run_id) if self.run_id else {}
        records = [r.to_dict() for r in self._records]
        snapshot = {
            "run_id": self.run_id,
            "success": success,
            "agents_used": list(dict.fromkeys(r.agent.value for r in self._records)),
            "records": records,
            "timings_ms": {op: data["duration_ms"] for op, data in timings.items()},
            "metadata": {
                "total_attempts": len(records),
                "failed_attempts": sum(1 for r in records if r["error"] is not None),
            },
        }
        logger.debug(f"Audit snapshot created with {len(records)} records", op="snapshot")
        return snapshot

    def __len__(self) -> int:
        return len(self._records)
