"""YAML session history for runner invocations."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class SessionOutcome(str, Enum):
    """How a runner session ended."""

    RUNNING = "running"
    COMPLETED = "completed"
    NOTHING_TO_RESUME = "nothing_to_resume"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


@dataclass
class InvocationRecord:
    """One agent invocation within a session."""

    iteration: int
    prompt_kind: str
    status_before: str
    exit_code: int | None = None
    success: bool | None = None
    duration_seconds: float | None = None
    started_at: datetime | None = None
    marker_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "iteration": self.iteration,
            "prompt_kind": self.prompt_kind,
            "status_before": self.status_before,
            "exit_code": self.exit_code,
            "success": self.success,
            "duration_seconds": self.duration_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "marker_reason": self.marker_reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InvocationRecord":
        """Create from dictionary."""
        return cls(
            iteration=data["iteration"],
            prompt_kind=data["prompt_kind"],
            status_before=data.get("status_before", ""),
            exit_code=data.get("exit_code"),
            success=data.get("success"),
            duration_seconds=data.get("duration_seconds"),
            started_at=datetime.fromisoformat(data["started_at"])
            if data.get("started_at")
            else None,
            marker_reason=data.get("marker_reason"),
        )


@dataclass
class SessionRecord:
    """Everything recorded about one runner session."""

    run_id: str
    goal: str
    options: list[str] = field(default_factory=list)
    outcome: SessionOutcome = SessionOutcome.RUNNING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    message: str | None = None
    invocations: list[InvocationRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "run_id": self.run_id,
            "goal": self.goal,
            "options": list(self.options),
            "outcome": self.outcome.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "message": self.message,
            "invocations": [inv.to_dict() for inv in self.invocations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        """Create from dictionary."""
        return cls(
            run_id=data["run_id"],
            goal=data["goal"],
            options=list(data.get("options") or []),
            outcome=SessionOutcome(data.get("outcome", "running")),
            started_at=datetime.fromisoformat(data["started_at"])
            if data.get("started_at")
            else None,
            finished_at=datetime.fromisoformat(data["finished_at"])
            if data.get("finished_at")
            else None,
            message=data.get("message"),
            invocations=[
                InvocationRecord.from_dict(inv) for inv in data.get("invocations") or []
            ],
        )


class SessionHistory:
    """Records a session to a YAML file after every change.

    With ``history_dir`` set to None the record is kept in memory only.
    """

    def __init__(
        self,
        goal: str,
        options: list[str],
        history_dir: Path | None = None,
    ):
        """Initialize session history.

        Args:
            goal: Goal description for this session
            options: Pass-through options for this session
            history_dir: Directory for session files (None disables writing)
        """
        now = datetime.now(timezone.utc)
        self.record = SessionRecord(
            run_id=now.strftime("%Y%m%d_%H%M%S_%f"),
            goal=goal,
            options=list(options),
            started_at=now,
        )
        self.history_dir = history_dir
        self._save()

    @property
    def session_file(self) -> Path | None:
        """Path to this session's YAML file."""
        if self.history_dir is None:
            return None
        return self.history_dir / f"session_{self.record.run_id}.yaml"

    def _save(self) -> None:
        """Save the session file atomically."""
        session_file = self.session_file
        if session_file is None:
            return

        session_file.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp file first, then rename (atomic on POSIX)
        temp_file = session_file.with_suffix(".yaml.tmp")
        with open(temp_file, "w") as f:
            yaml.safe_dump(
                self.record.to_dict(), f, default_flow_style=False, sort_keys=False
            )

        temp_file.replace(session_file)
        logger.debug(f"Saved session history to {session_file}")

    def start_invocation(
        self,
        iteration: int,
        prompt_kind: str,
        status_before: str,
        marker_reason: str | None = None,
    ) -> InvocationRecord:
        """Record that an agent invocation is about to start."""
        invocation = InvocationRecord(
            iteration=iteration,
            prompt_kind=prompt_kind,
            status_before=status_before,
            started_at=datetime.now(timezone.utc),
            marker_reason=marker_reason,
        )
        self.record.invocations.append(invocation)
        self._save()
        return invocation

    def finish_invocation(
        self,
        invocation: InvocationRecord,
        result: dict[str, Any],
    ) -> InvocationRecord:
        """Record the agent's exit.

        Args:
            invocation: Record returned by start_invocation
            result: Agent result as produced by ``AgentResult.to_dict()``
        """
        invocation.exit_code = result["exit_code"]
        invocation.success = result.get("success")
        invocation.duration_seconds = result.get("duration_seconds")
        self._save()
        return invocation

    def finish(self, outcome: SessionOutcome, message: str | None = None) -> SessionRecord:
        """Mark the session as finished."""
        self.record.outcome = outcome
        self.record.finished_at = datetime.now(timezone.utc)
        self.record.message = message
        self._save()
        if self.session_file is not None:
            logger.info(f"Session history written to {self.session_file}")
        return self.record


def load_session(path: Path) -> SessionRecord:
    """Load a session record from a history file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return SessionRecord.from_dict(data)
