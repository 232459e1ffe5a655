"""Read access to the agent-owned workflow state and restart marker.

Both files are written by the agent. The runner only reads them, and
deletes the restart marker once it has been turned into a prompt.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STATE_FILE_NAME = ".ralph-state.json"
RESTART_MARKER_NAME = ".ralph-restart"
PROGRESS_FILE_NAME = ".ralph-progress.md"
TASKS_FILE_NAME = "tasks.md"

EXECUTION_PHASE = "execution"


class StateFileError(RuntimeError):
    """Raised when a state or marker file exists but cannot be parsed."""


@dataclass
class WorkflowState:
    """Snapshot of ``.ralph-state.json``."""

    phase: str = ""
    task_index: int = 0
    total_tasks: int = 0
    spec_path: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path) -> "WorkflowState":
        """Create from the parsed state file.

        Args:
            data: Parsed JSON object
            source: File the data came from, used for the specPath fallback
                and error messages

        Raises:
            StateFileError: If a field has the wrong type
        """
        return cls(
            phase=_get_str(data, "phase", source),
            task_index=_get_int(data, "taskIndex", source),
            total_tasks=_get_int(data, "totalTasks", source),
            spec_path=_get_str(data, "specPath", source) or str(source.parent),
        )

    def summary(self) -> str:
        return f"Phase: {self.phase} | Tasks: {self.task_index}/{self.total_tasks}"


@dataclass
class RestartMarker:
    """Snapshot of a ``.ralph-restart`` request left by the agent."""

    path: Path
    spec_path: str
    instruction: str = ""
    reason: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path) -> "RestartMarker":
        return cls(
            path=source,
            spec_path=_get_str(data, "specPath", source) or str(source.parent),
            instruction=_get_str(data, "instruction", source),
            reason=_get_str(data, "reason", source),
        )


def is_workflow_complete(state: WorkflowState | None) -> bool:
    """Decide whether the workflow has finished.

    No state record means "not started or already done"; both count as
    complete. A fresh record with zero tasks is never complete.
    """
    if state is None:
        return True
    return (
        state.phase == EXECUTION_PHASE
        and state.task_index >= state.total_tasks
        and state.total_tasks > 0
    )


class StateStore:
    """Locates and parses the state files under the spec directory."""

    def __init__(self, spec_dir: Path):
        """Initialize state store.

        Args:
            spec_dir: Root searched for the state file and restart marker.
                The files may sit in the root or one directory below it.
        """
        self.spec_dir = Path(spec_dir)

    def _find(self, name: str) -> Path | None:
        """Find the first file called ``name`` at depth one or two."""
        if not self.spec_dir.is_dir():
            return None

        direct = self.spec_dir / name
        if direct.is_file():
            return direct

        for candidate in sorted(self.spec_dir.glob(f"*/{name}")):
            if candidate.is_file():
                return candidate
        return None

    def find_state_file(self) -> Path | None:
        """Path to the workflow state file, or None if there is none."""
        return self._find(STATE_FILE_NAME)

    def find_restart_marker(self) -> Path | None:
        """Path to the restart marker, or None if there is none."""
        return self._find(RESTART_MARKER_NAME)

    def load_state(self) -> WorkflowState | None:
        """Load the workflow state.

        Returns:
            Parsed WorkflowState, or None if no state file exists

        Raises:
            StateFileError: If the file exists but is not a JSON object
        """
        path = self.find_state_file()
        if path is None:
            return None
        state = WorkflowState.from_dict(_read_json(path), source=path)
        logger.debug(f"Loaded state from {path}: {state.summary()}")
        return state

    def load_marker(self) -> RestartMarker | None:
        """Load the restart marker without consuming it.

        Raises:
            StateFileError: If the marker exists but is not a JSON object
        """
        path = self.find_restart_marker()
        if path is None:
            return None
        marker = RestartMarker.from_dict(_read_json(path), source=path)
        logger.debug(f"Loaded restart marker from {path}")
        return marker

    def consume_marker(self, marker: RestartMarker) -> None:
        """Delete a restart marker that has been acted on."""
        marker.path.unlink(missing_ok=True)
        logger.debug(f"Removed restart marker {marker.path}")

    def has_resumable_state(self) -> bool:
        """True if either a restart marker or a state file exists."""
        return (
            self.find_restart_marker() is not None
            or self.find_state_file() is not None
        )

    def describe_status(self) -> str:
        """One-line status for the log."""
        state = self.load_state()
        if state is None:
            return "Not started"
        return state.summary()


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StateFileError(f"{path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise StateFileError(f"{path} is not UTF-8 text: {e}") from e

    if not isinstance(data, dict):
        raise StateFileError(
            f"{path} must contain a JSON object, got {type(data).__name__}"
        )
    return data


def _get_str(data: dict[str, Any], key: str, source: Path) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise StateFileError(f"{source}: '{key}' must be a string, got {value!r}")
    return value


def _get_int(data: dict[str, Any], key: str, source: Path) -> int:
    value = data.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid counter
    if isinstance(value, bool) or not isinstance(value, int):
        raise StateFileError(f"{source}: '{key}' must be an integer, got {value!r}")
    return value
