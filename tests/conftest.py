"""Pytest fixtures for ralph-specum runner tests."""

import json
from pathlib import Path

import pytest

from specum_runner.config import RunnerSettings
from specum_runner.state import RESTART_MARKER_NAME, STATE_FILE_NAME, StateStore


def write_state(
    directory: Path,
    phase: str = "execution",
    task_index: int = 0,
    total_tasks: int = 5,
    spec_path: str | None = None,
) -> Path:
    """Write a .ralph-state.json the way the agent does."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / STATE_FILE_NAME
    path.write_text(
        json.dumps(
            {
                "phase": phase,
                "taskIndex": task_index,
                "totalTasks": total_tasks,
                "specPath": spec_path if spec_path is not None else str(directory),
            }
        )
    )
    return path


def write_marker(
    directory: Path,
    instruction: str = "continue task 3",
    reason: str = "context limit",
    spec_path: str | None = None,
) -> Path:
    """Write a .ralph-restart marker the way the agent does."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / RESTART_MARKER_NAME
    path.write_text(
        json.dumps(
            {
                "specPath": spec_path if spec_path is not None else str(directory),
                "instruction": instruction,
                "reason": reason,
            }
        )
    )
    return path


@pytest.fixture
def spec_dir(tmp_path) -> Path:
    """Empty spec root."""
    path = tmp_path / "spec"
    path.mkdir()
    return path


@pytest.fixture
def feature_dir(spec_dir) -> Path:
    """Directory of one spec inside the spec root."""
    path = spec_dir / "user-auth"
    path.mkdir()
    return path


@pytest.fixture
def store(spec_dir) -> StateStore:
    return StateStore(spec_dir)


@pytest.fixture
def settings(spec_dir, tmp_path) -> RunnerSettings:
    """Runner settings pointed at temporary directories."""
    return RunnerSettings(
        spec_dir=spec_dir,
        max_restarts=50,
        restart_delay_seconds=0,
        agent_command="claude",
        agent_args=[],
        state_dir=tmp_path / "runner-state",
        history_enabled=True,
        log_level="DEBUG",
    )


@pytest.fixture
def make_state():
    """Factory for agent-written state files."""
    return write_state


@pytest.fixture
def make_marker():
    """Factory for agent-written restart markers."""
    return write_marker
