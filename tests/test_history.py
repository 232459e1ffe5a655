"""Tests for session history."""

from datetime import datetime, timezone

import yaml

from specum_runner.history import (
    InvocationRecord,
    SessionHistory,
    SessionOutcome,
    SessionRecord,
    load_session,
)
from specum_runner.runner import AgentResult


class TestSessionOutcome:
    """Tests for SessionOutcome enum."""

    def test_outcome_values(self):
        """Test all outcome enum values."""
        assert SessionOutcome.RUNNING.value == "running"
        assert SessionOutcome.COMPLETED.value == "completed"
        assert SessionOutcome.NOTHING_TO_RESUME.value == "nothing_to_resume"
        assert SessionOutcome.FAILED.value == "failed"
        assert SessionOutcome.INTERRUPTED.value == "interrupted"


class TestInvocationRecord:
    """Tests for InvocationRecord dataclass."""

    def test_from_dict(self):
        """Test creation from dictionary."""
        now = datetime.now(timezone.utc)
        data = {
            "iteration": 2,
            "prompt_kind": "state_resume",
            "status_before": "Phase: execution | Tasks: 1/4",
            "exit_code": 1,
            "success": False,
            "duration_seconds": 12.5,
            "started_at": now.isoformat(),
            "marker_reason": None,
        }

        record = InvocationRecord.from_dict(data)

        assert record.iteration == 2
        assert record.prompt_kind == "state_resume"
        assert record.exit_code == 1
        assert record.started_at == now
        assert record.to_dict() == data


class TestSessionRecord:
    """Tests for SessionRecord dataclass."""

    def test_default_values(self):
        """Test SessionRecord default values."""
        record = SessionRecord(run_id="r1", goal="g")

        assert record.options == []
        assert record.outcome == SessionOutcome.RUNNING
        assert record.started_at is None
        assert record.finished_at is None
        assert record.invocations == []

    def test_from_dict_with_invocations(self):
        """Test nested invocations are restored."""
        data = {
            "run_id": "r1",
            "goal": "g",
            "options": ["--force-restart"],
            "outcome": "completed",
            "started_at": None,
            "finished_at": None,
            "message": "done",
            "invocations": [
                {"iteration": 0, "prompt_kind": "initial", "status_before": "Not started"}
            ],
        }

        record = SessionRecord.from_dict(data)

        assert record.outcome == SessionOutcome.COMPLETED
        assert record.invocations[0].prompt_kind == "initial"
        assert record.invocations[0].exit_code is None


class TestSessionHistory:
    """Tests for SessionHistory persistence."""

    def test_creates_session_file(self, tmp_path):
        """Test the session file is written on creation."""
        history = SessionHistory("goal", ["--force-restart"], history_dir=tmp_path / "history")

        assert history.session_file.exists()
        assert history.session_file.parent == tmp_path / "history"
        with open(history.session_file) as f:
            data = yaml.safe_load(f)
        assert data["goal"] == "goal"
        assert data["outcome"] == "running"
        assert data["invocations"] == []

    def test_no_temp_file_left(self, tmp_path):
        """Test the atomic write leaves no temp file."""
        history = SessionHistory("goal", [], history_dir=tmp_path)

        history.finish(SessionOutcome.COMPLETED)

        assert list(tmp_path.glob("*.tmp")) == []

    def test_invocation_lifecycle(self, tmp_path):
        """Test invocations are saved as they start and finish."""
        history = SessionHistory("goal", [], history_dir=tmp_path)

        invocation = history.start_invocation(
            iteration=0, prompt_kind="initial", status_before="Not started"
        )
        on_disk = load_session(history.session_file)
        assert on_disk.invocations[0].exit_code is None

        history.finish_invocation(
            invocation, {"exit_code": 2, "success": False, "duration_seconds": 3.142}
        )
        on_disk = load_session(history.session_file)
        assert on_disk.invocations[0].exit_code == 2
        assert on_disk.invocations[0].success is False
        assert on_disk.invocations[0].duration_seconds == 3.142

    def test_records_agent_result(self, tmp_path):
        """Test an agent result's serialized form is what lands in the file."""
        history = SessionHistory("goal", [], history_dir=tmp_path)
        result = AgentResult(
            command=["/usr/bin/claude", "-p", "prompt"],
            exit_code=0,
            duration_seconds=3.14159,
            started_at=datetime.now(timezone.utc),
        )

        invocation = history.start_invocation(
            iteration=0, prompt_kind="initial", status_before="Not started"
        )
        history.finish_invocation(invocation, result.to_dict())

        on_disk = load_session(history.session_file)
        assert on_disk.invocations[0].exit_code == 0
        assert on_disk.invocations[0].success is True
        assert on_disk.invocations[0].duration_seconds == 3.142

    def test_finish_records_outcome(self, tmp_path):
        """Test the final outcome and message are saved."""
        history = SessionHistory("goal", [], history_dir=tmp_path)

        history.finish(SessionOutcome.NOTHING_TO_RESUME, "Workflow may be complete or cancelled")

        record = load_session(history.session_file)
        assert record.outcome == SessionOutcome.NOTHING_TO_RESUME
        assert record.message == "Workflow may be complete or cancelled"
        assert record.finished_at is not None

    def test_in_memory_only(self, tmp_path):
        """Test nothing is written without a history directory."""
        history = SessionHistory("goal", [])

        history.start_invocation(iteration=0, prompt_kind="initial", status_before="Not started")
        history.finish(SessionOutcome.COMPLETED)

        assert history.session_file is None
        assert history.record.outcome == SessionOutcome.COMPLETED
        assert list(tmp_path.iterdir()) == []
