"""Runner configuration settings."""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class RunnerSettings:
    """Configuration for the restart loop.

    Built once by the CLI and passed into the loop controller, so tests
    can construct it directly with injected paths.
    """

    # Workflow state location
    spec_dir: Path = field(
        default_factory=lambda: Path(os.getenv("RALPH_SPEC_DIR", "./spec"))
    )

    # Loop limits
    max_restarts: int = field(
        default_factory=lambda: int(os.getenv("RALPH_MAX_RESTARTS", "50"))
    )
    restart_delay_seconds: float = field(
        default_factory=lambda: float(os.getenv("RALPH_RESTART_DELAY", "2"))
    )

    # Agent invocation
    agent_command: str = field(
        default_factory=lambda: os.getenv("RALPH_AGENT_COMMAND", "claude")
    )
    agent_args: list[str] = field(
        default_factory=lambda: shlex.split(os.getenv("RALPH_AGENT_ARGS", ""))
    )

    # Runner bookkeeping (never inside the agent's spec directory)
    state_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("RALPH_STATE_DIR", str(Path.home() / ".ralph-runner"))
        )
    )
    history_enabled: bool = field(
        default_factory=lambda: os.getenv("RALPH_HISTORY_ENABLED", "true").lower()
        == "true"
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("RALPH_LOG_LEVEL", "INFO").upper()
    )

    def __post_init__(self) -> None:
        """Normalize paths and reject impossible limits."""
        self.spec_dir = Path(self.spec_dir)
        self.state_dir = Path(self.state_dir)

        if self.max_restarts < 0:
            raise ValueError(f"max_restarts must be >= 0, got {self.max_restarts}")
        if self.restart_delay_seconds < 0:
            raise ValueError(
                f"restart_delay_seconds must be >= 0, got {self.restart_delay_seconds}"
            )

    @property
    def history_dir(self) -> Path:
        """Path to the session history directory."""
        return self.state_dir / "history"
