"""Agent process execution."""

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from .config import RunnerSettings

logger = logging.getLogger(__name__)


class AgentNotFoundError(RuntimeError):
    """Raised when the agent executable cannot be located."""


@dataclass
class AgentResult:
    """Result of one agent invocation."""

    command: list[str]
    exit_code: int
    duration_seconds: float
    started_at: datetime
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/storage.

        The prompt is left out; it can be long and is recorded separately.
        """
        return {
            "executable": self.command[0] if self.command else None,
            "exit_code": self.exit_code,
            "success": self.success,
            "duration_seconds": round(self.duration_seconds, 3),
            "started_at": self.started_at.isoformat(),
        }


class AgentSupervisor:
    """Runs the agent CLI in the foreground, one invocation at a time."""

    def __init__(
        self,
        settings: RunnerSettings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize supervisor.

        Args:
            settings: Runner settings (agent command, extra args, delay)
            sleep: Sleep function used for the settling delay
        """
        self.settings = settings
        self._sleep = sleep

    def resolve_executable(self) -> str:
        """Locate the agent executable on PATH.

        Raises:
            AgentNotFoundError: If it cannot be found
        """
        executable = shutil.which(self.settings.agent_command)
        if executable is None:
            raise AgentNotFoundError(
                f"Agent CLI '{self.settings.agent_command}' not found in PATH"
            )
        return executable

    def build_command(self, executable: str, prompt: str) -> list[str]:
        return [executable, "-p", prompt, *self.settings.agent_args]

    def run(self, prompt: str) -> AgentResult:
        """Run the agent with a prompt and wait for it to exit.

        Output goes straight to the terminal. A non-zero exit is how the
        agent asks for a restart, so it is only logged. An interrupt while
        waiting propagates but leaves the agent process running; its
        shutdown belongs to the agent, not to this loop.

        Raises:
            AgentNotFoundError: If the executable is missing
        """
        executable = self.resolve_executable()
        command = self.build_command(executable, prompt)

        started_at = datetime.now(timezone.utc)
        start_time = time.time()

        try:
            process = subprocess.Popen(command)
        except FileNotFoundError as e:
            # Removed between the PATH lookup and the launch
            raise AgentNotFoundError(f"Agent CLI '{executable}' not found: {e}") from e

        exit_code = process.wait()

        result = AgentResult(
            command=command,
            exit_code=exit_code,
            duration_seconds=time.time() - start_time,
            started_at=started_at,
        )

        if result.success:
            logger.info(f"Agent exited cleanly after {result.duration_seconds:.1f}s")
        else:
            logger.warning(
                f"Agent exited with code {result.exit_code} "
                f"after {result.duration_seconds:.1f}s"
            )
        return result

    def settle(self) -> None:
        """Wait for the agent's file writes to land before re-reading state."""
        delay = self.settings.restart_delay_seconds
        logger.info(f"Agent exited. Waiting {delay:g}s before checking status...")
        self._sleep(delay)
