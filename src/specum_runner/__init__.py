"""Restart loop for long-running ralph-specum agent sessions.

Runs the agent CLI, and whenever it quits to get a fresh context, relaunches
it with a prompt that points back at the workflow's saved progress.

Key components:
- config: Runner configuration from environment variables
- state: Read access to the agent's state file and restart marker
- prompts: Prompt selection for first runs and restarts
- runner: Agent process execution
- history: YAML session history
- loop: The restart loop itself
"""

from .config import RunnerSettings
from .loop import LoopController, LoopResult, RestartLimitExceeded
from .runner import AgentNotFoundError, AgentResult, AgentSupervisor
from .state import (
    RestartMarker,
    StateFileError,
    StateStore,
    WorkflowState,
    is_workflow_complete,
)

__all__ = [
    "RunnerSettings",
    "LoopController",
    "LoopResult",
    "RestartLimitExceeded",
    "AgentNotFoundError",
    "AgentResult",
    "AgentSupervisor",
    "RestartMarker",
    "StateFileError",
    "StateStore",
    "WorkflowState",
    "is_workflow_complete",
]
