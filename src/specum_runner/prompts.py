"""Prompt selection for each agent invocation.

The first run hands the agent the user's goal. Later runs hand it a short
resumption instruction pointing at the files that hold the workflow's
accumulated progress, instead of replaying the original goal.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .state import (
    PROGRESS_FILE_NAME,
    STATE_FILE_NAME,
    TASKS_FILE_NAME,
    RestartMarker,
    WorkflowState,
)

logger = logging.getLogger(__name__)

WORKFLOW_COMMAND = "/ralph-specum"
IMPLEMENT_COMMAND = "/ralph-specum:implement"
FORCE_RESTART_OPTION = "--force-restart"

MARKER_RESUME_TEMPLATE = """\
Resume the ralph-specum workflow. {instruction}

Read the state files first:
1. {spec_path}/{state_file} - for current phase/task
2. {spec_path}/{progress_file} - for context and learnings
3. {spec_path}/{tasks_file} - for task details

Then run: {implement_command}"""

STATE_RESUME_TEMPLATE = """\
Resume the ralph-specum workflow from {spec_path}.

Read the state files and continue:
1. {spec_path}/{state_file}
2. {spec_path}/{progress_file}

Then run: {implement_command}"""


class PromptKind(str, Enum):
    """Which framing a prompt uses."""

    INITIAL = "initial"
    MARKER_RESUME = "marker_resume"
    STATE_RESUME = "state_resume"


@dataclass
class PromptPlan:
    """Prompt for one iteration plus what to do with the restart marker."""

    kind: PromptKind
    text: str
    marker: RestartMarker | None = None

    @property
    def consume_marker(self) -> bool:
        """True if the marker must be deleted before the agent is relaunched."""
        return self.marker is not None

    def preview(self, limit: int = 100) -> str:
        """First ``limit`` characters of the prompt for logging."""
        if len(self.text) <= limit:
            return self.text
        return f"{self.text[:limit]}..."


def ensure_required_options(options: list[str]) -> list[str]:
    """Return the pass-through options with --force-restart present.

    The runner depends on the agent writing a restart marker and exiting,
    which the workflow only does with --force-restart.
    """
    if FORCE_RESTART_OPTION in options:
        return list(options)
    logger.warning(f"Adding {FORCE_RESTART_OPTION} flag (required for this runner)")
    return [*options, FORCE_RESTART_OPTION]


def build_initial_prompt(goal: str, options: list[str]) -> str:
    """Wrap the goal and options in the workflow's slash command."""
    quoted_goal = goal.replace('"', '\\"')
    parts = [WORKFLOW_COMMAND, f'"{quoted_goal}"', *options]
    return " ".join(parts)


def build_marker_prompt(marker: RestartMarker) -> str:
    return MARKER_RESUME_TEMPLATE.format(
        instruction=marker.instruction,
        spec_path=marker.spec_path,
        state_file=STATE_FILE_NAME,
        progress_file=PROGRESS_FILE_NAME,
        tasks_file=TASKS_FILE_NAME,
        implement_command=IMPLEMENT_COMMAND,
    )


def build_state_prompt(state: WorkflowState) -> str:
    return STATE_RESUME_TEMPLATE.format(
        spec_path=state.spec_path,
        state_file=STATE_FILE_NAME,
        progress_file=PROGRESS_FILE_NAME,
        implement_command=IMPLEMENT_COMMAND,
    )


def plan_prompt(
    iteration: int,
    goal: str,
    options: list[str],
    marker: RestartMarker | None,
    state: WorkflowState | None,
) -> PromptPlan | None:
    """Choose the prompt for an iteration.

    Args:
        iteration: Zero-based count of agent invocations so far
        goal: Goal description given on the command line
        options: Pass-through options for the workflow command
        marker: Pending restart marker, if any
        state: Current workflow state, if any

    Returns:
        PromptPlan, or None when a later iteration has nothing to resume
    """
    if iteration == 0:
        # Stray state or markers from an earlier run are ignored here
        return PromptPlan(
            kind=PromptKind.INITIAL,
            text=build_initial_prompt(goal, options),
        )

    if marker is not None:
        return PromptPlan(
            kind=PromptKind.MARKER_RESUME,
            text=build_marker_prompt(marker),
            marker=marker,
        )

    if state is not None:
        return PromptPlan(
            kind=PromptKind.STATE_RESUME,
            text=build_state_prompt(state),
        )

    return None
