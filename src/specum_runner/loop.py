"""Restart loop: run the agent until the workflow is done.

Each pass:
  1. Stop with an error once the restart ceiling is reached
  2. Stop if the workflow is complete (never before the first run)
  3. Pick the prompt; after the first run, stop if nothing is resumable.
     A restart marker used for the prompt is deleted here.
  4. Run the agent and wait for it to exit
  5. Count the run and let the agent's file writes settle
  6. Stop if the workflow is now complete
  7. Stop if neither a restart marker nor a state file is left
  8. Otherwise go round again
"""

import logging
from dataclasses import dataclass

from .config import RunnerSettings
from .history import SessionHistory, SessionOutcome
from .prompts import PromptKind, PromptPlan, plan_prompt
from .runner import AgentSupervisor
from .state import StateFileError, StateStore, is_workflow_complete

logger = logging.getLogger(__name__)

BANNER_WIDTH = 60


class RestartLimitExceeded(RuntimeError):
    """Raised when the agent keeps asking for restarts past the ceiling."""


@dataclass
class LoopResult:
    """How the loop finished."""

    exit_code: int
    invocations: int
    outcome: SessionOutcome
    message: str


def log_header(title: str) -> None:
    """Log a banner between agent runs."""
    logger.info("=" * BANNER_WIDTH)
    logger.info(title)
    logger.info("=" * BANNER_WIDTH)


class LoopController:
    """Drives the agent through restarts until the workflow finishes."""

    def __init__(
        self,
        settings: RunnerSettings,
        goal: str,
        options: list[str],
        store: StateStore | None = None,
        supervisor: AgentSupervisor | None = None,
        history: SessionHistory | None = None,
    ):
        """Initialize loop controller.

        Args:
            settings: Runner settings
            goal: Goal description for the first run
            options: Pass-through options for the first run
            store: State store (default: one rooted at settings.spec_dir)
            supervisor: Agent supervisor (default: built from settings)
            history: Session history (default: in-memory only)
        """
        self.settings = settings
        self.goal = goal
        self.options = list(options)
        self.store = store or StateStore(settings.spec_dir)
        self.supervisor = supervisor or AgentSupervisor(settings)
        self.history = history or SessionHistory(goal, self.options)
        self.restart_count = 0

    def run(self) -> LoopResult:
        """Run the loop to completion.

        Returns:
            LoopResult describing a successful finish

        Raises:
            RestartLimitExceeded: If max_restarts invocations did not finish it
            AgentNotFoundError: If the agent executable is missing
            StateFileError: If a state or marker file is corrupt
        """
        try:
            result = self._run()
        except KeyboardInterrupt:
            self.history.finish(SessionOutcome.INTERRUPTED, "Interrupted by signal")
            raise
        except Exception as e:
            self.history.finish(SessionOutcome.FAILED, str(e))
            raise

        self.history.finish(result.outcome, result.message)
        return result

    def _run(self) -> LoopResult:
        while True:
            if self.restart_count >= self.settings.max_restarts:
                raise RestartLimitExceeded(
                    f"Max restarts ({self.settings.max_restarts}) reached. "
                    "The agent may be stuck in a restart loop."
                )

            if self.restart_count > 0 and is_workflow_complete(self.store.load_state()):
                return self._finish(SessionOutcome.COMPLETED, "Workflow complete!")

            plan = self._next_prompt()
            if plan is None:
                return self._finish(
                    SessionOutcome.NOTHING_TO_RESUME,
                    "No restart marker or state file to resume from",
                )

            self._invoke(plan)

            if is_workflow_complete(self.store.load_state()):
                return self._finish(
                    SessionOutcome.COMPLETED,
                    f"Workflow complete after {self.restart_count} iteration(s)!",
                )

            if not self.store.has_resumable_state():
                logger.warning(
                    "No restart marker or state file found. "
                    "Workflow may be complete or cancelled."
                )
                return self._finish(
                    SessionOutcome.NOTHING_TO_RESUME,
                    "Workflow may be complete or cancelled",
                )

            logger.info("Restart marker or state found. Continuing loop...")

    def _next_prompt(self) -> PromptPlan | None:
        """Pick this pass's prompt, consuming the restart marker it uses."""
        if self.restart_count == 0:
            plan = plan_prompt(0, self.goal, self.options, marker=None, state=None)
        else:
            plan = plan_prompt(
                self.restart_count,
                self.goal,
                self.options,
                marker=self.store.load_marker(),
                state=self.store.load_state(),
            )
        if plan is None:
            return None

        if plan.kind == PromptKind.INITIAL:
            log_header("STARTING CLAUDE (Initial Run)")
        else:
            log_header(f"RESTARTING CLAUDE (#{self.restart_count})")

        if plan.marker is not None:
            # Gone before the agent starts, so a new marker is a new request
            self.store.consume_marker(plan.marker)
            logger.info(f"Reason: {plan.marker.reason or 'continuation'}")

        return plan

    def _invoke(self, plan: PromptPlan) -> None:
        try:
            status = self.store.describe_status()
        except StateFileError as e:
            # Only for display; the completion check reads the file again
            logger.warning(f"Could not read workflow state for status: {e}")
            status = "Unreadable state"
        logger.info(f"Status: {status}")
        logger.info(f"Prompt: {plan.preview()}")

        invocation = self.history.start_invocation(
            iteration=self.restart_count,
            prompt_kind=plan.kind.value,
            status_before=status,
            marker_reason=plan.marker.reason if plan.marker else None,
        )
        result = self.supervisor.run(plan.text)
        self.history.finish_invocation(invocation, result.to_dict())

        self.restart_count += 1
        self.supervisor.settle()

    def _finish(self, outcome: SessionOutcome, message: str) -> LoopResult:
        logger.info(message)
        return LoopResult(
            exit_code=0,
            invocations=self.restart_count,
            outcome=outcome,
            message=message,
        )
