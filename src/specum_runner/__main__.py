#!/usr/bin/env python3
"""CLI entry point for the ralph-specum runner.

Runs Claude Code in a loop, restarting it with fresh context whenever the
workflow's force-restart mechanism makes it quit.

Usage:
    ralph-runner "Add user auth with JWT" --mode auto --force-restart
    python -m specum_runner "Add user auth with JWT" --mode auto
"""

import argparse
import logging
import signal
import sys
from typing import NoReturn

from dotenv import load_dotenv

from .config import RunnerSettings
from .history import SessionHistory
from .loop import LoopController, RestartLimitExceeded, log_header
from .prompts import ensure_required_options
from .runner import AgentNotFoundError
from .state import StateFileError

logger = logging.getLogger("specum_runner")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

ENVIRONMENT_HELP = """\
This script runs Claude Code in a loop, automatically restarting
when the --force-restart mechanism triggers a quit.

Environment variables:
  RALPH_SPEC_DIR         Spec directory (default: ./spec)
  RALPH_MAX_RESTARTS     Max restart iterations (default: 50)
  RALPH_RESTART_DELAY    Seconds between restarts (default: 2)
  RALPH_AGENT_COMMAND    Agent executable (default: claude)
  RALPH_AGENT_ARGS       Extra arguments for every agent run (default: none)
  RALPH_STATE_DIR        Runner history directory (default: ~/.ralph-runner)
  RALPH_HISTORY_ENABLED  Write session history (default: true)
  RALPH_LOG_LEVEL        Logging level (default: INFO)
"""


class RunnerArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n\n{ENVIRONMENT_HELP}")


def build_parser() -> argparse.ArgumentParser:
    parser = RunnerArgumentParser(
        prog="ralph-runner",
        usage='%(prog)s "goal description" [--mode auto] [--force-restart] [other options]',
        description="Ralph Specum Runner",
        epilog=ENVIRONMENT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("goal", nargs="?", help="Goal description for the workflow")
    parser.add_argument(
        "options",
        nargs=argparse.REMAINDER,
        help="Options passed through to the workflow command",
    )
    return parser


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the runner."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def _handle_termination(signum, frame) -> None:
    raise KeyboardInterrupt


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.goal or not args.goal.strip():
        parser.print_help()
        return EXIT_FAILURE

    try:
        settings = RunnerSettings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(settings.log_level)
    signal.signal(signal.SIGTERM, _handle_termination)

    options = ensure_required_options(args.options)

    log_header("RALPH SPECUM RUNNER")
    logger.info(f"Goal: {args.goal}")
    logger.info(f"Options: {' '.join(options)}")
    logger.info(f"Max restarts: {settings.max_restarts}")

    try:
        history = SessionHistory(
            args.goal,
            options,
            history_dir=settings.history_dir if settings.history_enabled else None,
        )
    except OSError as e:
        logger.error(f"Cannot write session history: {e}")
        return EXIT_FAILURE
    controller = LoopController(settings, args.goal, options, history=history)

    try:
        result = controller.run()
    except KeyboardInterrupt:
        logger.warning("Interrupted. Cleaning up...")
        return EXIT_INTERRUPTED
    except RestartLimitExceeded as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except AgentNotFoundError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except StateFileError as e:
        logger.error(f"Corrupt workflow state: {e}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"Runner I/O error: {e}")
        return EXIT_FAILURE

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
