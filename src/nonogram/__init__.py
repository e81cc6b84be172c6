"""Nonogram Puzzle Generator.

Builds random nonogram (picross) puzzles whose row and column hints have exactly one
solution.  Several worker processes race independent random searches; the first puzzle
found wins and the other workers are cancelled.
"""

import argparse
import json
import logging
import sys
from concurrent.futures import CancelledError
from pathlib import Path

import numpy as np

from .exceptions import NonogramError
from .logger import configure_logging
from .puzzle import DEFAULT_PUZZLE, Puzzle
from .solver.config import config as generator_config
from .solver.parallel import ProgressEvent, ResultEvent, WorkerEvent
from .solver.search import search
from .solver.solver import PuzzleGenerator, generate_puzzle
from .solver.utils import time_str
from .solver.verifier import has_unique_solution, solve

__all__ = [
    "DEFAULT_PUZZLE",
    "Puzzle",
    "PuzzleGenerator",
    "generate_puzzle",
    "verify",
    "main",
]

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nonogram",
        description="Generate a random nonogram puzzle with a unique solution",
    )
    parser.add_argument("size", type=int, help="Board height and width in cells")
    parser.add_argument("--workers", type=int, default=None, help="Number of worker processes")
    parser.add_argument(
        "--no-unique",
        action="store_true",
        help="Accept the first random candidate without checking uniqueness",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        default=None,
        help="Attempt budget (per worker, or for the seeded search)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Run a single reproducible search in this process with the given seed",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Re-solve the generated puzzle from its hints and report whether it is unique",
    )
    parser.add_argument("--json", action="store_true", help="Print the puzzle as JSON")
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--log-level",
        type=str,
        default=generator_config.log_level,
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def _log_event(event: WorkerEvent) -> None:
    if isinstance(event, ProgressEvent):
        logger.debug(
            "Worker %d: attempt %d/%d (%s)",
            event.worker_idx + 1,
            event.attempt,
            event.max_attempts,
            time_str(event.elapsed),
        )
    elif isinstance(event, ResultEvent):
        logger.info("Found %s.", event.puzzle.name)


def run(args: argparse.Namespace) -> Puzzle:
    """Generate one puzzle as described by the parsed command-line arguments."""
    require_unique = not args.no_unique

    if args.seed is not None:
        return search(
            args.size,
            args.attempts or generator_config.fallback_max_attempts,
            require_unique,
            rng=np.random.default_rng(args.seed),
        )

    config = generator_config
    if args.attempts is not None:
        config = config.model_copy(update={"max_attempts_per_worker": args.attempts})

    with PuzzleGenerator(config, on_event=_log_event) as generator:
        future = generator.generate_puzzle(
            args.size,
            ensure_uniqueness=require_unique,
            worker_count=args.workers,
        )
        try:
            return future.result()
        except KeyboardInterrupt:
            generator.cancel_generation()
            raise


def verify(puzzle: Puzzle, require_unique: bool = True) -> bool:
    """Solve `puzzle` from its hints alone and log the outcome.

    Returns:
        False if the hints have no solution, or if `require_unique` and they have several.
    """
    grid = solve(puzzle.rows, puzzle.cols, puzzle.size)
    if grid is None:
        logger.error("Verification failed: the hints of %s have no solution.", puzzle.name)
        return False
    unique = has_unique_solution(puzzle.rows, puzzle.cols, puzzle.size)
    if unique:
        logger.info("Verified %s: the hints have exactly one solution.", puzzle.name)
        return True
    if require_unique:
        logger.error("Verification failed: the hints of %s have more than one solution.", puzzle.name)
        return False
    logger.info("Verified %s: solvable, with more than one solution.", puzzle.name)
    return True


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the nonogram generator."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.size < 1:
        parser.error("size must be positive")
    configure_logging(args.log_level)

    try:
        puzzle = run(args)
    except KeyboardInterrupt:
        logger.info("Generation interrupted by user.")
        sys.exit(1)
    except CancelledError:
        logger.info("Generation cancelled.")
        sys.exit(1)
    except NonogramError as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.verify and not verify(puzzle, require_unique=not args.no_unique):
        sys.exit(1)

    if args.json or args.output:
        output_text = json.dumps(puzzle.to_dict(), indent=2)
        if args.output:
            args.output.write_text(output_text, encoding="utf-8")
        else:
            print(output_text)
    else:
        print(puzzle)
