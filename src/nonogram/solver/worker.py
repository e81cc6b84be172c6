"""Worker-process side of the parallel generator."""

import traceback
from dataclasses import dataclass
from typing import Any

from nonogram.exceptions import SearchCancelledError, SearchExhaustedError
from nonogram.solver.search import CancelToken, search
from nonogram.solver.task_args import ReportStatus, WorkerReport, WorkerTask


@dataclass(kw_only=True)
class WorkerState:
    """Global state maintained by each worker process."""

    reports: Any
    """Queue shared with the coordinator; every report is put here."""

    cancel_token: CancelToken
    """Set by the coordinator to stop the current search."""


worker_state: WorkerState | None = None
"""Global state for each worker process."""


def init_worker_globals(reports: Any, cancel_event: Any) -> None:
    """Initialize global variables for a worker process.

    Args:
        reports: Queue (from the coordinator's multiprocessing context) for worker reports.
        cancel_event: Event set by the coordinator to cancel the running search.
    """
    global worker_state  # noqa: PLW0603
    worker_state = WorkerState(reports=reports, cancel_token=CancelToken(cancel_event))


def worker_task(task: WorkerTask) -> ReportStatus:
    """Run one search task and post its progress and outcome to the coordinator.

    Every outcome, including unexpected exceptions, is reported through the queue, so the
    executor future only fails if the process itself dies.

    Args:
        task (WorkerTask): The task to run.

    Returns:
        The status of the final report.
    """
    # Ensure worker_state is initialized
    if not worker_state:
        raise RuntimeError("Worker state not initialized. Call init_worker_globals first.")

    state = worker_state

    def post(status: ReportStatus, **kwargs) -> ReportStatus:
        state.reports.put(WorkerReport.for_task(task, status, **kwargs))
        return status

    def on_progress(attempt: int, max_attempts: int, elapsed: float) -> None:
        post("progress", attempt=attempt, elapsed=elapsed)

    try:
        puzzle = search(
            task.size,
            task.max_attempts,
            task.require_unique,
            density_band=task.density_band,
            cancel_token=state.cancel_token,
            on_progress=on_progress,
        )
        return post("success", puzzle=puzzle)
    except SearchCancelledError:
        return post("cancelled")
    except SearchExhaustedError as e:
        return post("no_solution", attempt=e.attempts, err_msg=str(e))
    except Exception as e:
        return post(
            "error",
            err_msg=f"Worker {task.worker_idx} encountered an error: {e}\n{traceback.format_exc()}",
        )
