"""Task and report records exchanged between the coordinator and its worker processes."""

from dataclasses import dataclass
from typing import Literal

from nonogram.puzzle import Puzzle
from nonogram.solver.config import DensityBand

ReportStatus = Literal["progress", "success", "no_solution", "cancelled", "error"]


@dataclass(frozen=True, kw_only=True)
class WorkerTask:
    """One worker's share of a generation request.

    Pickleable, so that it can be submitted to a worker process.
    """

    request_id: int
    """Unique id of this task within the pool."""

    epoch: int
    """Generation epoch the task belongs to.  Reports carry it back to the coordinator."""

    size: int
    """Board height and width."""

    max_attempts: int
    """Random candidates this worker may draw."""

    require_unique: bool
    """Whether candidates must have exactly one solution."""

    worker_idx: int
    """Index of the worker slot, for progress labelling only."""

    density_band: DensityBand | None = None
    """Fill density band.  If None, the worker uses the configured band for `size`."""


@dataclass(frozen=True, kw_only=True)
class WorkerReport:
    """Message posted by a worker (or by the coordinator on a worker's behalf)."""

    status: ReportStatus
    request_id: int
    epoch: int
    worker_idx: int
    attempt: int = 0
    max_attempts: int = 0
    elapsed: float = 0.0
    puzzle: Puzzle | None = None
    err_msg: str | None = None

    @classmethod
    def for_task(cls, task: WorkerTask, status: ReportStatus, **kwargs) -> "WorkerReport":
        """Build a report tagged with the task's request id, epoch and worker index."""
        return cls(
            status=status,
            request_id=task.request_id,
            epoch=task.epoch,
            worker_idx=task.worker_idx,
            max_attempts=task.max_attempts,
            **kwargs,
        )
