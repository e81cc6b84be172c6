"""Implementation of the parallel generator: task distribution and worker management.

Every worker slot runs the same randomized search with its own random stream.  The first
slot to report a puzzle wins; the rest are cancelled and the whole slot set is rebuilt so
no worker carries state into the next generation.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, InvalidStateError, ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial
from multiprocessing import get_context
from multiprocessing.context import BaseContext
from threading import RLock, Thread, current_thread
from typing import Any, Literal, Protocol, TypeAlias

from nonogram.exceptions import GenerationFailedError, GeneratorBusyError, WorkerUnavailableError
from nonogram.puzzle import Puzzle
from nonogram.solver.config import DensityBand
from nonogram.solver.config import config as generator_config
from nonogram.solver.task_args import WorkerReport, WorkerTask
from nonogram.solver.utils import max_parallelism
from nonogram.solver.worker import init_worker_globals, worker_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """A worker finished a failed attempt."""

    worker_idx: int
    attempt: int
    max_attempts: int
    elapsed: float
    kind: Literal["progress"] = "progress"


@dataclass(frozen=True)
class ResultEvent:
    """A worker found a puzzle; the generation resolved with it."""

    puzzle: Puzzle
    kind: Literal["result"] = "result"


@dataclass(frozen=True)
class ErrorEvent:
    """Every worker of the generation failed."""

    message: str
    kind: Literal["error"] = "error"


WorkerEvent: TypeAlias = ProgressEvent | ResultEvent | ErrorEvent
EventCallback: TypeAlias = Callable[[WorkerEvent], None]


class WorkerSlot(Protocol):
    """An isolated worker execution context owned by a WorkerPool."""

    def submit(self, task: WorkerTask) -> None: ...

    def cancel(self) -> None: ...

    def shutdown(self, wait: bool = False) -> None: ...


SlotFactory: TypeAlias = Callable[[int, Any], WorkerSlot]
"""Called as `slot_factory(slot_idx, reports_queue)`."""


class ProcessWorkerSlot:
    """A single-process executor plus the event used to cancel its running search.

    `task_fn` runs in the worker process, so it must be importable by name.
    """

    def __init__(
        self,
        slot_idx: int,
        reports: Any,
        *,
        mp_context: BaseContext,
        task_fn: Callable[[WorkerTask], Any] = worker_task,
    ) -> None:
        self.slot_idx = slot_idx
        self._reports = reports
        self._task_fn = task_fn
        self._cancel_event = mp_context.Event()
        self._executor = ProcessPoolExecutor(
            max_workers=1,
            mp_context=mp_context,
            initializer=init_worker_globals,
            initargs=(reports, self._cancel_event),
        )

    def submit(self, task: WorkerTask) -> None:
        future = self._executor.submit(self._task_fn, task)
        future.add_done_callback(partial(self._on_done, task))

    def _on_done(self, task: WorkerTask, future: Future) -> None:
        # worker_task reports its own outcome; only a dead process leaves it unreported
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._reports.put(
                WorkerReport.for_task(
                    task,
                    "error",
                    err_msg=f"Worker {task.worker_idx} crashed: {exc!r}",
                )
            )

    def cancel(self) -> None:
        self._cancel_event.set()

    def shutdown(self, wait: bool = False) -> None:
        self._cancel_event.set()
        self._executor.shutdown(wait=wait, cancel_futures=True)


class WorkerPool:
    """Races a randomized puzzle search across a set of isolated worker processes.

    State machine: idle -> generating -> (resolved | rejected | cancelled) -> idle.

    Reports from workers arrive on one queue and are handled by a single listener thread.
    The epoch, the pending future and the outstanding-task bookkeeping are only touched
    under the pool lock.
    """

    def __init__(
        self,
        worker_count: int,
        on_event: EventCallback | None = None,
        *,
        on_idle: Callable[[], None] | None = None,
        slot_factory: SlotFactory | None = None,
        mp_context: BaseContext | None = None,
        parallelism: int | None = None,
    ) -> None:
        """Create the pool and its worker slots.

        Args:
            worker_count (int): Requested number of worker slots.
            on_event (EventCallback | None): Receives progress, result and error events.
            on_idle (Callable[[], None] | None): Called once a generation ends, under the pool
                lock and before its future is settled, so waiters never observe a busy pool.
            slot_factory (SlotFactory | None): Builds worker slots.  Default: one
                ProcessWorkerSlot per slot.
            mp_context (BaseContext | None): multiprocessing context.  Default: the configured
                start method.
            parallelism (int | None): Upper bound on the slot count.  Default: the CPU count.

        Raises:
            WorkerUnavailableError: The platform has no working multiprocessing support.
        """
        self._lock = RLock()
        self._on_event = on_event
        self._on_idle = on_idle
        self._parallelism = parallelism or max_parallelism()

        try:
            self._ctx = mp_context or get_context(generator_config.mp_start_method)
            self._reports = self._ctx.Queue()
        except (ImportError, OSError, ValueError) as e:
            raise WorkerUnavailableError(f"Parallel workers are not available: {e}") from e
        self._slot_factory = slot_factory or partial(ProcessWorkerSlot, mp_context=self._ctx)

        self._slots: list[WorkerSlot] = []
        self._desired_count = 0
        self._epoch = 0
        self._request_id = 0
        self._pending: Future | None = None
        self._outstanding: dict[int, WorkerSlot] = {}
        """Request id -> slot, for tasks of the live epoch that have not reported an outcome."""
        self._failures: list[str] = []
        self._disposed = False

        self._listener = Thread(target=self._listen, name="nonogram-pool-listener", daemon=True)
        self._listener.start()
        self.set_size(worker_count)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def size(self) -> int:
        """Number of worker slots."""
        return len(self._slots)

    @property
    def epoch(self) -> int:
        """Sequence number of the most recent generation."""
        return self._epoch

    @property
    def generating(self) -> bool:
        return self._pending is not None

    def set_size(self, count: int) -> None:
        """Tear down and rebuild the worker slots at `count` (clamped to the parallelism).

        Raises:
            GeneratorBusyError: A generation is in flight.
        """
        with self._lock:
            if self._disposed:
                raise WorkerUnavailableError("Worker pool has been disposed.")
            if self._pending is not None:
                raise GeneratorBusyError("Cannot resize the worker pool while generating.")
            self._desired_count = max(1, min(count, self._parallelism))
            self._rebuild_slots()

    def generate(
        self,
        size: int,
        max_attempts_per_worker: int,
        require_unique: bool,
        *,
        density_band: DensityBand | None = None,
    ) -> Future:
        """Dispatch a search to every worker slot.

        Args:
            size (int): Board height and width.
            max_attempts_per_worker (int): Attempt budget for each worker.
            require_unique (bool): Only accept puzzles with exactly one solution.
            density_band (DensityBand | None): Fill density band override.

        Returns:
            A Future resolving to the first Puzzle found.  It fails with GenerationFailedError
            when every worker fails, and is cancelled by `cancel()`.  Cancelling it directly
            cancels the generation.

        Raises:
            GeneratorBusyError: A generation is already in flight.
            WorkerUnavailableError: The pool has no worker slots.
        """
        with self._lock:
            if self._pending is not None:
                raise GeneratorBusyError("Puzzle generation already in progress.")
            if self._disposed or not self._slots:
                raise WorkerUnavailableError("Puzzle generator worker not available.")

            self._epoch += 1
            future: Future = Future()
            self._pending = future
            self._failures = []
            tasks: list[tuple[WorkerSlot, WorkerTask]] = []
            for worker_idx, slot in enumerate(self._slots):
                self._request_id += 1
                task = WorkerTask(
                    request_id=self._request_id,
                    epoch=self._epoch,
                    size=size,
                    max_attempts=max_attempts_per_worker,
                    require_unique=require_unique,
                    worker_idx=worker_idx,
                    density_band=density_band,
                )
                self._outstanding[task.request_id] = slot
                tasks.append((slot, task))

            logger.info(
                "Generation %d: dispatching %dx%d search to %d workers (%d attempts each).",
                self._epoch,
                size,
                size,
                len(tasks),
                max_attempts_per_worker,
            )
            future.add_done_callback(self._on_future_done)
            for slot, task in tasks:
                try:
                    slot.submit(task)
                except Exception as e:
                    # Counts as a crashed worker; the pending future may reject right here
                    self._handle_report(
                        WorkerReport.for_task(
                            task, "error", err_msg=f"Worker {task.worker_idx} unavailable: {e!r}"
                        )
                    )
            return future

    def cancel(self) -> None:
        """Cancel the in-flight generation, if any.  The pending future is cancelled."""
        with self._lock:
            pending = self._pending
            if pending is None:
                return
            logger.info("Generation %d cancelled.", self._epoch)
            self._cancel_outstanding()
            self._reset_generation_state()
            self._rebuild_slots()
            pending.cancel()

    def dispose(self) -> None:
        """Tear down all workers and the listener thread.  Safe to call more than once."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            pending = self._pending
            self._cancel_outstanding()
            self._reset_generation_state()
            self._shutdown_slots()
            if pending is not None:
                pending.cancel()

        self._reports.put(None)  # Stop the listener
        if current_thread() is not self._listener:
            self._listener.join()
            self._reports.close()
            self._reports.join_thread()

    def _listen(self) -> None:
        while True:
            report = self._reports.get()
            if report is None:
                break
            self._handle_report(report)

    def _handle_report(self, report: WorkerReport) -> None:
        """Apply one worker report.  Reports from other epochs, or while idle, are discarded."""
        with self._lock:
            pending = self._pending
            if pending is None or report.epoch != self._epoch:
                logger.debug(
                    "Discarding %s report from worker %d (epoch %d, current %d).",
                    report.status,
                    report.worker_idx,
                    report.epoch,
                    self._epoch,
                )
                return

            if report.status == "progress":
                self._emit(
                    ProgressEvent(
                        worker_idx=report.worker_idx,
                        attempt=report.attempt,
                        max_attempts=report.max_attempts,
                        elapsed=report.elapsed,
                    )
                )
                return

            if report.status == "success" and report.puzzle is not None:
                logger.info(
                    "Generation %d: worker %d found a puzzle; terminating remaining workers.",
                    self._epoch,
                    report.worker_idx,
                )
                self._outstanding.pop(report.request_id, None)
                self._emit(ResultEvent(puzzle=report.puzzle))
                self._cancel_outstanding()
                self._reset_generation_state()
                self._rebuild_slots()
                _settle(pending, result=report.puzzle)
                return

            # Failure of one contributor: exhausted, crashed or cancelled
            if self._outstanding.pop(report.request_id, None) is None:
                return  # Already accounted for
            reason = (report.err_msg or f"Worker {report.worker_idx}: {report.status}").splitlines()[0]
            self._failures.append(reason)
            logger.info("Generation %d: worker %d gave up (%s).", self._epoch, report.worker_idx, reason)
            if self._outstanding:
                return

            message = _aggregate_failures(self._failures)
            logger.warning("Generation %d failed: %s", self._epoch, message)
            self._emit(ErrorEvent(message=message))
            self._reset_generation_state()
            self._rebuild_slots()
            _settle(pending, exc=GenerationFailedError(message))

    def _on_future_done(self, future: Future) -> None:
        if not future.cancelled():
            return
        with self._lock:
            if self._pending is future:
                self.cancel()

    def _emit(self, event: WorkerEvent) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception:
            logger.exception("Event callback failed for %s event.", event.kind)

    def _cancel_outstanding(self) -> None:
        for slot in self._outstanding.values():
            slot.cancel()

    def _reset_generation_state(self) -> None:
        was_generating = self._pending is not None
        self._pending = None
        self._outstanding = {}
        self._failures = []
        if was_generating and self._on_idle is not None:
            try:
                self._on_idle()
            except Exception:
                logger.exception("Idle callback failed.")

    def _shutdown_slots(self) -> None:
        slots, self._slots = self._slots, []
        for slot in slots:
            slot.shutdown(wait=False)

    def _rebuild_slots(self) -> None:
        """Replace every slot with a fresh one; slots are never reset in place."""
        self._shutdown_slots()
        if self._disposed:
            return
        self._slots = [self._slot_factory(i, self._reports) for i in range(self._desired_count)]
        logger.debug("Worker pool rebuilt with %d slots.", len(self._slots))


def _settle(future: Future, *, result: Puzzle | None = None, exc: Exception | None = None) -> None:
    """Resolve or reject `future`, unless the caller cancelled it while a report was in flight."""
    try:
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(result)
    except InvalidStateError:
        logger.debug("Pending generation was already cancelled; dropping its outcome.")


def _aggregate_failures(failures: list[str]) -> str:
    """Combine per-worker failure reasons into one message, dropping duplicates."""
    reasons = list(dict.fromkeys(failures))
    if not reasons:
        return "Unable to build puzzle."
    if len(reasons) == 1:
        return f"{reasons[0]} (all {len(failures)} workers failed)"
    return f"All {len(failures)} workers failed: " + "; ".join(reasons)
