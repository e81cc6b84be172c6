"""Puzzle generator facade: the interface the rest of an application uses.

Wraps a WorkerPool, tracks generation progress for display, and falls back to a single
synchronous search when worker processes are not available.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from threading import Event, RLock

from nonogram.exceptions import GeneratorBusyError, SearchCancelledError, WorkerUnavailableError
from nonogram.puzzle import Puzzle
from nonogram.solver.config import GeneratorConfig
from nonogram.solver.config import config as generator_config
from nonogram.solver.parallel import (
    ErrorEvent,
    EventCallback,
    ProgressEvent,
    WorkerEvent,
    WorkerPool,
)
from nonogram.solver.search import CancelToken, search
from nonogram.solver.utils import default_worker_count, max_parallelism

logger = logging.getLogger(__name__)


@dataclass
class WorkerStatus:
    """Latest progress of one worker, for display."""

    index: int
    attempts: int = 0
    elapsed: float = 0.0
    message: str = ""


@dataclass
class GenerationState:
    """Snapshot of the generator's progress, for display."""

    generating: bool = False
    generator_error: str = ""
    worker_pool_size: int = 0
    """Number of live worker slots.  Zero means generation runs synchronously."""
    max_worker_count: int = 1
    worker_count: int = 1
    """Requested worker count; applied to the pool once it is idle."""
    progress_attempt: int = 0
    progress_max_attempts: int = 0
    progress_message: str = ""
    total_attempts: int = 0
    worker_statuses: list[WorkerStatus] = field(default_factory=list)


class PuzzleGenerator:
    """Generates puzzles in parallel worker processes, one generation at a time."""

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        self.config = config or generator_config
        self._on_event = on_event
        self._lock = RLock()
        self._pool: WorkerPool | None = None
        self._sync_cancel: CancelToken | None = None

        worker_count = default_worker_count(self.config.max_workers)
        self._state = GenerationState(max_worker_count=max_parallelism(), worker_count=worker_count)
        if self.config.use_processes:
            self._rebuild_pool(worker_count)
        else:
            logger.info("Worker processes disabled; puzzles will be generated synchronously.")

    def __enter__(self) -> "PuzzleGenerator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def state(self) -> GenerationState:
        """Return a copy of the current generation state."""
        with self._lock:
            return replace(
                self._state,
                worker_statuses=[replace(s) for s in self._state.worker_statuses],
            )

    def generate_puzzle(
        self,
        size: int,
        *,
        ensure_uniqueness: bool | None = None,
        worker_count: int | None = None,
    ) -> Future:
        """Start generating a `size` x `size` puzzle.

        Args:
            size (int): Board height and width.
            ensure_uniqueness (bool | None): Require exactly one solution.  If None, uses the
                configured default.
            worker_count (int | None): Number of workers, clamped to the CPU count.  If None,
                keeps the current count.

        Returns:
            A Future resolving to the Puzzle.  See `WorkerPool.generate` for its failure modes.

        Raises:
            GeneratorBusyError: A generation is already in flight.
        """
        if size < 1:
            raise ValueError(f"Puzzle size must be positive, got {size}.")
        if worker_count is not None:
            self.set_worker_count(worker_count)
        require_unique = (
            self.config.ensure_uniqueness if ensure_uniqueness is None else ensure_uniqueness
        )

        with self._lock:
            if self._state.generating:
                raise GeneratorBusyError("Puzzle generation already in progress.")
            pool = self._pool
            pool_size = pool.size if pool is not None else 0
            wanted_count = self._state.worker_count
            max_attempts = (
                self.config.max_attempts_per_worker if pool_size else self.config.fallback_max_attempts
            )
            self._state.generating = True
            self._state.generator_error = ""
            self._state.total_attempts = 0
            self._state.progress_attempt = 0
            self._state.progress_max_attempts = max(1, pool_size) * max_attempts
            self._state.progress_message = "Starting parallel puzzle search…"
            self._state.worker_statuses = [
                WorkerStatus(index=i, message=f"Worker {i + 1}: starting…")
                for i in range(max(1, pool_size))
            ]

        if pool is None or pool_size == 0:
            return self._generate_sync(size, max_attempts, require_unique)

        try:
            if pool_size != wanted_count:
                # Apply a worker count requested while the last generation was running
                pool.set_size(wanted_count)
                with self._lock:
                    self._state.worker_pool_size = pool.size
                    self._state.progress_max_attempts = pool.size * max_attempts
                    self._state.worker_statuses = [
                        WorkerStatus(index=i, message=f"Worker {i + 1}: starting…")
                        for i in range(pool.size)
                    ]
            return pool.generate(size, max_attempts, require_unique)
        except Exception:
            with self._lock:
                self._state.generating = False
            raise

    def cancel_generation(self) -> None:
        """Cancel the in-flight generation.  No-op when idle."""
        with self._lock:
            if not self._state.generating:
                return
            pool = self._pool
            sync_cancel = self._sync_cancel
        if sync_cancel is not None:
            sync_cancel.cancel()
        elif pool is not None:
            pool.cancel()

    def set_worker_count(self, count: int) -> None:
        """Set the requested worker count.

        The pool is rebuilt now if idle, otherwise when the next generation starts.
        """
        with self._lock:
            safe_count = max(1, min(count, self._state.max_worker_count))
            if safe_count == self._state.worker_count and self._state.worker_pool_size in (0, safe_count):
                return
            self._state.worker_count = safe_count
            if self._state.generating:
                return
        self._rebuild_pool(safe_count)

    def dispose(self) -> None:
        """Tear down the worker pool."""
        with self._lock:
            pool, self._pool = self._pool, None
            sync_cancel = self._sync_cancel
            self._state.worker_pool_size = 0
        if sync_cancel is not None:
            sync_cancel.cancel()
        if pool is not None:
            pool.dispose()

    def _rebuild_pool(self, count: int) -> None:
        if not self.config.use_processes:
            return
        if self._pool is None:
            try:
                self._pool = WorkerPool(count, self._handle_event, on_idle=self._on_pool_idle)
            except WorkerUnavailableError as e:
                logger.warning("%s Falling back to synchronous generation.", e)
                self._pool = None
        else:
            self._pool.set_size(count)
        with self._lock:
            self._state.worker_pool_size = self._pool.size if self._pool is not None else 0

    def _generate_sync(self, size: int, max_attempts: int, require_unique: bool) -> Future:
        """Run one search on the calling thread and return its already-settled future."""
        future: Future = Future()
        token = CancelToken(Event())
        with self._lock:
            self._sync_cancel = token

        def on_progress(attempt: int, max_attempts: int, elapsed: float) -> None:
            self._handle_event(
                ProgressEvent(worker_idx=0, attempt=attempt, max_attempts=max_attempts, elapsed=elapsed)
            )

        try:
            puzzle = search(
                size,
                max_attempts,
                require_unique,
                cancel_token=token,
                on_progress=on_progress,
            )
            future.set_result(puzzle)
        except SearchCancelledError:
            logger.info("Synchronous generation cancelled.")
            future.cancel()
        except Exception as e:
            self._handle_event(ErrorEvent(message=str(e)))
            future.set_exception(e)
        finally:
            with self._lock:
                self._sync_cancel = None
        self._on_generation_done(future)
        return future

    def _on_generation_done(self, future: Future) -> None:
        with self._lock:
            self._state.generating = False
            self._state.progress_message = "Finished puzzle search."
            if not future.cancelled() and future.exception() is not None:
                self._state.generator_error = str(future.exception())

    def _on_pool_idle(self) -> None:
        # Runs before the pool settles its future; errors arrive earlier as ErrorEvents
        with self._lock:
            self._state.generating = False
            self._state.progress_message = "Finished parallel puzzle search."

    def _handle_event(self, event: WorkerEvent) -> None:
        with self._lock:
            if isinstance(event, ProgressEvent):
                state = self._state
                state.total_attempts += 1
                n_workers = max(1, state.worker_pool_size)
                state.progress_attempt = state.total_attempts
                state.progress_max_attempts = event.max_attempts * n_workers
                state.progress_message = (
                    f"Attempting to find a puzzle: {max(0, state.total_attempts - 1)} failed checks "
                    f"across {n_workers} workers…"
                )
                for status in state.worker_statuses:
                    if status.index == event.worker_idx:
                        status.attempts = event.attempt
                        status.elapsed = event.elapsed
                        status.message = (
                            f"Worker {event.worker_idx + 1}: attempt {event.attempt}/{event.max_attempts}"
                        )
            elif isinstance(event, ErrorEvent):
                self._state.generator_error = event.message
        if self._on_event is not None:
            self._on_event(event)


def generate_puzzle(
    size: int,
    *,
    ensure_uniqueness: bool | None = None,
    worker_count: int | None = None,
    timeout: float | None = None,
    config: GeneratorConfig | None = None,
) -> Puzzle:
    """Generate one puzzle, blocking until it is ready.

    Creates a PuzzleGenerator for the call and disposes it afterwards.
    """
    with PuzzleGenerator(config) as generator:
        future = generator.generate_puzzle(
            size, ensure_uniqueness=ensure_uniqueness, worker_count=worker_count
        )
        return future.result(timeout=timeout)
