"""Candidate generator: the randomized search loop run inside a single worker."""

import logging
from collections.abc import Callable
from time import perf_counter
from typing import Protocol

import numpy as np

from nonogram.exceptions import SearchCancelledError, SearchExhaustedError
from nonogram.puzzle import Puzzle, build_puzzle_from_grid
from nonogram.solver.config import DensityBand
from nonogram.solver.config import config as generator_config
from nonogram.solver.verifier import has_unique_solution

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]
"""Called as `on_progress(attempt, max_attempts, elapsed_seconds)` after each failed attempt."""


class _Flag(Protocol):
    def is_set(self) -> bool: ...

    def set(self) -> None: ...


class CancelToken:
    """Cooperative cancellation token, polled once per search attempt.

    Wraps any event-like object (`threading.Event`, `multiprocessing.Event`, ...), so the same
    search loop can be cancelled from another thread or from the parent process.
    """

    def __init__(self, flag: _Flag) -> None:
        self._flag = flag

    @property
    def cancelled(self) -> bool:
        return self._flag.is_set()

    def cancel(self) -> None:
        self._flag.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCancelledError("Search cancelled.")


def density_band_for(size: int) -> DensityBand:
    """Return the configured fill density band for a board size."""
    return generator_config.density_bands.get(size, generator_config.default_density_band)


def random_grid(
    size: int,
    density_band: DensityBand,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Draw a random boolean grid with a fill density picked uniformly from `density_band`.

    An all-empty draw gets exactly one random cell filled, so every grid has some clue.
    """
    rng = rng if rng is not None else np.random.default_rng()
    min_density, max_density = density_band
    density = rng.uniform(min_density, max_density)
    grid = rng.random((size, size)) < density
    if not grid.any():
        row, col = rng.integers(0, size, size=2)
        grid[row, col] = True
    return grid


def search(
    size: int,
    max_attempts: int,
    require_unique: bool = True,
    *,
    density_band: DensityBand | None = None,
    rng: np.random.Generator | None = None,
    cancel_token: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
    name: str | None = None,
) -> Puzzle:
    """Search for a puzzle by drawing random grids until one is accepted.

    Args:
        size (int): Board height and width.
        max_attempts (int): Number of random candidates to draw before giving up.
        require_unique (bool): Only accept candidates whose hints have exactly one solution.
            If False, the first candidate drawn is accepted.
        density_band (DensityBand | None): Fill density band.  If None, uses the configured
            band for `size`.
        rng (np.random.Generator | None): Random source.  If None, a fresh OS-seeded
            generator is used, so parallel workers draw independent streams.
        cancel_token (CancelToken | None): Checked before every attempt.
        on_progress (ProgressCallback | None): Called after every failed attempt.
        name (str | None): Puzzle name.  Default: "Random practice {size}x{size}".

    Returns:
        The first accepted Puzzle.

    Raises:
        SearchExhaustedError: No candidate was accepted within `max_attempts`.
        SearchCancelledError: The cancel token was set.
    """
    if size < 1:
        raise ValueError(f"Puzzle size must be positive, got {size}.")
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}.")

    band = density_band if density_band is not None else density_band_for(size)
    rng = rng if rng is not None else np.random.default_rng()
    name = name or f"Random practice {size}x{size}"
    start_time = perf_counter()

    for attempt in range(1, max_attempts + 1):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        grid = random_grid(size, band, rng)
        candidate = build_puzzle_from_grid(grid, name)
        if not require_unique or has_unique_solution(candidate.rows, candidate.cols, size):
            logger.debug("Accepted %dx%d candidate at attempt %d.", size, size, attempt)
            return candidate

        if on_progress is not None:
            on_progress(attempt, max_attempts, perf_counter() - start_time)

    raise SearchExhaustedError(size, max_attempts)
