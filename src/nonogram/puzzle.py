"""Puzzle data model."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from nonogram.exceptions import InvalidPuzzleError
from nonogram.lines import Hints, derive_hints

Grid = tuple[tuple[bool, ...], ...]


@dataclass(frozen=True)
class Puzzle:
    """A nonogram puzzle: row and column hints plus the solution grid they describe.

    Instances are immutable and pickleable, so they can be returned from worker processes.
    """

    name: str
    """Display name, e.g. "Random practice 10x10"."""

    size: int
    """Grid height and width."""

    rows: tuple[Hints, ...]
    """Hint sequence for each row, top to bottom."""

    cols: tuple[Hints, ...]
    """Hint sequence for each column, left to right."""

    solution: Grid
    """The solution grid, in row-major order.  True means filled."""

    def __post_init__(self) -> None:
        """Validate the grid shape and that the hints describe the solution."""
        if self.size <= 0:
            raise InvalidPuzzleError(f"Puzzle size must be positive, got {self.size}.")
        if len(self.solution) != self.size or any(len(r) != self.size for r in self.solution):
            raise InvalidPuzzleError(f"Solution grid is not {self.size}x{self.size}.")
        if len(self.rows) != self.size or len(self.cols) != self.size:
            raise InvalidPuzzleError(f"Expected {self.size} row and column hint sequences.")

        for r, line in enumerate(self.solution):
            if derive_hints(line) != self.rows[r]:
                raise InvalidPuzzleError(f"Row {r} hints {self.rows[r]} do not match the solution.")
        for c in range(self.size):
            line = (row[c] for row in self.solution)
            if derive_hints(line) != self.cols[c]:
                raise InvalidPuzzleError(f"Column {c} hints {self.cols[c]} do not match the solution.")

    def __str__(self) -> str:
        """Return a text rendering: column hints on top, row hints on the left."""
        row_labels = [" ".join(map(str, h)) or "0" for h in self.rows]
        col_labels = [[str(n) for n in h] or ["0"] for h in self.cols]
        label_width = max(len(label) for label in row_labels)
        cell_width = max(2, max(len(n) for label in col_labels for n in label) + 1)
        depth = max(len(label) for label in col_labels)

        lines = [self.name]
        for level in range(depth):
            header = []
            for label in col_labels:
                offset = depth - len(label)
                header.append(label[level - offset] if level >= offset else "")
            lines.append(" " * (label_width + 2) + "".join(f"{h:>{cell_width}}" for h in header))
        for label, row in zip(row_labels, self.solution):
            cells = "".join(f"{'#' if cell else '.':>{cell_width}}" for cell in row)
            lines.append(f"{label:>{label_width}} |{cells}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dictionary representation of the puzzle."""
        return {
            "name": self.name,
            "size": self.size,
            "rows": [list(h) for h in self.rows],
            "cols": [list(h) for h in self.cols],
            "solution": [[int(cell) for cell in row] for row in self.solution],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Puzzle":
        """Create a Puzzle from its dictionary representation."""
        try:
            return cls(
                name=data["name"],
                size=int(data["size"]),
                rows=tuple(tuple(int(n) for n in h) for h in data["rows"]),
                cols=tuple(tuple(int(n) for n in h) for h in data["cols"]),
                solution=tuple(tuple(bool(cell) for cell in row) for row in data["solution"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidPuzzleError(f"Malformed puzzle data: {e}") from e


def build_puzzle_from_grid(grid: Sequence[Sequence[bool]] | np.ndarray, name: str) -> Puzzle:
    """Build a puzzle whose hints are derived from the rows and columns of `grid`."""
    cells = np.asarray(grid, dtype=bool)
    if cells.ndim != 2 or cells.shape[0] != cells.shape[1]:
        raise InvalidPuzzleError(f"Expected a square grid, got shape {cells.shape}.")

    solution: Grid = tuple(tuple(bool(cell) for cell in row) for row in cells)
    return Puzzle(
        name=name,
        size=cells.shape[0],
        rows=tuple(derive_hints(row) for row in solution),
        cols=tuple(derive_hints(col) for col in cells.T.tolist()),
        solution=solution,
    )


DEFAULT_PUZZLE = Puzzle(
    name="Cozy Meadow 5x5",
    size=5,
    rows=((2,), (1, 1, 1), (5,), (1, 1), (1, 1)),
    cols=((2, 1), (1, 2), (3,), (2,), (2, 1)),
    solution=(
        (False, True, True, False, False),
        (True, False, True, False, True),
        (True, True, True, True, True),
        (False, True, False, True, False),
        (True, False, False, False, True),
    ),
)
"""Built-in puzzle shown before anything has been generated."""
