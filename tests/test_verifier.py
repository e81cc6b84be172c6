"""Tests for the grid verifier."""

import numpy as np
import pytest

from nonogram.lines import derive_hints
from nonogram.puzzle import DEFAULT_PUZZLE
from nonogram.solver.verifier import count_solutions, has_unique_solution, solve

MEADOW_ROWS = [[2], [1, 1, 1], [5], [1, 1], [1, 1]]
MEADOW_COLS = [[2, 1], [1, 2], [3], [2], [2, 1]]


def test_meadow_has_exactly_one_solution():
    assert count_solutions(MEADOW_ROWS, MEADOW_COLS, 5, limit=2) == 1
    assert has_unique_solution(MEADOW_ROWS, MEADOW_COLS, 5)


def test_contradictory_hints_have_no_solution():
    # Row 1 [1, 1, 1] forces cell (1, 4) filled; column 4 [1, 1, 1] forces it empty
    cols = MEADOW_COLS[:4] + [[1, 1, 1]]
    assert count_solutions(MEADOW_ROWS, cols, 5) == 0
    assert not has_unique_solution(MEADOW_ROWS, cols, 5)


def test_solve_returns_the_unique_grid():
    assert solve(DEFAULT_PUZZLE.rows, DEFAULT_PUZZLE.cols, 5) == DEFAULT_PUZZLE.solution


def test_diagonal_is_ambiguous():
    rows = cols = [[1], [1]]
    assert count_solutions(rows, cols, 2, limit=2) == 2
    assert not has_unique_solution(rows, cols, 2)


def test_count_is_capped_at_limit():
    # Permutation matrices: 4! = 24 solutions
    rows = cols = [[1]] * 4
    assert count_solutions(rows, cols, 4, limit=2) == 2
    assert count_solutions(rows, cols, 4, limit=5) == 5
    assert count_solutions(rows, cols, 4, limit=100) == 24
    assert count_solutions(rows, cols, 4, limit=1) == 1


def test_empty_grid_is_unique():
    empty = [[]] * 3
    assert count_solutions(empty, empty, 3) == 1


def test_infeasible_line_short_circuits():
    assert count_solutions([[3], []], [[1], [1]], 2) == 0
    assert solve([[3], []], [[1], [1]], 2) is None


def test_wrong_number_of_hint_lines():
    with pytest.raises(ValueError):
        count_solutions([[1]], [[1], [1]], 2)


def test_random_grids_are_always_solutions_of_their_own_hints():
    rng = np.random.default_rng(99)
    for size in (3, 5, 8):
        for _ in range(10):
            grid = rng.random((size, size)) < 0.5
            rows = [derive_hints(r) for r in grid.tolist()]
            cols = [derive_hints(c) for c in grid.T.tolist()]
            assert count_solutions(rows, cols, size) >= 1

            found = solve(rows, cols, size)
            assert found is not None
            assert [derive_hints(r) for r in found] == rows
            assert [derive_hints(c) for c in zip(*found)] == cols
