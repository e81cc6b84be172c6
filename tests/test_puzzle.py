"""Tests for the puzzle data model."""

import dataclasses

import numpy as np
import pytest

from nonogram.exceptions import InvalidPuzzleError
from nonogram.lines import derive_hints
from nonogram.puzzle import DEFAULT_PUZZLE, Puzzle, build_puzzle_from_grid


def test_default_puzzle_is_consistent():
    assert DEFAULT_PUZZLE.size == 5
    assert DEFAULT_PUZZLE.cols[4] == (2, 1)


def test_default_puzzle_hints_match_its_solution():
    import nonogram

    puzzle = nonogram.DEFAULT_PUZZLE
    columns = [[row[c] for row in puzzle.solution] for c in range(puzzle.size)]
    assert derive_hints(columns[4]) == puzzle.cols[4]
    assert [derive_hints(col) for col in columns] == list(puzzle.cols)
    assert [derive_hints(row) for row in puzzle.solution] == list(puzzle.rows)


def test_build_puzzle_from_grid_derives_rows_and_columns():
    grid = [
        [True, True, False],
        [False, False, False],
        [True, False, True],
    ]
    puzzle = build_puzzle_from_grid(grid, "tiny")
    assert puzzle.name == "tiny"
    assert puzzle.size == 3
    assert puzzle.rows == ((2,), (), (1, 1))
    assert puzzle.cols == ((1, 1), (1,), (1,))
    assert puzzle.solution[0] == (True, True, False)


def test_build_puzzle_from_numpy_grid():
    grid = np.eye(4, dtype=bool)
    puzzle = build_puzzle_from_grid(grid, "diagonal")
    assert puzzle.rows == ((1,),) * 4
    assert all(isinstance(cell, bool) for row in puzzle.solution for cell in row)


def test_build_puzzle_rejects_non_square_grid():
    with pytest.raises(InvalidPuzzleError):
        build_puzzle_from_grid([[True, False, True]], "strip")


def test_mismatched_hints_are_rejected():
    with pytest.raises(InvalidPuzzleError, match="Column 4"):
        dataclasses.replace(DEFAULT_PUZZLE, cols=DEFAULT_PUZZLE.cols[:4] + ((1, 1, 1),))
    with pytest.raises(InvalidPuzzleError, match="Row 0"):
        dataclasses.replace(DEFAULT_PUZZLE, rows=((1,),) + DEFAULT_PUZZLE.rows[1:])


def test_wrong_shape_is_rejected():
    with pytest.raises(InvalidPuzzleError):
        Puzzle(name="bad", size=2, rows=((1,),), cols=((1,),), solution=((True,),))


def test_puzzle_is_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_PUZZLE.name = "renamed"


def test_dict_form_is_json_friendly():
    data = DEFAULT_PUZZLE.to_dict()
    assert data["rows"][1] == [1, 1, 1]
    assert data["solution"][2] == [1, 1, 1, 1, 1]
    assert Puzzle.from_dict(data) == DEFAULT_PUZZLE


def test_from_dict_rejects_malformed_data():
    with pytest.raises(InvalidPuzzleError):
        Puzzle.from_dict({"name": "missing fields"})


def test_str_renders_hints_and_solution():
    text = str(DEFAULT_PUZZLE)
    lines = text.splitlines()
    assert lines[0] == "Cozy Meadow 5x5"
    assert "1 1 1 |" in text
    assert lines[-3] == "    5 | # # # # #"
