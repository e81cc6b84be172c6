"""Tests for the line solver: hint derivation and placement enumeration."""

from math import comb

import numpy as np
import pytest

from nonogram.lines import (
    build_line_options,
    decode_line,
    derive_hints,
    encode_line,
    line_fits,
    min_line_length,
)


# --- derive_hints ---

def test_derive_hints_runs_left_to_right():
    assert derive_hints([True, True, False, True, False, True, True, True]) == (2, 1, 3)


def test_derive_hints_empty_line():
    assert derive_hints([False] * 6) == ()
    assert derive_hints([]) == ()


def test_derive_hints_full_line():
    assert derive_hints([True] * 4) == (4,)


def test_derive_hints_ignores_gap_widths():
    """Moving empty cells between runs does not change the hints."""
    assert derive_hints([1, 1, 0, 0, 1]) == derive_hints([1, 1, 0, 1, 0]) == (2, 1)
    assert derive_hints([0, 1, 0, 1, 0, 0]) == derive_hints([1, 0, 0, 0, 1, 0]) == (1, 1)


# --- build_line_options ---

def test_empty_hints_give_single_empty_option():
    for length in range(0, 6):
        assert build_line_options(length, []) == {0}


def test_single_block_in_four_cells():
    assert build_line_options(4, [2]) == {0b0011, 0b0110, 0b1100}


def test_two_blocks_need_a_gap():
    assert build_line_options(3, [1, 1]) == {0b101}
    assert build_line_options(5, [2, 2]) == {0b11011}


def test_hints_too_long_for_line():
    assert len(build_line_options(4, [2, 2])) == 0
    assert len(build_line_options(3, [4])) == 0


@pytest.mark.parametrize(
    "length, hints",
    [(5, [1]), (10, [3, 2]), (10, [1, 1, 1]), (15, [2, 4, 1, 3]), (20, [5, 5, 5])],
)
def test_option_count_matches_stars_and_bars(length, hints):
    """k blocks with f free cells can be placed in C(f + k, k) ways."""
    free = length - min_line_length(hints)
    assert len(build_line_options(length, hints)) == comb(free + len(hints), len(hints))


def test_every_option_reproduces_its_hints():
    hints = (2, 1, 3)
    options = build_line_options(12, hints)
    assert options
    for option in options:
        assert derive_hints(decode_line(option, 12)) == hints


def test_random_grid_lines_are_among_their_options():
    rng = np.random.default_rng(1234)
    for size in (1, 4, 7, 12):
        grid = rng.random((size, size)) < 0.5
        for line in list(grid) + list(grid.T):
            line = [bool(cell) for cell in line]
            assert encode_line(line) in build_line_options(size, derive_hints(line))


# --- helpers ---

def test_encode_decode():
    line = (True, False, False, True, True)
    assert encode_line(line) == 0b11001
    assert decode_line(0b11001, 5) == line


def test_line_fits():
    assert line_fits(5, [2, 2])
    assert not line_fits(4, [2, 2])
    assert line_fits(0, [])
    assert not line_fits(5, [0])
