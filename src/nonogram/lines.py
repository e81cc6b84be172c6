"""Line solver: hint derivation and placement enumeration for a single row or column.

A line option is an `int` bit-vector: bit `i` is set iff cell `i` of the line is filled.
"""

from collections.abc import Iterable, Sequence
from typing import TypeAlias

from sortedcontainers import SortedSet

Hints: TypeAlias = tuple[int, ...]
LineOptions: TypeAlias = SortedSet


def derive_hints(line: Iterable[bool]) -> Hints:
    """Return the lengths of the maximal filled runs in `line`, left to right.

    A line with no filled cells yields an empty tuple.
    """
    hints: list[int] = []
    count = 0
    for cell in line:
        if cell:
            count += 1
        elif count:
            hints.append(count)
            count = 0
    if count:
        hints.append(count)
    return tuple(hints)


def min_line_length(hints: Sequence[int]) -> int:
    """Return the shortest line that can hold `hints` (blocks plus one gap between each)."""
    if not hints:
        return 0
    return sum(hints) + len(hints) - 1


def line_fits(length: int, hints: Sequence[int]) -> bool:
    """Returns whether the hint sequence can be placed in a line of the given length."""
    return all(h > 0 for h in hints) and min_line_length(hints) <= length


def encode_line(line: Iterable[bool]) -> int:
    """Encode a boolean line as a bit-vector (bit `i` <=> cell `i` filled)."""
    option = 0
    for i, cell in enumerate(line):
        if cell:
            option |= 1 << i
    return option


def decode_line(option: int, length: int) -> tuple[bool, ...]:
    """Decode a bit-vector back into a boolean line of the given length."""
    return tuple(bool((option >> i) & 1) for i in range(length))


def build_line_options(length: int, hints: Sequence[int]) -> LineOptions:
    """Enumerate every placement of `hints` in a line of `length` cells.

    Blocks are placed left to right.  Block `k` is tried at every start position from the
    first cell after the previous block's mandatory gap up to the last position that still
    leaves room for the remaining blocks and their gaps.  Every placement of the final block
    contributes one finished option, so the enumeration is exhaustive and has no duplicates.

    Args:
        length (int): Number of cells in the line.
        hints (Sequence[int]): Block lengths, in order.

    Returns:
        A SortedSet of line options.  Empty hints give exactly `{0}`; hints that do not fit
        give an empty set, which callers must treat as proof that the puzzle is infeasible.
    """
    if not hints:
        return SortedSet([0])

    options = SortedSet()
    n_blocks = len(hints)

    # Space needed by blocks k+1.. (their lengths plus one gap before each)
    tail_room = [0] * (n_blocks + 1)
    for k in range(n_blocks - 1, 0, -1):
        tail_room[k] = tail_room[k + 1] + hints[k] + 1

    def place(k: int, start: int, option: int) -> None:
        block = hints[k]
        block_bits = (1 << block) - 1
        last_start = length - block - tail_room[k + 1]
        for pos in range(start, last_start + 1):
            placed = option | (block_bits << pos)
            if k == n_blocks - 1:
                options.add(placed)
            else:
                place(k + 1, pos + block + 1, placed)

    place(0, 0, 0)
    return options
