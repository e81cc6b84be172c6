"""Grid verifier: counts the grids consistent with a set of row and column hints."""

from collections.abc import Sequence

from nonogram.lines import build_line_options, decode_line

HintSet = Sequence[Sequence[int]]


def count_solutions(row_hints: HintSet, col_hints: HintSet, size: int, limit: int = 2) -> int:
    """Count the grids consistent with the given hints, stopping once `limit` are found.

    Callers only care about "none", "exactly one" and "more than one", so the search is capped.

    Args:
        row_hints (HintSet): Hint sequence for each row.
        col_hints (HintSet): Hint sequence for each column.
        size (int): Grid height and width.
        limit (int): Stop counting at this many solutions. Default: 2.

    Returns:
        The number of solutions found, never more than `limit`.  Zero means the hints are
        infeasible.
    """
    found = 0

    def _count(_assignment: list[int]) -> bool:
        nonlocal found
        found += 1
        return found >= limit

    if limit > 0:
        _search(row_hints, col_hints, size, _count)
    return found


def has_unique_solution(row_hints: HintSet, col_hints: HintSet, size: int) -> bool:
    """Returns whether exactly one grid is consistent with the hints."""
    return count_solutions(row_hints, col_hints, size, limit=2) == 1


def solve(row_hints: HintSet, col_hints: HintSet, size: int) -> tuple[tuple[bool, ...], ...] | None:
    """Return the first grid consistent with the hints, or None if there is none."""
    solution: list[int] | None = None

    def _keep_first(assignment: list[int]) -> bool:
        nonlocal solution
        solution = list(assignment)
        return True

    _search(row_hints, col_hints, size, _keep_first)
    if solution is None:
        return None
    return tuple(decode_line(option, size) for option in solution)


def _search(row_hints: HintSet, col_hints: HintSet, size: int, on_solution) -> None:
    """Depth-first row assignment with column constraint propagation.

    `on_solution` receives the chosen option for every row (indexed by row) each time a full
    assignment is reached, and returns True to stop the search.
    """
    if len(row_hints) != size or len(col_hints) != size:
        raise ValueError(f"Expected {size} row and column hint sequences.")

    row_options = [list(build_line_options(size, h)) for h in row_hints]
    col_options = [list(build_line_options(size, h)) for h in col_hints]
    if any(not options for options in row_options) or any(not options for options in col_options):
        return  # Some line cannot hold its hints

    # Surviving options per column, narrowed as rows are assigned
    col_state: list[list[int]] = [options[:] for options in col_options]

    # Most constrained rows first; sorted() is stable so ties keep index order
    row_order = sorted(range(size), key=lambda r: len(row_options[r]))
    assignment = [0] * size

    def backtrack(depth: int) -> bool:
        if depth == size:
            return on_solution(assignment)

        row = row_order[depth]
        for option in row_options[row]:
            snapshot = col_state[:]
            feasible = True
            for col in range(size):
                bit = (option >> col) & 1
                narrowed = [c for c in col_state[col] if (c >> row) & 1 == bit]
                if not narrowed:
                    feasible = False
                    break
                col_state[col] = narrowed

            stop = False
            if feasible:
                assignment[row] = option
                stop = backtrack(depth + 1)

            # Restore every column, whether or not this branch succeeded
            col_state[:] = snapshot
            if stop:
                return True
        return False

    backtrack(0)
