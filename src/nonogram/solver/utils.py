"""Utility functions for the nonogram generator."""

import os


def max_parallelism() -> int:
    """Return the number of worker processes the platform can run in parallel."""
    return os.cpu_count() or 1  # Fallback to 1 if os.cpu_count() is None


def default_worker_count(requested: int | None = None) -> int:
    """Resolve a requested worker count against the available parallelism.

    Args:
        requested (int | None): Requested number of workers.  If None, leaves one core free
            but uses at least two workers when the machine has them.

    Returns:
        A worker count in `1..max_parallelism()`.
    """
    cpus = max_parallelism()
    if requested is None:
        requested = max(2, cpus - 1)
    return max(1, min(requested, cpus))


def time_str(seconds: float) -> str:
    """Convert a time duration in seconds to a human-readable string.

    Args:
        seconds: Time duration in seconds.

    Returns:
        A string formatted as "HH:MM:SS.ss".
    """
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{int(hours):02}:{int(minutes):02}:{secs:05.2f}"
