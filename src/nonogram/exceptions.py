"""Custom exception hierarchy for nonogram generation."""


class NonogramError(Exception):
    """Base exception for generator failures."""


class InvalidPuzzleError(NonogramError):
    """Raised when a puzzle's hints do not describe its solution grid."""


class SearchExhaustedError(NonogramError):
    """Raised when the attempt budget is spent without an accepted candidate."""

    def __init__(self, size: int, attempts: int) -> None:
        super().__init__(f"Unable to find a unique {size}x{size} puzzle after {attempts} attempts.")
        self.size = size
        self.attempts = attempts


class SearchCancelledError(NonogramError):
    """Raised inside a search loop once its cancellation token is set."""


class GeneratorBusyError(NonogramError):
    """Raised when a generation is requested while another one is in flight."""


class WorkerUnavailableError(NonogramError):
    """Raised when the worker pool has no worker slots to dispatch to."""


class GenerationFailedError(NonogramError):
    """Raised (on the pending future) when every worker of a generation failed."""
