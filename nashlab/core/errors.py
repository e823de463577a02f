"""Exception types shared across the package.

"No equilibrium exists" is never an error; solvers report it through empty
solution lists or ``has_nash=False``. These exceptions cover malformed input
and lookups that cannot be satisfied.
"""
from __future__ import annotations


class NashlabError(Exception):
    """Base class for all nashlab errors."""


class InvalidInputError(NashlabError, ValueError):
    """Raised when arguments to a computation are malformed."""


class UnknownPresetError(NashlabError, KeyError):
    """Raised when a preset name is not registered."""

    def __init__(self, kind: str, name: str, available: list[str]) -> None:
        self.kind = kind
        self.name = name
        self.available = available
        super().__init__(f"Unknown {kind} preset: {name}. Available: {available}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class UnknownSolverError(NashlabError, LookupError):
    """Raised when a solver plugin name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(f"Unknown solver: {name}. Available: {available}")


class IncompatibleSolverError(NashlabError, ValueError):
    """Raised when a solver plugin cannot run on the given game."""

    def __init__(self, solver_name: str, game_format: str) -> None:
        self.solver_name = solver_name
        self.game_format = game_format
        super().__init__(f"Solver '{solver_name}' cannot run on this game (format: {game_format})")


def safe_error_message(error: Exception) -> str:
    """Extract a safe error message from an exception.

    Avoids leaking internal details while preserving useful information.

    Args:
        error: The exception to extract message from

    Returns:
        A safe string representation of the error
    """
    # ValueError and our own errors carry messages meant for users
    if isinstance(error, (ValueError, NashlabError)):
        return str(error)
    return type(error).__name__
