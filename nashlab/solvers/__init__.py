"""Equilibrium solvers for normal-form games."""

from nashlab.solvers.approximate import ApproximateNashSolver, solve_approximate
from nashlab.solvers.exact import ExactNashSolver, solve_exact

__all__ = [
    "ApproximateNashSolver",
    "ExactNashSolver",
    "solve_approximate",
    "solve_exact",
]
