"""Centralized configuration constants for the solvers.

Consolidates numeric tolerances, iteration budgets and size limits so the
solvers, plugins and task manager agree on the same defaults.
"""

from __future__ import annotations

import os


class ExactSolverConfig:
    """Configuration constants for the exact equilibrium finder."""

    # Deviation payoffs must beat the current payoff by more than this
    EPSILON = 1e-10

    # Progress percentages reported for each phase
    PURE_SEARCH_START = 10.0
    PURE_SEARCH_SPAN = 40.0
    MIXED_SEARCH_START = 50.0
    MIXED_CALCULATION = 60.0
    MIXED_COMPLETE = 80.0
    COMPLETE = 100.0


class ApproximateSolverConfig:
    """Configuration constants for the smoothed best-response solver."""

    EPSILON = 0.01
    MAX_ITERATIONS = 200

    # Soft best response: mass kept on the best action
    BEST_RESPONSE_WEIGHT = 0.9

    # Learning rate is improvement / LEARNING_RATE_DIVISOR, clamped to [MIN, MAX]
    LEARNING_RATE_DIVISOR = 10.0
    MIN_LEARNING_RATE = 0.01
    MAX_LEARNING_RATE = 0.2


class SecurityGameConfig:
    """Configuration constants for the combinatorial security game."""

    # The payoff matrix is 2^k x 2^k; 10 vulnerabilities is already ~1M cells
    MAX_VULNERABILITIES = int(os.environ.get("NASHLAB_MAX_VULNERABILITIES", 10))

    EPSILON = 1e-10

    # Replicator dynamics always runs the full budget
    REPLICATOR_ITERATIONS = 10_000
    REPLICATOR_LEARNING_RATE = 0.1

    # Mixed strategy components at or below this are hidden from interpretation
    DISPLAY_PROBABILITY_THRESHOLD = 0.01

    # Added to the patch cost when ranking by impact/cost ratio
    PRIORITY_COST_OFFSET = 0.01

    DEFAULT_K4 = 1.0
    DEFAULT_K5 = 2.0


class TaskConfig:
    """Configuration constants for background solver tasks."""

    TASK_ID_LENGTH = 8
    DEFAULT_MAX_WORKERS = int(os.environ.get("NASHLAB_TASK_MAX_WORKERS", 4))
    TASK_CLEANUP_MAX_AGE_SECONDS = 3600
