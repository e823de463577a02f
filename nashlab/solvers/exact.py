"""Exact Nash equilibrium search.

Pure equilibria are found by exhaustive deviation checking over every
profile. For 2x2 games the interior mixed equilibrium is derived in closed
form from the players' indifference conditions.
"""
from __future__ import annotations

import logging
import time
from threading import Event
from typing import Any, Callable

import numpy as np

from nashlab.config import ExactSolverConfig
from nashlab.core.cancellation import StopSignal
from nashlab.core.payoffs import expected_payoffs, iter_profiles, pure_distribution
from nashlab.models.game import Game, is_valid_probability
from nashlab.models.solutions import (
    EquilibriumSolution,
    ExactResult,
    Indifference,
    PlayerStrategy,
    SearchStep,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
StepCallback = Callable[[SearchStep], None]


class _SearchTrace:
    """Steps and solutions accumulated by a single solve."""

    def __init__(self, on_progress: ProgressCallback | None, on_step: StepCallback | None):
        self.steps: list[SearchStep] = []
        self.solutions: list[EquilibriumSolution] = []
        self._on_progress = on_progress
        self._on_step = on_step
        self._progress = 0.0

    def add(self, **fields: Any) -> SearchStep:
        # Progress never moves backwards
        self._progress = max(self._progress, float(fields.pop("progress")))
        step = SearchStep(
            **fields,
            progress=self._progress,
            timestamp=time.time(),
            solutions_found=len(self.solutions),
        )
        self.steps.append(step)
        if self._on_step is not None:
            self._on_step(step)
        if self._on_progress is not None:
            self._on_progress(self._progress)
        return step


class ExactNashSolver:
    """Finds every pure equilibrium and, for 2x2 games, the closed-form mixed one."""

    def __init__(self, game: Game, epsilon: float = ExactSolverConfig.EPSILON):
        self.game = game
        self.epsilon = epsilon
        self._payoffs = game.payoff_arrays()
        self._stop_signal = StopSignal()

    def stop(self) -> None:
        """Cancel the running solve, or the next one if none is running."""
        self._stop_signal.stop()

    def solve(
        self,
        on_progress: ProgressCallback | None = None,
        on_step: StepCallback | None = None,
        cancel_event: Event | None = None,
        pacing: float = 0.0,
    ) -> ExactResult:
        """Run the pure search, then the mixed search.

        Args:
            on_progress: Called with the progress percentage after every step.
            on_step: Called with every trace step as it is recorded.
            cancel_event: Cancellation token; a fresh one is used when omitted.
            pacing: Seconds to wait between candidates (0 disables pacing).

        Returns:
            ExactResult with the equilibria found so far. ``cancelled`` is set
            when the search was stopped early.
        """
        trace = _SearchTrace(on_progress, on_step)
        start = time.perf_counter()

        logger.info(
            "Exact solve started for %s (%d profiles)", self.game.id, self.game.num_profiles
        )
        with self._stop_signal.attach(cancel_event) as cancel:
            self._find_pure_strategies(trace, cancel, pacing)
            self._find_mixed_strategies(trace, cancel, pacing)

            cancelled = cancel.is_set()
            if not cancelled:
                trace.add(
                    type="complete",
                    phase="complete",
                    message=f"Search complete: {len(trace.solutions)} equilibria found",
                    progress=ExactSolverConfig.COMPLETE,
                )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Exact solve finished for %s: %d solutions in %.1f ms%s",
            self.game.id,
            len(trace.solutions),
            elapsed_ms,
            " (cancelled)" if cancelled else "",
        )
        return ExactResult(
            solutions=trace.solutions,
            time=elapsed_ms,
            search_steps=trace.steps,
            cancelled=cancelled,
        )

    def _find_pure_strategies(self, trace: _SearchTrace, cancel: Event, pacing: float) -> None:
        if cancel.is_set():
            return

        trace.add(
            type="phase",
            phase="pure_search",
            message="Searching for pure strategy equilibria...",
            progress=ExactSolverConfig.PURE_SEARCH_START,
        )

        total = self.game.num_profiles
        for index, profile in enumerate(iter_profiles(self.game.players, self.game.actions)):
            if cancel.is_set():
                return

            progress = (
                ExactSolverConfig.PURE_SEARCH_START
                + index / total * ExactSolverConfig.PURE_SEARCH_SPAN
            )
            trace.add(
                type="testing",
                phase="pure_testing",
                message=f"Testing: {self.game.format_profile(profile)}",
                candidate=list(profile),
                progress=progress,
            )
            if pacing > 0:
                cancel.wait(pacing)

            try:
                stable = self.is_pure_nash_equilibrium(profile)
            except Exception:
                logger.exception("Deviation check failed for profile %s", profile)
                trace.add(
                    type="error",
                    phase="error",
                    message=f"Error testing {self.game.format_profile(profile)}",
                    candidate=list(profile),
                    progress=progress,
                )
                continue

            if not stable:
                continue

            strategies = self.create_pure_strategy_profile(profile)
            solution = EquilibriumSolution(
                type="pure",
                strategies=strategies,
                payoffs=self.calculate_payoffs(strategies),
                action_profile=list(profile),
            )
            trace.solutions.append(solution)
            logger.debug("Pure equilibrium found: %s", profile)
            trace.add(
                type="found",
                phase="found_pure",
                message=f"Found pure Nash: {self.game.format_profile(profile)}",
                solution=solution,
                candidate=list(profile),
                progress=progress,
            )

    def _find_mixed_strategies(self, trace: _SearchTrace, cancel: Event, pacing: float) -> None:
        if cancel.is_set():
            return

        trace.add(
            type="phase",
            phase="mixed_search",
            message="Searching for mixed strategy equilibria...",
            progress=ExactSolverConfig.MIXED_SEARCH_START,
        )

        if self.game.players != 2 or self.game.actions != 2:
            trace.add(
                type="warning",
                phase="mixed_complete",
                message="Closed-form mixed search only applies to 2-player, 2-action games",
                progress=ExactSolverConfig.MIXED_COMPLETE,
            )
            return

        self._solve_2x2_mixed_strategy(trace, cancel, pacing)

    def _solve_2x2_mixed_strategy(self, trace: _SearchTrace, cancel: Event, pacing: float) -> None:
        if cancel.is_set():
            return

        trace.add(
            type="calculating",
            phase="mixed_calculation",
            message="Calculating indifference probabilities...",
            progress=ExactSolverConfig.MIXED_CALCULATION,
        )
        if pacing > 0:
            cancel.wait(pacing)

        A, B = self._payoffs

        try:
            with np.errstate(all="ignore"):
                denom_p = B[0, 0] - B[0, 1] - B[1, 0] + B[1, 1]
                denom_q = A[0, 0] - A[1, 0] - A[0, 1] + A[1, 1]

                # Parallel indifference lines: no interior solution
                if abs(denom_p) < self.epsilon or abs(denom_q) < self.epsilon:
                    trace.add(
                        type="warning",
                        phase="mixed_complete",
                        message="No mixed strategy equilibrium found",
                        progress=ExactSolverConfig.MIXED_COMPLETE,
                    )
                    return

                p = float((B[1, 1] - B[0, 1]) / denom_p)
                q = float((A[1, 1] - A[1, 0]) / denom_q)

            if not (is_valid_probability(p) and is_valid_probability(q)):
                logger.debug("Indifference probabilities out of range: p=%s q=%s", p, q)
                trace.add(
                    type="warning",
                    phase="mixed_complete",
                    message="Indifference probabilities fall outside [0, 1]",
                    progress=ExactSolverConfig.MIXED_COMPLETE,
                )
                return

            strategies = [
                PlayerStrategy(player=0, distribution=[p, 1 - p]),
                PlayerStrategy(player=1, distribution=[q, 1 - q]),
            ]
            solution = EquilibriumSolution(
                type="mixed",
                strategies=strategies,
                payoffs=self.calculate_payoffs(strategies),
                indifference=Indifference(p=p, q=q),
            )
            trace.solutions.append(solution)
            trace.add(
                type="found",
                phase="found_mixed",
                message="Found mixed strategy equilibrium",
                solution=solution,
                progress=ExactSolverConfig.MIXED_COMPLETE,
            )
        except Exception:
            logger.exception("Mixed strategy calculation failed for %s", self.game.id)
            trace.add(
                type="error",
                phase="error",
                message="Error in mixed strategy calculation",
                progress=ExactSolverConfig.MIXED_COMPLETE,
            )

    def is_pure_nash_equilibrium(self, profile: tuple[int, ...]) -> bool:
        """No player gains more than epsilon by a unilateral deviation."""
        for player, payoffs in enumerate(self._payoffs):
            current = payoffs[profile]
            # All of this player's alternatives with everyone else held fixed
            deviations = payoffs[profile[:player] + (slice(None),) + profile[player + 1 :]]
            if np.any(deviations > current + self.epsilon):
                return False
        return True

    def create_pure_strategy_profile(self, profile: tuple[int, ...]) -> list[PlayerStrategy]:
        return [
            PlayerStrategy(player=player, distribution=pure_distribution(action, self.game.actions))
            for player, action in enumerate(profile)
        ]

    def calculate_payoffs(self, strategies: list[PlayerStrategy]) -> list[float]:
        return expected_payoffs(self._payoffs, [s.distribution for s in strategies])


def solve_exact(
    game: Game,
    on_progress: ProgressCallback | None = None,
    on_step: StepCallback | None = None,
    cancel_event: Event | None = None,
) -> ExactResult:
    """Convenience wrapper around :class:`ExactNashSolver`."""
    return ExactNashSolver(game).solve(on_progress, on_step, cancel_event=cancel_event)
