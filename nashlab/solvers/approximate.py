"""Approximate Nash equilibrium via smoothed best-response dynamics.

Each round, every player in turn computes its best pure response to the
others' current mixed strategies and moves part of the way toward a softened
version of it. The step size grows with the available improvement, so
players far from a best response move faster.
"""
from __future__ import annotations

import logging
import time
from threading import Event
from typing import Callable, Sequence

import numpy as np

from nashlab.config import ApproximateSolverConfig
from nashlab.core.cancellation import StopSignal
from nashlab.core.errors import InvalidInputError
from nashlab.core.payoffs import action_payoffs, expected_payoffs, normalize
from nashlab.models.game import Game
from nashlab.models.solutions import (
    ApproximateResult,
    BestResponse,
    ConvergenceMetrics,
    EquilibriumSolution,
    HistoryEntry,
    PlayerStrategy,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
HistoryCallback = Callable[[HistoryEntry], None]
MetricsCallback = Callable[[ConvergenceMetrics], None]


def soft_best_response(best_action: int, num_actions: int) -> np.ndarray:
    """Most of the mass on ``best_action``, the remainder spread evenly."""
    weight = ApproximateSolverConfig.BEST_RESPONSE_WEIGHT
    target = np.full(num_actions, (1.0 - weight) / (num_actions - 1))
    target[best_action] = weight
    return target


def learning_rate(improvement: float) -> float:
    return min(
        ApproximateSolverConfig.MAX_LEARNING_RATE,
        max(
            ApproximateSolverConfig.MIN_LEARNING_RATE,
            improvement / ApproximateSolverConfig.LEARNING_RATE_DIVISOR,
        ),
    )


class ApproximateNashSolver:
    """Iterates smoothed best responses until no player can gain more than epsilon."""

    def __init__(
        self,
        game: Game,
        epsilon: float = ApproximateSolverConfig.EPSILON,
        max_iterations: int = ApproximateSolverConfig.MAX_ITERATIONS,
        seed: int | None = None,
        initial_strategies: Sequence[Sequence[float]] | None = None,
    ):
        if epsilon < 0:
            raise InvalidInputError(f"epsilon must be non-negative, got {epsilon}")
        if max_iterations < 0:
            raise InvalidInputError(f"max_iterations must be non-negative, got {max_iterations}")

        self.game = game
        self.epsilon = epsilon
        self.max_iterations = max_iterations
        self._payoffs = game.payoff_arrays()
        self._rng = np.random.default_rng(seed)
        # Starting point of every solve; never modified
        self.strategies = self._initialize_strategies(initial_strategies)
        for distribution in self.strategies:
            distribution.setflags(write=False)
        self._stop_signal = StopSignal()

    def _initialize_strategies(
        self, initial: Sequence[Sequence[float]] | None
    ) -> list[np.ndarray]:
        n = self.game.actions
        if initial is None:
            return [normalize(self._rng.random(n)) for _ in range(self.game.players)]

        if len(initial) != self.game.players:
            raise InvalidInputError(
                f"Expected {self.game.players} initial strategies, got {len(initial)}"
            )
        strategies = []
        for player, values in enumerate(initial):
            dist = np.asarray(values, dtype=float)
            if dist.shape != (n,) or np.any(dist < 0) or dist.sum() <= 0:
                raise InvalidInputError(
                    f"Initial strategy for player {player} must be {n} non-negative weights "
                    "with a positive sum"
                )
            strategies.append(normalize(dist.copy()))
        return strategies

    def stop(self) -> None:
        """Cancel the running solve, or the next one if none is running."""
        self._stop_signal.stop()

    def solve(
        self,
        on_progress: ProgressCallback | None = None,
        on_step: HistoryCallback | None = None,
        on_metrics: MetricsCallback | None = None,
        cancel_event: Event | None = None,
        pacing: float = 0.0,
    ) -> ApproximateResult:
        """Run best-response rounds until convergence, the iteration cap, or cancellation.

        Every call starts from the same initial strategies and works on its own
        copy of them, so repeated or concurrent solves do not interfere.

        Args:
            on_progress: Called with the percentage of ``max_iterations`` completed.
            on_step: Called with each per-player history entry.
            on_metrics: Called with the metrics after every completed round.
            cancel_event: Cancellation token; a fresh one is used when omitted.
            pacing: Seconds to wait after each player update (0 disables pacing).

        Returns:
            ApproximateResult describing the final strategy profile.
        """
        with self._stop_signal.attach(cancel_event) as cancel:
            return self._run(
                [d.copy() for d in self.strategies], cancel, on_progress, on_step, on_metrics, pacing
            )

    def _run(
        self,
        strategies: list[np.ndarray],
        cancel: Event,
        on_progress: ProgressCallback | None,
        on_step: HistoryCallback | None,
        on_metrics: MetricsCallback | None,
        pacing: float,
    ) -> ApproximateResult:
        history: list[HistoryEntry] = []
        metrics = ConvergenceMetrics()
        start = time.perf_counter()

        logger.info(
            "Approximate solve started for %s (epsilon=%s, max_iterations=%d)",
            self.game.id,
            self.epsilon,
            self.max_iterations,
        )

        history.append(
            HistoryEntry(
                iteration=0,
                strategies=self._snapshot(strategies),
                payoffs=self.calculate_current_payoffs(strategies),
                action="Initialized strategies",
                timestamp=time.time(),
            )
        )

        iteration = 0
        converged = False
        while iteration < self.max_iterations and not converged and not cancel.is_set():
            converged = True
            round_complete = True
            total_improvement = 0.0
            improvements: dict[int, float] = {}

            for player in range(self.game.players):
                if cancel.is_set():
                    round_complete = False
                    break

                improvement, best_response, rate = self.update_player_strategy(player, strategies)
                improvements[player] = improvement
                total_improvement += improvement
                if improvement > self.epsilon:
                    converged = False

                entry = HistoryEntry(
                    iteration=iteration + 1,
                    player=player,
                    strategies=self._snapshot(strategies),
                    payoffs=self.calculate_current_payoffs(strategies),
                    improvement=improvement,
                    improvements=dict(improvements),
                    total_improvement=total_improvement,
                    action=f"Player {player + 1} updates (Δ = {improvement:.4f})",
                    best_response=best_response,
                    learning_rate=rate,
                    timestamp=time.time(),
                )
                history.append(entry)
                if on_step is not None:
                    on_step(entry)
                if pacing > 0:
                    cancel.wait(pacing)

            if not round_complete:
                # A partial round says nothing about convergence
                converged = False
                break

            self._update_metrics(metrics, total_improvement, strategies)
            if on_metrics is not None:
                on_metrics(metrics)

            iteration += 1
            if on_progress is not None:
                on_progress(iteration / self.max_iterations * 100)

        cancelled = cancel.is_set() and not converged
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Approximate solve finished for %s after %d iterations (converged=%s%s)",
            self.game.id,
            iteration,
            converged,
            ", cancelled" if cancelled else "",
        )

        return ApproximateResult(
            solution=EquilibriumSolution(
                type="approximate",
                strategies=self._snapshot(strategies),
                payoffs=self.calculate_current_payoffs(strategies),
                epsilon=self.epsilon,
            ),
            time=elapsed_ms,
            iterations=iteration,
            converged=converged,
            history=history,
            metrics=metrics.model_copy(deep=True),
            cancelled=cancelled,
        )

    def update_player_strategy(
        self, player: int, strategies: list[np.ndarray]
    ) -> tuple[float, BestResponse, float | None]:
        """Move ``player`` toward its soft best response if it can improve by more than epsilon.

        ``strategies[player]`` is updated in place.

        Returns:
            (improvement, best response, learning rate used or None if unchanged)
        """
        values = action_payoffs(self._payoffs[player], strategies, player)
        distribution = strategies[player]
        current = float(np.dot(distribution, values))

        best_response = self.find_best_response(values)
        improvement = best_response.payoff - current

        rate = None
        if improvement > self.epsilon:
            rate = learning_rate(improvement)
            target = np.asarray(best_response.strategy)
            distribution *= 1.0 - rate
            distribution += rate * target
            normalize(distribution)

        return improvement, best_response, rate

    def find_best_response(self, values: np.ndarray) -> BestResponse:
        # argmax returns the first maximum, so ties go to the lowest action
        best_action = int(np.argmax(values))
        return BestResponse(
            best_action=best_action,
            payoff=float(values[best_action]),
            action_payoffs=[float(v) for v in values],
            strategy=soft_best_response(best_action, self.game.actions).tolist(),
        )

    def calculate_action_payoff(
        self, player: int, action: int, strategies: Sequence[np.ndarray] | None = None
    ) -> float:
        """Expected payoff of one pure action against the others' mixes.

        ``strategies`` defaults to the initial strategies.
        """
        strategies = self.strategies if strategies is None else strategies
        return float(action_payoffs(self._payoffs[player], strategies, player)[action])

    def calculate_player_payoff(
        self, player: int, strategies: Sequence[np.ndarray] | None = None
    ) -> float:
        strategies = self.strategies if strategies is None else strategies
        values = action_payoffs(self._payoffs[player], strategies, player)
        return float(np.dot(strategies[player], values))

    def calculate_current_payoffs(self, strategies: Sequence[np.ndarray] | None = None) -> list[float]:
        return expected_payoffs(self._payoffs, self.strategies if strategies is None else strategies)

    @staticmethod
    def _snapshot(strategies: Sequence[np.ndarray]) -> list[PlayerStrategy]:
        return [
            PlayerStrategy(player=player, distribution=dist.tolist())
            for player, dist in enumerate(strategies)
        ]

    def _update_metrics(
        self, metrics: ConvergenceMetrics, total_improvement: float, strategies: list[np.ndarray]
    ) -> None:
        metrics.improvements.append(total_improvement)
        metrics.payoff_history.append(self.calculate_current_payoffs(strategies))
        metrics.strategy_history.append(self._snapshot(strategies))


def solve_approximate(
    game: Game,
    epsilon: float = ApproximateSolverConfig.EPSILON,
    max_iterations: int = ApproximateSolverConfig.MAX_ITERATIONS,
    on_progress: ProgressCallback | None = None,
    on_step: HistoryCallback | None = None,
    on_metrics: MetricsCallback | None = None,
    seed: int | None = None,
    cancel_event: Event | None = None,
) -> ApproximateResult:
    """Convenience wrapper around :class:`ApproximateNashSolver`."""
    solver = ApproximateNashSolver(game, epsilon, max_iterations, seed=seed)
    return solver.solve(on_progress, on_step, on_metrics, cancel_event=cancel_event)
