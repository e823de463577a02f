"""Tests for the smoothed best-response solver."""
from __future__ import annotations

from threading import Event

import numpy as np
import pytest

from nashlab.core.errors import InvalidInputError
from nashlab.core.payoffs import action_payoffs
from nashlab.models import Game
from nashlab.solvers.approximate import (
    ApproximateNashSolver,
    learning_rate,
    soft_best_response,
    solve_approximate,
)


class TestHelpers:
    def test_soft_best_response(self):
        assert soft_best_response(1, 3).tolist() == pytest.approx([0.05, 0.9, 0.05])

    @pytest.mark.parametrize(
        ("improvement", "expected"),
        [(0.001, 0.01), (1.0, 0.1), (50.0, 0.2)],
    )
    def test_learning_rate_is_clamped(self, improvement, expected):
        assert learning_rate(improvement) == pytest.approx(expected)


class TestConvergence:
    def test_converges_at_equilibrium(self, coordination: Game):
        """Starting at the even mix, nobody can improve, so the first round converges."""
        solver = ApproximateNashSolver(coordination, initial_strategies=[[0.5, 0.5], [0.5, 0.5]])
        result = solver.solve()

        assert result.converged is True
        assert result.iterations == 1
        assert result.solution.type == "approximate"
        assert result.solution.payoffs == pytest.approx([2.5, 2.5])

    def test_converged_means_small_improvements(self):
        game = Game.from_bimatrix([[1, 1], [1, 1]], [[2, 2], [2, 2]])
        result = solve_approximate(game, seed=3)

        assert result.converged
        last_round = [h for h in result.history if h.iteration == result.iterations]
        assert last_round
        assert all(h.improvement <= 0.01 for h in last_round)

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_converged_profile_is_epsilon_stable(self, coordination: Game, seed):
        """Recomputed from the final profile, no player can gain more than epsilon."""
        epsilon = 0.5
        result = solve_approximate(coordination, epsilon=epsilon, max_iterations=500, seed=seed)

        assert result.converged
        distributions = [np.array(s.distribution) for s in result.solution.strategies]
        for player, payoffs in enumerate(coordination.payoff_arrays()):
            values = action_payoffs(payoffs, distributions, player)
            improvement = values.max() - float(np.dot(distributions[player], values))
            assert improvement <= epsilon + 1e-12

    def test_rock_paper_scissors_respects_iteration_cap(self, rock_paper_scissors: Game):
        result = solve_approximate(rock_paper_scissors, max_iterations=50, seed=7)

        assert result.iterations <= 50
        assert result.converged or result.iterations == 50

    def test_zero_iterations(self, prisoners: Game):
        result = solve_approximate(prisoners, max_iterations=0, seed=1)
        assert result.iterations == 0
        assert result.converged is False
        assert len(result.history) == 1

    def test_moves_toward_dominant_strategy(self, prisoners: Game):
        result = solve_approximate(prisoners, max_iterations=200, seed=11)
        for strategy in result.solution.strategies:
            assert strategy.distribution[1] > strategy.distribution[0]


class TestHistory:
    def test_distributions_stay_normalized(self, chicken: Game):
        result = solve_approximate(chicken, max_iterations=40, seed=5)

        for entry in result.history:
            for strategy in entry.strategies:
                assert sum(strategy.distribution) == pytest.approx(1.0, abs=1e-9)
                assert all(p >= 0 for p in strategy.distribution)

    def test_history_shape(self, chicken: Game):
        steps = []
        result = ApproximateNashSolver(chicken, max_iterations=10, seed=2).solve(on_step=steps.append)

        assert result.history[0].iteration == 0
        assert result.history[0].action == "Initialized strategies"
        # One entry per player per completed round, plus the initial entry
        assert len(result.history) == 1 + 2 * result.iterations
        assert steps == result.history[1:]
        assert steps[0].best_response is not None

    def test_metrics_track_rounds(self, chicken: Game):
        snapshots = []
        result = ApproximateNashSolver(chicken, max_iterations=10, seed=2).solve(
            on_metrics=lambda m: snapshots.append(len(m.improvements))
        )

        assert len(result.metrics.improvements) == result.iterations
        assert len(result.metrics.payoff_history) == result.iterations
        assert snapshots == list(range(1, result.iterations + 1))

    def test_progress_reaches_cap(self, rock_paper_scissors: Game):
        progress: list[float] = []
        result = ApproximateNashSolver(rock_paper_scissors, max_iterations=20, seed=4).solve(
            on_progress=progress.append
        )
        assert progress == sorted(progress)
        assert progress[-1] == pytest.approx(result.iterations / 20 * 100)


class TestPayoffAccessors:
    def test_action_and_player_payoffs(self, chicken: Game):
        solver = ApproximateNashSolver(chicken, initial_strategies=[[0.5, 0.5], [0.25, 0.75]])

        # Row player against (0.25, 0.75): Stay = 5.25, Swerve = 1.25
        assert solver.calculate_action_payoff(0, 0) == pytest.approx(5.25)
        assert solver.calculate_action_payoff(0, 1) == pytest.approx(1.25)
        assert solver.calculate_player_payoff(0) == pytest.approx(3.25)
        assert solver.calculate_current_payoffs()[0] == pytest.approx(3.25)

    def test_best_response_ties_go_to_lowest_action(self, coordination: Game):
        solver = ApproximateNashSolver(coordination, initial_strategies=[[0.5, 0.5], [0.5, 0.5]])
        response = solver.find_best_response(np.array([2.5, 2.5]))
        assert response.best_action == 0
        assert response.strategy == pytest.approx([0.9, 0.1])


class TestDeterminism:
    def test_same_seed_same_result(self, chicken: Game):
        first = solve_approximate(chicken, max_iterations=30, seed=42)
        second = solve_approximate(chicken, max_iterations=30, seed=42)

        assert first.solution.strategies == second.solution.strategies
        assert first.iterations == second.iterations

    def test_repeated_solves_start_from_same_strategies(self, chicken: Game):
        """Each solve works on its own copy of the seeded starting profile."""
        solver = ApproximateNashSolver(chicken, max_iterations=20, seed=42)
        first = solver.solve()
        second = solver.solve()

        assert first.history[0].strategies == second.history[0].strategies
        assert first.solution.strategies == second.solution.strategies
        assert first.iterations == second.iterations

    def test_initial_strategies_are_read_only(self, chicken: Game):
        solver = ApproximateNashSolver(chicken, initial_strategies=[[0.5, 0.5], [0.25, 0.75]])
        solver.solve(on_step=lambda entry: None)

        assert solver.strategies[0].tolist() == [0.5, 0.5]
        assert solver.strategies[1].tolist() == [0.25, 0.75]
        with pytest.raises(ValueError):
            solver.strategies[0][0] = 1.0

    def test_three_players_supported(self, three_player_majority: Game):
        result = solve_approximate(three_player_majority, max_iterations=30, seed=9)
        assert len(result.solution.strategies) == 3
        assert len(result.solution.payoffs) == 3


class TestValidation:
    def test_negative_epsilon(self, chicken: Game):
        with pytest.raises(InvalidInputError, match="epsilon"):
            ApproximateNashSolver(chicken, epsilon=-0.1)

    def test_wrong_initial_strategy_count(self, chicken: Game):
        with pytest.raises(InvalidInputError, match="Expected 2 initial strategies"):
            ApproximateNashSolver(chicken, initial_strategies=[[0.5, 0.5]])

    def test_negative_initial_weights(self, chicken: Game):
        with pytest.raises(ValueError):
            ApproximateNashSolver(chicken, initial_strategies=[[1.5, -0.5], [0.5, 0.5]])


class TestCancellation:
    def test_cancel_before_start(self, chicken: Game):
        cancel = Event()
        cancel.set()

        result = solve_approximate(chicken, seed=1, cancel_event=cancel)

        assert result.cancelled is True
        assert result.converged is False
        assert result.iterations == 0
        assert len(result.history) == 1

    def test_stop_mid_round(self, rock_paper_scissors: Game):
        solver = ApproximateNashSolver(rock_paper_scissors, max_iterations=100, seed=3)

        def stop_after_first_update(entry):
            solver.stop()

        result = solver.solve(on_step=stop_after_first_update)

        assert result.cancelled is True
        assert result.iterations == 0
        # Initial entry plus the one update made before stopping
        assert len(result.history) == 2
        for strategy in result.solution.strategies:
            assert sum(strategy.distribution) == pytest.approx(1.0)

    def test_stop_before_solve_cancels_next_solve(self, rock_paper_scissors: Game):
        solver = ApproximateNashSolver(rock_paper_scissors, max_iterations=100, seed=3)
        solver.stop()

        result = solver.solve()
        assert result.cancelled is True
        assert result.iterations == 0

        # The held request is consumed by the solve it cancelled
        assert solver.solve().cancelled is False

    def test_stop_reaches_external_token(self, rock_paper_scissors: Game):
        solver = ApproximateNashSolver(rock_paper_scissors, max_iterations=100, seed=3)
        cancel = Event()

        result = solver.solve(on_step=lambda entry: solver.stop(), cancel_event=cancel)

        assert cancel.is_set()
        assert result.cancelled is True
