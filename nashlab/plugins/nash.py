"""Exact and approximate Nash equilibrium plugins for strategic form games."""
from __future__ import annotations

from threading import Event

from nashlab.config import ApproximateSolverConfig, ExactSolverConfig
from nashlab.core.registry import AnalysisResult, registry
from nashlab.models import AnyGame, Game
from nashlab.solvers.approximate import ApproximateNashSolver
from nashlab.solvers.exact import ExactNashSolver


def _cancel_event(config: dict) -> Event | None:
    return config.get("_cancel_event")


class ExactNashPlugin:
    name = "Exact Nash Equilibrium"
    description = "Finds all pure equilibria and the closed-form mixed equilibrium of 2x2 games."
    applicable_to: tuple[str, ...] = ("strategic",)
    continuous = True

    def can_run(self, game: AnyGame) -> bool:  # noqa: D401 - interface parity
        return isinstance(game, Game)

    def run(self, game: AnyGame, config: dict | None = None) -> AnalysisResult:
        config = config or {}
        solver = ExactNashSolver(game, epsilon=config.get("epsilon", ExactSolverConfig.EPSILON))
        result = solver.solve(
            cancel_event=_cancel_event(config),
            pacing=config.get("pacing", 0.0),
        )

        solutions = [s.model_dump() for s in result.solutions]
        details = {
            "solutions": solutions,
            "time_ms": result.time,
            "steps": len(result.search_steps),
            "cancelled": result.cancelled,
        }
        return AnalysisResult(
            summary=self.summarize(AnalysisResult(summary="", details=details)),
            details=details,
        )

    def summarize(self, result: AnalysisResult) -> str:
        solutions = result.details.get("solutions", [])
        suffix = " (cancelled)" if result.details.get("cancelled") else ""
        if not solutions:
            return f"No Nash equilibria found{suffix}"
        pure = sum(1 for s in solutions if s["type"] == "pure")
        mixed = len(solutions) - pure
        return f"{pure} pure, {mixed} mixed Nash equilibria{suffix}"


class ApproximateNashPlugin:
    name = "Approximate Nash Equilibrium"
    description = "Approximates an equilibrium with smoothed best-response dynamics."
    applicable_to: tuple[str, ...] = ("strategic",)
    continuous = True

    def can_run(self, game: AnyGame) -> bool:  # noqa: D401 - interface parity
        return isinstance(game, Game)

    def run(self, game: AnyGame, config: dict | None = None) -> AnalysisResult:
        config = config or {}
        solver = ApproximateNashSolver(
            game,
            epsilon=config.get("epsilon", ApproximateSolverConfig.EPSILON),
            max_iterations=config.get("max_iterations", ApproximateSolverConfig.MAX_ITERATIONS),
            seed=config.get("seed"),
        )
        result = solver.solve(cancel_event=_cancel_event(config), pacing=config.get("pacing", 0.0))

        details = {
            "solution": result.solution.model_dump(),
            "iterations": result.iterations,
            "converged": result.converged,
            "time_ms": result.time,
            "cancelled": result.cancelled,
        }
        return AnalysisResult(
            summary=self.summarize(AnalysisResult(summary="", details=details)),
            details=details,
        )

    def summarize(self, result: AnalysisResult) -> str:
        iterations = result.details.get("iterations", 0)
        if result.details.get("cancelled"):
            return f"Cancelled after {iterations} iterations"
        if result.details.get("converged"):
            return f"Converged after {iterations} iterations"
        return f"Did not converge within {iterations} iterations"


registry.register_analysis(ExactNashPlugin())
registry.register_analysis(ApproximateNashPlugin())
