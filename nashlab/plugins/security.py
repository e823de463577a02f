"""Patch/exploit equilibrium plugin for security scenarios."""
from __future__ import annotations

from nashlab.core.registry import AnalysisResult, registry
from nashlab.models import AnyGame, SecurityScenario
from nashlab.security.simulation import run_security_simulation


class SecurityGamePlugin:
    name = "Security Game Equilibrium"
    description = (
        "Solves the defender-vs-attacker patching game over vulnerability subsets "
        "(pure enumeration plus replicator dynamics)."
    )
    applicable_to: tuple[str, ...] = ("security",)
    continuous = True

    def can_run(self, game: AnyGame) -> bool:  # noqa: D401 - interface parity
        return isinstance(game, SecurityScenario)

    def run(self, game: AnyGame, config: dict | None = None) -> AnalysisResult:
        config = config or {}
        report = run_security_simulation(game, cancel_event=config.get("_cancel_event"))

        details = {
            "has_nash": report.nash.has_nash,
            "message": report.nash.message,
            "cancelled": report.nash.cancelled,
            "risk_scores": report.risk_scores,
            "patch_priority": [d.id for d in report.patch_priority],
            "pure_equilibria": [eq.model_dump() for eq in report.nash.pure_nash_equilibria],
            "interpretation": report.interpretation.model_dump(),
            "profits": report.profit_distribution.model_dump(exclude={"players"}),
        }
        return AnalysisResult(
            summary=self.summarize(AnalysisResult(summary="", details=details)),
            details=details,
        )

    def summarize(self, result: AnalysisResult) -> str:
        if not result.details.get("has_nash"):
            return result.details.get("message") or "No equilibrium computed"
        count = len(result.details.get("pure_equilibria", []))
        noun = "equilibrium" if count == 1 else "equilibria"
        return f"{count} pure {noun}, mixed strategy approximated"


registry.register_analysis(SecurityGamePlugin())
