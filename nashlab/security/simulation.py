"""End-to-end patch simulation: risk, payoffs, coalition profits and equilibria."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from threading import Event
from typing import Any

from nashlab.models.security import (
    PlayerProfit,
    ProfitDistribution,
    SecurityPlayer,
    SecurityScenario,
    SimulationReport,
    VulnerabilityDetail,
)
from nashlab.security.game import (
    active_coalitions,
    calculate_nash_equilibrium,
    interpret_nash_equilibrium_strategies,
)
from nashlab.security.risk import (
    compute_risk_scores,
    compute_vulnerability_details,
    prioritize_patches,
)

logger = logging.getLogger(__name__)


def distribute_player_profits(
    vulnerability_details: Sequence[VulnerabilityDetail],
    players: Sequence[SecurityPlayer | Mapping[str, Any]],
) -> ProfitDistribution:
    """Split each coalition's total profit equally among its active members.

    The attacker coalition earns ``sum(prA)`` and the defender coalition
    ``sum(iA - cD)``. Inactive players keep their previous profit. Totals are
    reported even when a coalition has nobody to share them with.
    """
    roster = [p if isinstance(p, SecurityPlayer) else SecurityPlayer.model_validate(p) for p in players]
    attackers, defenders = active_coalitions(roster)

    total_attacker = sum(d.pr_a for d in vulnerability_details)
    total_defender = sum(d.i_a - d.c_d for d in vulnerability_details)

    shares: dict[int, float] = {}
    if attackers:
        shares.update({p.id: total_attacker / len(attackers) for p in attackers})
    if defenders:
        shares.update({p.id: total_defender / len(defenders) for p in defenders})

    updated = [
        p.model_copy(update={"profit": shares[p.id]}) if p.active and p.id in shares else p
        for p in roster
    ]

    return ProfitDistribution(
        total_attacker_profit=total_attacker,
        total_defender_profit=total_defender,
        players=updated,
        attackers=[
            PlayerProfit(name=p.name, profit=p.profit)
            for p in updated
            if p.group == "attackers" and p.active
        ],
        defenders=[
            PlayerProfit(name=p.name, profit=p.profit)
            for p in updated
            if p.group == "defenders" and p.active
        ],
    )


def run_security_simulation(
    scenario: SecurityScenario, cancel_event: Event | None = None
) -> SimulationReport:
    """Run the whole pipeline for one scenario."""
    logger.info(
        "Simulating scenario %s: %d subsystems, %d vulnerabilities, %d players",
        scenario.id,
        scenario.num_subsystems,
        len(scenario.vulnerabilities),
        len(scenario.players),
    )

    risk_scores = compute_risk_scores(
        scenario.functional_matrix,
        scenario.topology_matrix,
        scenario.num_subsystems,
        scenario.w1,
        scenario.w2,
    )
    details = compute_vulnerability_details(
        scenario.vulnerabilities, risk_scores, scenario.k4, scenario.k5
    )
    nash = calculate_nash_equilibrium(details, scenario.players, cancel_event=cancel_event)

    return SimulationReport(
        scenario_id=scenario.id,
        risk_scores=risk_scores,
        vulnerability_details=details,
        patch_priority=prioritize_patches(details),
        profit_distribution=distribute_player_profits(details, scenario.players),
        nash=nash,
        interpretation=interpret_nash_equilibrium_strategies(nash, details),
    )
