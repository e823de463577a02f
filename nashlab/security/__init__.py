"""Security-game payoff model for vulnerability patch prioritization."""

from nashlab.security.game import (
    build_payoff_matrix,
    calculate_nash_equilibrium,
    find_pure_equilibria,
    interpret_nash_equilibrium_strategies,
    replicator_dynamics,
)
from nashlab.security.risk import (
    compute_risk_scores,
    compute_vulnerability_details,
    prioritize_patches,
)
from nashlab.security.simulation import distribute_player_profits, run_security_simulation

__all__ = [
    "build_payoff_matrix",
    "calculate_nash_equilibrium",
    "compute_risk_scores",
    "compute_vulnerability_details",
    "distribute_player_profits",
    "find_pure_equilibria",
    "interpret_nash_equilibrium_strategies",
    "prioritize_patches",
    "replicator_dynamics",
    "run_security_simulation",
]
