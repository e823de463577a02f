"""Game, result and security-game models."""

from typing import Union

from nashlab.models.game import Game
from nashlab.models.security import (
    InterpretedStrategies,
    SecurityNashResult,
    SecurityPlayer,
    SecurityScenario,
    Vulnerability,
    VulnerabilityDetail,
)
from nashlab.models.solutions import (
    ApproximateResult,
    EquilibriumSolution,
    ExactResult,
    HistoryEntry,
    PlayerStrategy,
    SearchStep,
)

# Any input a solver plugin may receive
AnyGame = Union[Game, SecurityScenario]

__all__ = [
    "AnyGame",
    "ApproximateResult",
    "EquilibriumSolution",
    "ExactResult",
    "Game",
    "HistoryEntry",
    "InterpretedStrategies",
    "PlayerStrategy",
    "SearchStep",
    "SecurityNashResult",
    "SecurityPlayer",
    "SecurityScenario",
    "Vulnerability",
    "VulnerabilityDetail",
]
