"""Result and trace models produced by the equilibrium solvers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SolutionType = Literal["pure", "mixed", "approximate"]
StepType = Literal["phase", "testing", "found", "calculating", "warning", "error", "complete"]


class PlayerStrategy(BaseModel):
    """A (possibly mixed) strategy for one player."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    player: int
    distribution: list[float]

    @property
    def is_pure(self) -> bool:
        return sum(1 for p in self.distribution if p == 1.0) == 1 and all(
            p in (0.0, 1.0) for p in self.distribution
        )

    @property
    def support(self) -> list[int]:
        """Actions played with positive probability."""
        return [i for i, p in enumerate(self.distribution) if p > 0]


StrategyProfile = list[PlayerStrategy]


class Indifference(BaseModel):
    """Closed-form indifference probabilities of a 2x2 mixed equilibrium."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    p: float
    q: float


class EquilibriumSolution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: SolutionType
    strategies: StrategyProfile
    payoffs: list[float]
    action_profile: list[int] | None = None
    indifference: Indifference | None = None
    epsilon: float | None = None


class SearchStep(BaseModel):
    """One trace record emitted by the exact solver."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: StepType
    phase: str
    message: str
    progress: float = Field(ge=0.0, le=100.0)
    timestamp: float
    solutions_found: int = 0
    candidate: list[int] | None = None
    solution: EquilibriumSolution | None = None


class ExactResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    solutions: list[EquilibriumSolution]
    time: float  # milliseconds
    type: Literal["exact"] = "exact"
    search_steps: list[SearchStep]
    cancelled: bool = False


class BestResponse(BaseModel):
    """Best pure response and the smoothed target distribution built from it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    best_action: int
    payoff: float
    action_payoffs: list[float]
    strategy: list[float]


class HistoryEntry(BaseModel):
    """One trace record emitted by the approximate solver."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    iteration: int
    player: int | None = None
    strategies: StrategyProfile
    payoffs: list[float]
    improvement: float = 0.0
    improvements: dict[int, float] = Field(default_factory=dict)
    total_improvement: float = 0.0
    action: str
    best_response: BestResponse | None = None
    learning_rate: float | None = None
    timestamp: float


class ConvergenceMetrics(BaseModel):
    """Per-round snapshots collected while the approximate solver runs."""

    model_config = ConfigDict(extra="forbid")

    improvements: list[float] = Field(default_factory=list)
    payoff_history: list[list[float]] = Field(default_factory=list)
    strategy_history: list[StrategyProfile] = Field(default_factory=list)


class ApproximateResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    solution: EquilibriumSolution
    time: float  # milliseconds
    iterations: int
    converged: bool
    history: list[HistoryEntry]
    metrics: ConvergenceMetrics
    cancelled: bool = False
