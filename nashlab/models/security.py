"""Models for the patch-prioritization security game.

The defender coalition chooses which vulnerabilities to patch and the
attacker coalition chooses which to exploit. Both choices are bitmasks over
the vulnerability list: bit ``i`` set means vulnerability ``i`` is
patched/exploited.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from nashlab.config import SecurityGameConfig

PlayerGroup = Literal["attackers", "defenders"]


class Vulnerability(BaseModel):
    """Raw vulnerability report for one subsystem.

    Accepts both snake_case names and the camelCase keys used by the UI
    (``subsystemIndex``, ``impactScore``, ...).
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    subsystem_index: int = Field(ge=0, alias="subsystemIndex")
    impact_score: float = Field(ge=0.0, le=10.0, alias="impactScore")
    exploit_score: float = Field(ge=0.0, le=10.0, alias="exploitScore")
    exploit_exists: int = Field(default=0, ge=0, le=1, alias="exploitExists")
    cve_id: str | None = Field(default=None, alias="cveId")


class VulnerabilityDetail(BaseModel):
    """Payoff-relevant quantities derived from a vulnerability and its subsystem risk.

    Serializes with the short names used in the payoff formulas
    (``iA``, ``cD``, ``cA``, ``prA``).
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str
    subsystem_index: int = Field(ge=0, alias="subsystemIndex")
    risk: float = 0.0
    likelihood: float = 0.0
    i_a: float = Field(alias="iA")  # damage an attacker can cause
    c_d: float = Field(alias="cD")  # defender's cost to patch
    c_a: float = Field(alias="cA")  # attacker's cost to exploit
    pr_a: float = Field(alias="prA")  # attacker's net profit on success
    vul_severity: float = Field(default=0.0, alias="vulSeverity")

    @property
    def roi_ratio(self) -> float:
        """Defender return on patching: impact prevented per unit of cost."""
        return self.i_a / (self.c_d + SecurityGameConfig.PRIORITY_COST_OFFSET)


class SecurityPlayer(BaseModel):
    """A participant that belongs to the attacker or defender coalition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int
    name: str
    group: PlayerGroup
    active: bool = True
    role: str | None = None
    profit: float = 0.0


class PureSecurityEquilibrium(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    defender_strategy: int  # patch mask
    attacker_strategy: int  # exploit mask
    defender_payoff: float
    attacker_payoff: float


class MixedSecurityEquilibrium(BaseModel):
    """Replicator dynamics approximation over all patch/exploit masks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    defender_strategy: list[float]
    attacker_strategy: list[float]
    defender_payoff: float
    attacker_payoff: float
    iterations: int


class SecurityNashResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    has_nash: bool
    message: str | None = None
    pure_nash_equilibria: list[PureSecurityEquilibrium] = Field(default_factory=list)
    mixed_nash: MixedSecurityEquilibrium | None = None
    # Shape (2^k, 2^k, 2): [defender mask, attacker mask] -> (defender, attacker)
    payoff_matrix: np.ndarray | None = Field(default=None, repr=False)
    cancelled: bool = False


class InterpretedPureStrategy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    defender_actions: list[str]
    attacker_actions: list[str]
    defender_payoff: float
    attacker_payoff: float


class StrategyWeight(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    strategy: str
    probability: float


class InterpretedMixedStrategy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    defender_strategy_distribution: list[StrategyWeight]
    attacker_strategy_distribution: list[StrategyWeight]
    defender_payoff: float
    attacker_payoff: float


class InterpretedStrategies(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    message: str | None = None
    pure_strategies: list[InterpretedPureStrategy] = Field(default_factory=list)
    mixed_strategy: InterpretedMixedStrategy | None = None


class PlayerProfit(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    profit: float


class ProfitDistribution(BaseModel):
    """Coalition profits split equally among each coalition's active members."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_attacker_profit: float
    total_defender_profit: float
    players: list[SecurityPlayer]
    attackers: list[PlayerProfit] = Field(default_factory=list)
    defenders: list[PlayerProfit] = Field(default_factory=list)


class SecurityScenario(BaseModel):
    """Everything needed to run one patch-prioritization simulation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = "custom"
    title: str = "Custom Scenario"
    num_subsystems: int = Field(ge=1)
    functional_matrix: list[list[float]]
    topology_matrix: list[list[float]]
    w1: float = 1.0
    w2: float = 1.0
    k4: float = Field(default=1.0, ge=0.0)
    k5: float = Field(default=2.0, ge=0.0)
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    players: list[SecurityPlayer] = Field(default_factory=list)
    format_name: Literal["security"] = "security"

    @model_validator(mode="after")
    def _check_dimensions(self) -> SecurityScenario:
        n = self.num_subsystems
        for label, matrix in (
            ("Functional", self.functional_matrix),
            ("Topology", self.topology_matrix),
        ):
            if len(matrix) != n or any(len(row) != n for row in matrix):
                raise ValueError(f"{label} matrix must be {n}x{n}")
        for vul in self.vulnerabilities:
            if vul.subsystem_index >= n:
                raise ValueError(
                    f"Vulnerability references subsystem {vul.subsystem_index}, "
                    f"but only {n} subsystems exist"
                )
        return self


class SimulationReport(BaseModel):
    """Everything the patch simulator derives from a scenario."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    scenario_id: str
    risk_scores: list[float]
    vulnerability_details: list[VulnerabilityDetail]
    patch_priority: list[VulnerabilityDetail]
    profit_distribution: ProfitDistribution
    nash: SecurityNashResult
    interpretation: InterpretedStrategies
