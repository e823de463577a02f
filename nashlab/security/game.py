"""Combinatorial defender-vs-attacker game over vulnerability subsets.

Each coalition's pure strategy is a bitmask over the vulnerability list, so
both sides have ``2^k`` strategies and the payoff matrix has ``4^k`` cells.
This is only tractable for small ``k``; see
``SecurityGameConfig.MAX_VULNERABILITIES``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from threading import Event
from typing import Any

import numpy as np

from nashlab.config import SecurityGameConfig
from nashlab.models.security import (
    InterpretedMixedStrategy,
    InterpretedPureStrategy,
    InterpretedStrategies,
    MixedSecurityEquilibrium,
    PureSecurityEquilibrium,
    SecurityNashResult,
    SecurityPlayer,
    StrategyWeight,
    VulnerabilityDetail,
)

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Cannot calculate Nash equilibrium: Missing players or vulnerabilities"
CANCELLED_MESSAGE = "Nash equilibrium calculation cancelled"


def active_coalitions(
    players: Sequence[SecurityPlayer | Mapping[str, Any]],
) -> tuple[list[SecurityPlayer], list[SecurityPlayer]]:
    """Split the roster into active (attackers, defenders)."""
    roster = [p if isinstance(p, SecurityPlayer) else SecurityPlayer.model_validate(p) for p in players]
    attackers = [p for p in roster if p.group == "attackers" and p.active]
    defenders = [p for p in roster if p.group == "defenders" and p.active]
    return attackers, defenders


def strategy_bits(k: int) -> np.ndarray:
    """Boolean matrix of shape (2^k, k); row ``mask`` holds the bits of ``mask``."""
    masks = np.arange(1 << k)
    return ((masks[:, None] >> np.arange(k)) & 1).astype(float)


def build_payoff_matrix(details: Sequence[VulnerabilityDetail]) -> np.ndarray:
    """Payoffs for every (patch mask, exploit mask) pair.

    Per vulnerability ``i``:

    - patched: defender pays ``cD``
    - patched and exploited: defender recovers ``iA``, attacker loses ``cA``
    - unpatched and exploited: defender loses ``iA``, attacker gains ``prA``

    Returns:
        Array of shape (2^k, 2^k, 2); ``[d, a]`` is (defender, attacker) payoff.
    """
    k = len(details)
    i_a = np.array([d.i_a for d in details], dtype=float)
    c_d = np.array([d.c_d for d in details], dtype=float)
    c_a = np.array([d.c_a for d in details], dtype=float)
    pr_a = np.array([d.pr_a for d in details], dtype=float)

    # Same bit layout for both sides: rows are patch masks, columns exploit masks
    patched = strategy_bits(k)
    exploited = patched

    # Exploiting a patched vulnerability is worth +iA to the defender, an unpatched one -iA
    defender = -(patched @ c_d)[:, None] + ((2.0 * patched - 1.0) * i_a) @ exploited.T
    attacker = -(patched * c_a) @ exploited.T + ((1.0 - patched) * pr_a) @ exploited.T

    return np.stack([defender, attacker], axis=-1)


def find_pure_equilibria(
    payoff_matrix: np.ndarray, epsilon: float = SecurityGameConfig.EPSILON
) -> list[PureSecurityEquilibrium]:
    """Cells where neither coalition gains more than ``epsilon`` by deviating alone.

    Results are in row-major order (defender mask outer, attacker mask inner).
    """
    defender = payoff_matrix[..., 0]
    attacker = payoff_matrix[..., 1]

    # Best defender row in each column, best attacker column in each row
    defender_stable = defender >= defender.max(axis=0, keepdims=True) - epsilon
    attacker_stable = attacker >= attacker.max(axis=1, keepdims=True) - epsilon

    rows, cols = np.nonzero(defender_stable & attacker_stable)
    return [
        PureSecurityEquilibrium(
            defender_strategy=int(i),
            attacker_strategy=int(j),
            defender_payoff=float(defender[i, j]),
            attacker_payoff=float(attacker[i, j]),
        )
        for i, j in zip(rows, cols)
    ]


def _renormalized(candidate: np.ndarray, previous: np.ndarray) -> np.ndarray:
    total = candidate.sum()
    if total <= 0:
        return previous
    return candidate / total


def replicator_dynamics(
    payoff_matrix: np.ndarray,
    iterations: int = SecurityGameConfig.REPLICATOR_ITERATIONS,
    alpha: float = SecurityGameConfig.REPLICATOR_LEARNING_RATE,
    cancel_event: Event | None = None,
) -> MixedSecurityEquilibrium:
    """Approximate a mixed equilibrium with discrete replicator dynamics.

    Starts both coalitions at uniform mixes and applies
    ``x_i <- x_i * (1 + alpha * (f_i - avg_f))`` for a fixed number of
    iterations (no early exit). Probabilities are clipped at zero before
    renormalizing.

    Args:
        payoff_matrix: Array of shape (m, n, 2) from :func:`build_payoff_matrix`.
        iterations: Number of updates to apply.
        alpha: Learning rate.
        cancel_event: Checked before every update; when set, the current mix is returned.

    Returns:
        Final mixed strategies, their expected payoffs and the updates completed.
    """
    defender = payoff_matrix[..., 0]
    attacker = payoff_matrix[..., 1]
    n_def, n_att = defender.shape

    x = np.full(n_def, 1.0 / n_def)
    y = np.full(n_att, 1.0 / n_att)

    completed = 0
    for _ in range(iterations):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Replicator dynamics cancelled after %d iterations", completed)
            break

        # Fitness of each pure strategy against the opponent's current mix
        def_fitness = defender @ y
        att_fitness = x @ attacker
        def_average = float(x @ def_fitness)
        att_average = float(y @ att_fitness)

        new_x = np.maximum(x * (1.0 + alpha * (def_fitness - def_average)), 0.0)
        new_y = np.maximum(y * (1.0 + alpha * (att_fitness - att_average)), 0.0)
        x = _renormalized(new_x, x)
        y = _renormalized(new_y, y)
        completed += 1

    return MixedSecurityEquilibrium(
        defender_strategy=x.tolist(),
        attacker_strategy=y.tolist(),
        defender_payoff=float(x @ defender @ y),
        attacker_payoff=float(x @ attacker @ y),
        iterations=completed,
    )


def calculate_nash_equilibrium(
    vulnerability_details: Sequence[VulnerabilityDetail],
    players: Sequence[SecurityPlayer | Mapping[str, Any]],
    cancel_event: Event | None = None,
    iterations: int = SecurityGameConfig.REPLICATOR_ITERATIONS,
) -> SecurityNashResult:
    """Solve the patch/exploit game exactly (pure) and approximately (mixed).

    Returns ``has_nash=False`` without building the matrix when either
    coalition has no active members, there are no vulnerabilities, or there
    are more than ``SecurityGameConfig.MAX_VULNERABILITIES`` of them.

    A cancelled solve carries ``CANCELLED_MESSAGE`` and keeps ``has_nash``
    only when the pure search or the replicator produced something.
    """
    attackers, defenders = active_coalitions(players)
    k = len(vulnerability_details)

    if not attackers or not defenders or k == 0:
        return SecurityNashResult(has_nash=False, message=MISSING_INPUT_MESSAGE)

    limit = SecurityGameConfig.MAX_VULNERABILITIES
    if k > limit:
        logger.warning("Refusing security game with %d vulnerabilities (limit %d)", k, limit)
        return SecurityNashResult(
            has_nash=False,
            message=(
                f"Cannot calculate Nash equilibrium: {k} vulnerabilities exceed the "
                f"limit of {limit} (the strategy space grows as 2^k)"
            ),
        )

    cancel = cancel_event if cancel_event is not None else Event()
    logger.info(
        "Solving security game: %d vulnerabilities, %d attackers, %d defenders",
        k,
        len(attackers),
        len(defenders),
    )

    payoff_matrix = build_payoff_matrix(vulnerability_details)

    pure: list[PureSecurityEquilibrium] = []
    mixed = None
    if not cancel.is_set():
        pure = find_pure_equilibria(payoff_matrix)
    if not cancel.is_set():
        mixed = replicator_dynamics(payoff_matrix, iterations=iterations, cancel_event=cancel)

    cancelled = cancel.is_set()
    if cancelled:
        logger.info("Security game solve cancelled")
    return SecurityNashResult(
        has_nash=not cancelled or bool(pure) or mixed is not None,
        message=CANCELLED_MESSAGE if cancelled else None,
        pure_nash_equilibria=pure,
        mixed_nash=mixed,
        payoff_matrix=payoff_matrix,
        cancelled=cancelled,
    )


def mask_subsystems(mask: int, details: Sequence[VulnerabilityDetail]) -> list[int]:
    """Subsystem index of every vulnerability whose bit is set in ``mask``."""
    return [d.subsystem_index for i, d in enumerate(details) if mask & (1 << i)]


def _distribution_label(verb: str, mask: int, details: Sequence[VulnerabilityDetail]) -> str:
    subsystems = [f"Subsystem {s + 1}" for s in mask_subsystems(mask, details)]
    if not subsystems:
        return f"{verb} nothing"
    return f"{verb} {', '.join(subsystems)}"


def _distribution(
    verb: str, probabilities: Sequence[float], details: Sequence[VulnerabilityDetail]
) -> list[StrategyWeight]:
    threshold = SecurityGameConfig.DISPLAY_PROBABILITY_THRESHOLD
    return [
        StrategyWeight(strategy=_distribution_label(verb, mask, details), probability=prob)
        for mask, prob in enumerate(probabilities)
        if prob > threshold
    ]


def interpret_nash_equilibrium_strategies(
    nash_result: SecurityNashResult, vulnerability_details: Sequence[VulnerabilityDetail]
) -> InterpretedStrategies:
    """Translate strategy bitmasks into patch/exploit actions on subsystems."""
    if not nash_result.has_nash:
        return InterpretedStrategies(message=nash_result.message)

    pure_strategies = [
        InterpretedPureStrategy(
            defender_actions=[
                f"Patch Subsystem {s + 1}"
                for s in mask_subsystems(eq.defender_strategy, vulnerability_details)
            ],
            attacker_actions=[
                f"Exploit Subsystem {s + 1}"
                for s in mask_subsystems(eq.attacker_strategy, vulnerability_details)
            ],
            defender_payoff=eq.defender_payoff,
            attacker_payoff=eq.attacker_payoff,
        )
        for eq in nash_result.pure_nash_equilibria
    ]

    mixed_strategy = None
    mixed = nash_result.mixed_nash
    if mixed is not None:
        mixed_strategy = InterpretedMixedStrategy(
            defender_strategy_distribution=_distribution(
                "Patch", mixed.defender_strategy, vulnerability_details
            ),
            attacker_strategy_distribution=_distribution(
                "Exploit", mixed.attacker_strategy, vulnerability_details
            ),
            defender_payoff=mixed.defender_payoff,
            attacker_payoff=mixed.attacker_payoff,
        )

    return InterpretedStrategies(pure_strategies=pure_strategies, mixed_strategy=mixed_strategy)
