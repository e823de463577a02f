"""Expected-payoff utilities shared by the solvers.

Payoff tensors have one axis per player. Every helper here works for any
number of players; with two players they reduce to the usual bilinear
forms ``x @ A @ y``.
"""
from __future__ import annotations

from itertools import product
from typing import Iterator, Sequence

import numpy as np


def iter_profiles(players: int, actions: int) -> Iterator[tuple[int, ...]]:
    """Enumerate pure profiles with player 0's action as the outermost loop."""
    return product(range(actions), repeat=players)


def pure_distribution(action: int, num_actions: int) -> list[float]:
    """Distribution that plays ``action`` with probability 1."""
    distribution = [0.0] * num_actions
    distribution[action] = 1.0
    return distribution


def action_payoffs(
    payoffs: np.ndarray, distributions: Sequence[np.ndarray], player: int
) -> np.ndarray:
    """Expected payoff of each of ``player``'s actions against the others' mixes.

    Contracts every opponent axis of the payoff tensor with that opponent's
    distribution, leaving a vector indexed by the player's own action.
    """
    result = np.asarray(payoffs, dtype=float)
    # Highest axis first so the remaining axis indices stay valid
    for axis in reversed(range(result.ndim)):
        if axis == player:
            continue
        result = np.tensordot(result, np.asarray(distributions[axis], dtype=float), axes=([axis], [0]))
    return result


def expected_payoff(
    payoffs: np.ndarray, distributions: Sequence[np.ndarray], player: int
) -> float:
    return float(np.dot(distributions[player], action_payoffs(payoffs, distributions, player)))


def expected_payoffs(
    payoff_arrays: Sequence[np.ndarray], distributions: Sequence[Sequence[float]]
) -> list[float]:
    """Expected payoff of every player under a joint mixed profile."""
    dists = [np.asarray(d, dtype=float) for d in distributions]
    return [expected_payoff(payoffs, dists, player) for player, payoffs in enumerate(payoff_arrays)]


def normalize(distribution: np.ndarray) -> np.ndarray:
    """Rescale ``distribution`` in place to sum to 1.

    A distribution whose sum is not positive is left untouched.
    """
    total = float(distribution.sum())
    if total > 0:
        distribution /= total
    return distribution
