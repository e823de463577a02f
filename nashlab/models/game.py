"""Normal form (strategic form) game model.

Represents games as one payoff tensor per player rather than a tree.
"""

from __future__ import annotations

import math
from typing import Any, Literal, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Nested lists of floats; depth equals the number of players
PayoffTensor = list[Any]


class Game(BaseModel):
    """Strategic form game with a uniform action count.

    - ``matrices[p]`` is player ``p``'s payoff tensor with one axis per player
    - For 2-player games ``matrices[p][i][j]`` is player ``p``'s payoff when
      player 0 plays action ``i`` and player 1 plays action ``j``
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = "custom"
    title: str = "Custom Game"
    description: str | None = None
    players: int = Field(ge=2)
    actions: int = Field(ge=2)
    matrices: list[PayoffTensor]
    action_names: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    format_name: Literal["strategic"] = "strategic"

    @model_validator(mode="before")
    @classmethod
    def _default_action_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("action_names"):
            actions = data.get("actions")
            if isinstance(actions, int) and actions > 0:
                data = {**data, "action_names": [f"Action {i + 1}" for i in range(actions)]}
        return data

    @model_validator(mode="after")
    def _check_shapes(self) -> Game:
        if len(self.matrices) != self.players:
            raise ValueError(
                f"Expected {self.players} payoff matrices, got {len(self.matrices)}"
            )
        if len(self.action_names) != self.actions:
            raise ValueError(
                f"Expected {self.actions} action names, got {len(self.action_names)}"
            )

        expected = (self.actions,) * self.players
        for player, matrix in enumerate(self.matrices):
            try:
                array = np.asarray(matrix, dtype=float)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Payoff matrix for player {player} is not numeric: {e}") from e
            if array.shape != expected:
                raise ValueError(
                    f"Payoff matrix for player {player} has shape {array.shape}, expected {expected}"
                )
            if not np.all(np.isfinite(array)):
                raise ValueError(f"Payoff matrix for player {player} contains non-finite values")
        return self

    @classmethod
    def from_bimatrix(
        cls,
        row_payoffs: Sequence[Sequence[float]],
        col_payoffs: Sequence[Sequence[float]],
        action_names: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> Game:
        """Build a 2-player game from the row and column players' matrices."""
        return cls(
            players=2,
            actions=len(row_payoffs),
            matrices=[
                [[float(v) for v in row] for row in row_payoffs],
                [[float(v) for v in row] for row in col_payoffs],
            ],
            action_names=list(action_names or []),
            **kwargs,
        )

    @property
    def num_profiles(self) -> int:
        """Number of pure strategy profiles (``actions ** players``)."""
        return self.actions**self.players

    def payoff_array(self, player: int) -> np.ndarray:
        """Return a read-only float array of ``player``'s payoffs."""
        array = np.asarray(self.matrices[player], dtype=float)
        array.flags.writeable = False
        return array

    def payoff_arrays(self) -> list[np.ndarray]:
        return [self.payoff_array(p) for p in range(self.players)]

    def payoff(self, player: int, profile: Sequence[int]) -> float:
        """Get one player's payoff for a pure strategy profile."""
        value: Any = self.matrices[player]
        for action in profile:
            value = value[action]
        return float(value)

    def format_profile(self, profile: Sequence[int]) -> str:
        """Human-readable label such as ``P1: Defect, P2: Defect``."""
        return ", ".join(
            f"P{player + 1}: {self.action_names[action]}" for player, action in enumerate(profile)
        )


def is_valid_probability(value: float) -> bool:
    """True for finite values in the closed interval [0, 1]."""
    return not math.isnan(value) and 0.0 <= value <= 1.0
