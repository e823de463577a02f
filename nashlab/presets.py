"""Built-in example games, player rosters and a default security scenario."""
from __future__ import annotations

import logging

from nashlab.core.errors import UnknownPresetError
from nashlab.models.game import Game
from nashlab.models.security import SecurityPlayer, SecurityScenario, Vulnerability

logger = logging.getLogger(__name__)


GAME_PRESETS: dict[str, Game] = {
    "prisoners": Game.from_bimatrix(
        [[3, 0], [5, 1]],
        [[3, 5], [0, 1]],
        action_names=["Cooperate", "Defect"],
        id="prisoners",
        title="Prisoner's Dilemma",
        tags=["classic", "dominant-strategy"],
    ),
    "coordination": Game.from_bimatrix(
        [[5, 0], [0, 5]],
        [[5, 0], [0, 5]],
        action_names=["Strategy A", "Strategy B"],
        id="coordination",
        title="Coordination Game",
        tags=["classic", "coordination"],
    ),
    "chicken": Game.from_bimatrix(
        [[0, 7], [2, 1]],
        [[0, 2], [7, 1]],
        action_names=["Stay", "Swerve"],
        id="chicken",
        title="Chicken Game",
        tags=["classic", "anti-coordination"],
    ),
    "rock_paper_scissors": Game.from_bimatrix(
        [[0, -1, 1], [1, 0, -1], [-1, 1, 0]],
        [[0, 1, -1], [-1, 0, 1], [1, -1, 0]],
        action_names=["Rock", "Paper", "Scissors"],
        id="rock_paper_scissors",
        title="Rock Paper Scissors",
        tags=["classic", "zero-sum"],
    ),
}


def get_preset(name: str) -> Game:
    try:
        return GAME_PRESETS[name].model_copy(deep=True)
    except KeyError:
        raise UnknownPresetError("game", name, sorted(GAME_PRESETS)) from None


def _roster(*players: tuple[str, str, str]) -> list[SecurityPlayer]:
    return [
        SecurityPlayer(id=i, name=name, group=group, role=role)
        for i, (name, group, role) in enumerate(players, start=1)
    ]


# name -> (label, roster)
PLAYER_PRESETS: dict[str, tuple[str, list[SecurityPlayer]]] = {
    "1att-2def": (
        "1 Attacker, 2 Defenders",
        _roster(
            ("Defender Alpha", "defenders", "System Administrator"),
            ("Defender Beta", "defenders", "Security Analyst"),
            ("Attacker X", "attackers", "External Threat"),
        ),
    ),
    "2att-1def": (
        "2 Attackers, 1 Defender",
        _roster(
            ("Defender Prime", "defenders", "Security Lead"),
            ("Attacker Alpha", "attackers", "Malicious Actor"),
            ("Attacker Beta", "attackers", "Exploit Developer"),
        ),
    ),
    "1att-3def": (
        "1 Attacker, 3 Defenders",
        _roster(
            ("Defender Alpha", "defenders", "System Administrator"),
            ("Defender Beta", "defenders", "Security Analyst"),
            ("Defender Gamma", "defenders", "Network Specialist"),
            ("Attacker X", "attackers", "Advanced Persistent Threat"),
        ),
    ),
    "3att-1def": (
        "3 Attackers, 1 Defender",
        _roster(
            ("Defender Prime", "defenders", "Chief Security Officer"),
            ("Attacker Alpha", "attackers", "Threat Actor"),
            ("Attacker Beta", "attackers", "Zero-Day Hunter"),
            ("Attacker Gamma", "attackers", "Social Engineer"),
        ),
    ),
    "custom": (
        "Custom Configuration",
        _roster(
            ("Defender 1", "defenders", "System Administrator"),
            ("Attacker 1", "attackers", "Red Team Lead"),
            ("Attacker 2", "attackers", "Exploit Developer"),
        ),
    ),
}


def get_player_preset(name: str) -> list[SecurityPlayer]:
    """Return a fresh copy of a preset roster."""
    try:
        _, players = PLAYER_PRESETS[name]
    except KeyError:
        raise UnknownPresetError("player", name, sorted(PLAYER_PRESETS)) from None
    return [p.model_copy() for p in players]


DEFAULT_VULNERABILITIES: list[Vulnerability] = [
    Vulnerability(subsystem_index=0, impact_score=5, exploit_score=7, exploit_exists=1),
    Vulnerability(subsystem_index=1, impact_score=4, exploit_score=3, exploit_exists=0),
    Vulnerability(subsystem_index=2, impact_score=7, exploit_score=8, exploit_exists=1),
]


def default_scenario(player_preset: str = "custom") -> SecurityScenario:
    """Three isolated subsystems with the default vulnerabilities."""
    n = 3
    logger.debug("Building default scenario with player preset %s", player_preset)
    return SecurityScenario(
        id="default",
        title="Default Scenario",
        num_subsystems=n,
        functional_matrix=[[0.0] * n for _ in range(n)],
        topology_matrix=[[0.0] * n for _ in range(n)],
        w1=1.0,
        w2=1.0,
        k4=1.0,
        k5=2.0,
        vulnerabilities=list(DEFAULT_VULNERABILITIES),
        players=get_player_preset(player_preset),
    )
