"""Shared test fixtures for nashlab."""
from __future__ import annotations

import pytest

from nashlab.models import Game, VulnerabilityDetail
from nashlab.plugins import discover_plugins
from nashlab.presets import DEFAULT_VULNERABILITIES, get_preset
from nashlab.security.risk import compute_vulnerability_details

# Register the solver plugins; tests use the registry directly
discover_plugins()


@pytest.fixture
def prisoners() -> Game:
    return get_preset("prisoners")


@pytest.fixture
def coordination() -> Game:
    return get_preset("coordination")


@pytest.fixture
def chicken() -> Game:
    return get_preset("chicken")


@pytest.fixture
def rock_paper_scissors() -> Game:
    return get_preset("rock_paper_scissors")


@pytest.fixture
def three_player_majority() -> Game:
    """Three players, two actions; everyone scores 1 only when all three match."""
    matrix = [[[1.0 if i == j == k else 0.0 for k in range(2)] for j in range(2)] for i in range(2)]
    return Game(id="majority", players=3, actions=2, matrices=[matrix, matrix, matrix])


@pytest.fixture
def default_details() -> list[VulnerabilityDetail]:
    """Default vulnerabilities on three isolated subsystems (all risk scores zero)."""
    return compute_vulnerability_details(DEFAULT_VULNERABILITIES, [0.0, 0.0, 0.0], k4=1.0, k5=2.0)


@pytest.fixture
def custom_roster() -> list[dict]:
    return [
        {"id": 1, "name": "Defender 1", "group": "defenders"},
        {"id": 2, "name": "Attacker 1", "group": "attackers"},
        {"id": 3, "name": "Attacker 2", "group": "attackers"},
    ]
