"""Tests for the exact and approximate Nash plugins."""
from __future__ import annotations

from threading import Event

import pytest

from nashlab.core.registry import registry
from nashlab.presets import default_scenario


@pytest.fixture
def exact_plugin():
    plugin = registry.get_analysis("Exact Nash Equilibrium")
    assert plugin is not None
    return plugin


@pytest.fixture
def approximate_plugin():
    plugin = registry.get_analysis("Approximate Nash Equilibrium")
    assert plugin is not None
    return plugin


class TestExactPlugin:
    def test_plugin_metadata(self, exact_plugin):
        assert exact_plugin.continuous is True
        assert exact_plugin.applicable_to == ("strategic",)

    def test_can_run(self, exact_plugin, prisoners):
        assert exact_plugin.can_run(prisoners) is True
        assert exact_plugin.can_run(default_scenario()) is False

    def test_run_on_prisoners(self, exact_plugin, prisoners):
        result = exact_plugin.run(prisoners)

        assert result.summary == "1 pure, 0 mixed Nash equilibria"
        (solution,) = result.details["solutions"]
        assert solution["action_profile"] == [1, 1]
        assert result.details["cancelled"] is False

    def test_run_on_coordination(self, exact_plugin, coordination):
        result = exact_plugin.run(coordination)
        assert result.summary == "2 pure, 1 mixed Nash equilibria"

    def test_run_on_rock_paper_scissors(self, exact_plugin, rock_paper_scissors):
        result = exact_plugin.run(rock_paper_scissors)
        assert result.summary == "No Nash equilibria found"

    def test_cancel_event_from_config(self, exact_plugin, coordination):
        cancel = Event()
        cancel.set()
        result = exact_plugin.run(coordination, {"_cancel_event": cancel})

        assert result.details["cancelled"] is True
        assert result.summary == "No Nash equilibria found (cancelled)"


class TestApproximatePlugin:
    def test_run_with_config(self, approximate_plugin, chicken):
        result = approximate_plugin.run(chicken, {"max_iterations": 25, "seed": 3})

        assert result.details["iterations"] <= 25
        strategies = result.details["solution"]["strategies"]
        assert len(strategies) == 2
        assert sum(strategies[0]["distribution"]) == pytest.approx(1.0)

    def test_seeded_runs_match(self, approximate_plugin, chicken):
        first = approximate_plugin.run(chicken, {"max_iterations": 25, "seed": 8})
        second = approximate_plugin.run(chicken, {"max_iterations": 25, "seed": 8})
        assert first.details["solution"] == second.details["solution"]

    def test_summary_for_convergence(self, approximate_plugin):
        from nashlab.models import Game

        constant = Game.from_bimatrix([[1, 1], [1, 1]], [[1, 1], [1, 1]])
        result = approximate_plugin.run(constant, {"seed": 0})
        assert result.summary == "Converged after 1 iterations"

    def test_summary_when_cancelled(self, approximate_plugin, chicken):
        cancel = Event()
        cancel.set()
        result = approximate_plugin.run(chicken, {"seed": 1, "_cancel_event": cancel})
        assert result.summary == "Cancelled after 0 iterations"
