"""Tests for the solver registry."""
from __future__ import annotations

import pytest

from nashlab.core.errors import UnknownSolverError
from nashlab.core.registry import AnalysisPlugin, AnalysisResult, Registry, registry


class DummyPlugin:
    name = "Dummy"
    description = "Does nothing"
    applicable_to = ("strategic",)
    continuous = False

    def can_run(self, game):
        return True

    def run(self, game, config=None):
        return AnalysisResult(summary="ok", details={})

    def summarize(self, result):
        return result.summary


class TestRegistry:
    def test_register_and_get(self):
        local = Registry()
        plugin = DummyPlugin()
        local.register_analysis(plugin)

        assert local.get_analysis("Dummy") is plugin
        assert local.get_analysis("Missing") is None
        assert list(local.analyses()) == [plugin]

    def test_require_unknown(self):
        with pytest.raises(UnknownSolverError, match="Unknown solver: Missing"):
            Registry().require_analysis("Missing")

    def test_dummy_satisfies_protocol(self):
        assert isinstance(DummyPlugin(), AnalysisPlugin)

    def test_analyses_for_format(self):
        local = Registry()
        local.register_analysis(DummyPlugin())
        assert [p.name for p in local.analyses_for("strategic")] == ["Dummy"]
        assert local.analyses_for("security") == []


class TestGlobalRegistry:
    def test_builtin_solvers_registered(self):
        names = {p.name for p in registry.analyses()}
        assert {
            "Exact Nash Equilibrium",
            "Approximate Nash Equilibrium",
            "Security Game Equilibrium",
        } <= names

    def test_security_solver_by_format(self):
        assert [p.name for p in registry.analyses_for("security")] == ["Security Game Equilibrium"]
