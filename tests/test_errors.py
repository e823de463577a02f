"""Tests for the exception hierarchy."""
from __future__ import annotations

from nashlab.core.errors import (
    IncompatibleSolverError,
    InvalidInputError,
    NashlabError,
    UnknownPresetError,
    UnknownSolverError,
    safe_error_message,
)


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(InvalidInputError, ValueError)
        assert issubclass(UnknownPresetError, KeyError)
        assert issubclass(UnknownSolverError, LookupError)
        for cls in (InvalidInputError, UnknownPresetError, UnknownSolverError, IncompatibleSolverError):
            assert issubclass(cls, NashlabError)

    def test_unknown_preset_message_not_quoted(self):
        error = UnknownPresetError("game", "poker", ["chicken"])
        assert str(error) == "Unknown game preset: poker. Available: ['chicken']"

    def test_unknown_solver_keeps_available(self):
        error = UnknownSolverError("Magic", ["Exact Nash Equilibrium"])
        assert error.available == ["Exact Nash Equilibrium"]


class TestSafeErrorMessage:
    def test_value_error_message_kept(self):
        assert safe_error_message(ValueError("bad matrix")) == "bad matrix"

    def test_own_errors_kept(self):
        message = safe_error_message(UnknownPresetError("player", "x", []))
        assert message.startswith("Unknown player preset: x")

    def test_other_errors_reduced_to_type(self):
        assert safe_error_message(RuntimeError("internal path /tmp/x")) == "RuntimeError"
