"""In-process solver registry.

Solver plugins register themselves by calling ``registry.register_analysis``
at import time; see ``nashlab.plugins.discover_plugins``.
"""
from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from nashlab.core.errors import UnknownSolverError
from nashlab.models import AnyGame


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    summary: str
    details: dict[str, Any]


@runtime_checkable
class AnalysisPlugin(Protocol):
    """Interface for solver plugins."""

    name: str
    description: str
    applicable_to: tuple[str, ...]
    continuous: bool

    def can_run(self, game: AnyGame) -> bool:
        ...

    def run(self, game: AnyGame, config: dict | None = None) -> AnalysisResult:
        ...

    def summarize(self, result: AnalysisResult) -> str:
        ...


class Registry:
    def __init__(self) -> None:
        self._analysis: dict[str, AnalysisPlugin] = {}

    def register_analysis(self, plugin: AnalysisPlugin) -> None:
        self._analysis[plugin.name] = plugin

    def analyses(self) -> Iterable[AnalysisPlugin]:
        return self._analysis.values()

    def analyses_for(self, format_name: str) -> list[AnalysisPlugin]:
        """Plugins whose ``applicable_to`` includes ``format_name``."""
        return [p for p in self._analysis.values() if format_name in p.applicable_to]

    def get_analysis(self, name: str) -> AnalysisPlugin | None:
        return self._analysis.get(name)

    def require_analysis(self, name: str) -> AnalysisPlugin:
        plugin = self._analysis.get(name)
        if plugin is None:
            raise UnknownSolverError(name, sorted(self._analysis))
        return plugin


registry = Registry()
"""Global registry instance populated by ``nashlab.plugins``."""
