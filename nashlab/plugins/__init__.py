"""Solver plugins, registered on import."""

from __future__ import annotations

import importlib
import logging
import pkgutil

logger = logging.getLogger(__name__)


def discover_plugins() -> tuple[str, ...]:
    """Import all plugin modules under ``nashlab.plugins`` for registration side-effects."""

    discovered: list[str] = []
    for module_info in pkgutil.iter_modules(__path__, prefix=f"{__name__}."):
        if module_info.ispkg:
            continue
        importlib.import_module(module_info.name)
        logger.info("Discovered plugin module: %s", module_info.name)
        discovered.append(module_info.name)

    return tuple(discovered)
