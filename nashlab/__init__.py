"""Nash equilibrium solvers and the vulnerability patching security game."""
from __future__ import annotations

import logging

__version__ = "0.1.0"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for scripts; the library itself adds no handlers."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
