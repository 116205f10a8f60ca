""" Public API for the :mod:`~kutta.algorithms` package.
"""

from .integrators import (AdaptiveConfig, AdaptiveRK, ButcherTable,
                          RungeKutta, Trajectory, get_table, integrate)

__all__ = [
    "AdaptiveConfig",
    "AdaptiveRK",
    "ButcherTable",
    "RungeKutta",
    "Trajectory",
    "get_table",
    "integrate",
]
