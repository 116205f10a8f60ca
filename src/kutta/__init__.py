"""Explicit Runge-Kutta integration of ``y' = f(t, y)`` for scalar, vector
and tensor states.
"""

from kutta.algorithms import (AdaptiveConfig, AdaptiveRK, ButcherTable,
                              RungeKutta, Trajectory, get_table, integrate)
from kutta.algorithms.utils.exceptions import (ConfigurationError,
                                               ConvergenceError, KuttaError,
                                               NonConvergenceError)

__version__ = "0.1.0"

__all__ = [
    "AdaptiveConfig",
    "AdaptiveRK",
    "ButcherTable",
    "ConfigurationError",
    "ConvergenceError",
    "KuttaError",
    "NonConvergenceError",
    "RungeKutta",
    "Trajectory",
    "get_table",
    "integrate",
]
