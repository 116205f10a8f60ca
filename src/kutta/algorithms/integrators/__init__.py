""" Public API for the :mod:`~kutta.algorithms.integrators` package.
"""

from .configs import _AdaptiveConfig as AdaptiveConfig
from .control import StepSizeController, relative_error
from .rk import (AdaptiveRK, RungeKutta, embedded_step, euler_step,
                 explicit_step, heun_step, integrate, rk3_step, rk4_step, step,
                 weighted_combination)
from .tableau import ButcherTable
from .tables import available_methods, get_table
from .types import _IntegrationState as IntegrationState
from .types import _Trajectory as Trajectory

__all__ = [
    "AdaptiveConfig",
    "AdaptiveRK",
    "ButcherTable",
    "IntegrationState",
    "RungeKutta",
    "StepSizeController",
    "Trajectory",
    "available_methods",
    "embedded_step",
    "euler_step",
    "explicit_step",
    "get_table",
    "heun_step",
    "integrate",
    "relative_error",
    "rk3_step",
    "rk4_step",
    "step",
    "weighted_combination",
]
