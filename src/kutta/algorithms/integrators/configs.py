from dataclasses import dataclass
from typing import Optional

from kutta.algorithms.utils.config import (MAX_FACTOR, MAX_REJECTIONS,
                                           MIN_FACTOR, MIN_STEP, TOL)
from kutta.algorithms.utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class _AdaptiveConfig:
    """Configuration of the adaptive step-size controller.

    Parameters
    ----------
    tol : float, default :data:`~kutta.algorithms.utils.config.TOL`
        Relative tolerance on the local error estimate.
    initial_step : float or None, default None
        First step size attempted.  When None the length of the first
        output interval is used.
    min_step : float, default :data:`~kutta.algorithms.utils.config.MIN_STEP`
        Smallest step size the controller may propose before giving up.
    max_rejections : int, default :data:`~kutta.algorithms.utils.config.MAX_REJECTIONS`
        Maximum number of consecutive rejections of a single sub-step.
    min_factor, max_factor : float
        Clamp applied to the step-size adjustment factor.
    """

    tol: float = TOL
    initial_step: Optional[float] = None
    min_step: float = MIN_STEP
    max_rejections: int = MAX_REJECTIONS
    min_factor: float = MIN_FACTOR
    max_factor: float = MAX_FACTOR

    def __post_init__(self):
        if not self.tol > 0:
            raise ConfigurationError(f"tol must be positive, got {self.tol}")
        if self.initial_step is not None and not self.initial_step > 0:
            raise ConfigurationError(f"initial_step must be positive, got {self.initial_step}")
        if self.min_step < 0:
            raise ConfigurationError(f"min_step must be non-negative, got {self.min_step}")
        if self.max_rejections < 1:
            raise ConfigurationError(f"max_rejections must be at least 1, got {self.max_rejections}")
        if not 0 < self.min_factor < 1 < self.max_factor:
            raise ConfigurationError(
                f"Step factors must satisfy 0 < min_factor < 1 < max_factor, "
                f"got ({self.min_factor}, {self.max_factor})"
            )
