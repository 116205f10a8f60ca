"""Adaptive step-size control for embedded Runge-Kutta pairs.

The controller fills one output interval ``[t_prev, t_next]`` with as many
sub-steps as the tolerance requires.  Each attempt evaluates an embedded
pair, measures the relative discrepancy between its two estimates and
either accepts the high-order value or retries with a smaller step.  Only
the value that lands on ``t_next`` is handed back to the caller.

References
----------
Hairer, E.; Norsett, S.; Wanner, G. (1993). "Solving Ordinary Differential
Equations I", Section II.4.
"""

import math
from typing import Any, Callable, Optional, Tuple

import numpy as np

from kutta.algorithms.integrators.configs import _AdaptiveConfig
from kutta.algorithms.integrators.types import _IntegrationState
from kutta.algorithms.utils.exceptions import NonConvergenceError
from kutta.utils.log_config import logger


def _max_magnitude(value: Any) -> Any:
    """Largest per-component magnitude of a scalar, vector or tensor value."""
    return np.max(np.abs(np.asarray(value)))


def relative_error(y_high: Any, y_low: Any) -> Any:
    """Relative discrepancy between the two estimates of an embedded step.

    Parameters
    ----------
    y_high, y_low : Any
        High and low order estimates of the same step.

    Returns
    -------
    scalar
        ``max|y_high - y_low| / max|y_high|``.  Zero when both estimates
        agree exactly (including the all-zero case).  Infinite when the
        reference magnitude vanishes but the estimates differ, or when
        either estimate overflowed to inf or nan, so such steps are rejected.
    """
    # Difference formed with scale-and-add only.
    err = _max_magnitude(y_high + (-1) * y_low)
    if err == 0:
        return 0.0
    ref = _max_magnitude(y_high)
    # nan fails every comparison, inf fails the strict one.
    if not (err < math.inf and ref < math.inf):
        return math.inf
    if ref == 0:
        return math.inf
    return err / ref


class StepSizeController:
    """Drive an embedded stepper across output intervals under a tolerance.

    Parameters
    ----------
    stepper : callable
        ``stepper(t, dt, y) -> (y_high, y_low)``, typically a closure over
        :func:`~kutta.algorithms.integrators.rk.embedded_step`.
    config : :class:`~kutta.algorithms.integrators.configs._AdaptiveConfig`, optional
        Tolerance and termination bounds.  Defaults are read from
        :mod:`~kutta.algorithms.utils.config`.
    order : int or None, optional
        Order of the low-order estimate.  When None rejected steps are
        halved and accepted intermediate steps keep their size instead of
        being halved again.

    Notes
    -----
    After an accepted intermediate sub-step the next step size targets half
    of the tolerance, which damps oscillations between accepted and
    rejected attempts.  The step that lands on the output time leaves the
    candidate untouched so it seeds the next interval.
    """

    def __init__(
        self,
        stepper: Callable[[Any, Any, Any], Tuple[Any, Any]],
        config: Optional[_AdaptiveConfig] = None,
        order: Optional[int] = None,
    ):
        self._stepper = stepper
        self._config = config if config is not None else _AdaptiveConfig()
        self._order = order

    @property
    def config(self) -> _AdaptiveConfig:
        return self._config

    @property
    def order(self) -> Optional[int]:
        return self._order

    def step_factor(self, tol: Any, error: Any) -> Any:
        """Return the clamped multiplier ``(tol / error) ** (1 / order)``.

        Parameters
        ----------
        tol : float
            Error target of the next attempt.
        error : float
            Relative error of the last attempt.

        Returns
        -------
        float
            Factor in ``[min_factor, max_factor]``.
        """
        cfg = self._config
        if error == 0:
            return cfg.max_factor
        factor = (tol / error) ** (1.0 / self._order)
        return min(cfg.max_factor, max(cfg.min_factor, factor))

    def advance(self, state: _IntegrationState, t_next: Any) -> _IntegrationState:
        """Advance *state* until it lands exactly on *t_next*.

        Parameters
        ----------
        state : :class:`~kutta.algorithms.integrators.types._IntegrationState`
            Running (t, y) pair and step-size candidate, mutated in place.
        t_next : scalar
            Output time that closes the interval.  Must not precede
            ``state.current_time``.

        Returns
        -------
        :class:`~kutta.algorithms.integrators.types._IntegrationState`
            The same object, with ``current_time == t_next``.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.NonConvergenceError`
            If a sub-step is rejected ``max_rejections`` times in a row or
            the proposed step falls below ``min_step`` while the remaining part
            of the interval is longer than ``min_step``.
        """
        cfg = self._config
        tol = cfg.tol
        rejections = 0

        while True:
            max_step = t_next - state.current_time
            terminal = state.candidate_step >= max_step
            dt = max_step if terminal else state.candidate_step

            y_high, y_low = self._stepper(state.current_time, dt, state.current_value)
            error = relative_error(y_high, y_low)

            if error > tol:
                state.n_rejected += 1
                rejections += 1
                if self._order is not None:
                    new_step = dt * self.step_factor(tol, error)
                else:
                    new_step = dt / 2
                logger.debug(
                    f"Rejected step t={state.current_time}, dt={dt}: "
                    f"error={float(error):.3e} > tol={tol:.3e}, retry with dt={new_step}"
                )
                too_small = new_step < cfg.min_step and max_step > cfg.min_step
                if rejections >= cfg.max_rejections or too_small:
                    msg = (
                        f"Step-size control failed at t={state.current_time}: "
                        f"{rejections} consecutive rejections, last dt={dt}, "
                        f"error/tol={float(error / tol):.3e}"
                    )
                    logger.error(msg)
                    raise NonConvergenceError(msg, step=dt, error_ratio=error / tol)
                state.candidate_step = new_step
                continue

            rejections = 0
            state.n_accepted += 1
            t_new = state.current_time + dt
            if terminal or t_new >= t_next:
                state.current_time = t_next
                state.current_value = y_high
                return state

            state.current_time = t_new
            state.current_value = y_high
            if self._order is not None:
                state.candidate_step = dt * self.step_factor(tol / 2, error)
            else:
                state.candidate_step = dt
