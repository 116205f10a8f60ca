"""Provide explicit Runge-Kutta integrators driven by Butcher tables.

Every method shares one generic implementation of the stage recurrence.
The generic routines work with any state type that supports multiplication
by a scalar and addition (floats, :class:`fractions.Fraction`,
:class:`mpmath.mpf`, numpy arrays of any shape).  For ``float64`` vector
states a numba compiled path evaluates the same recurrence on the dense
tableau arrays.

Both fixed and adaptive step-size drivers are provided together with small
convenience factories that select a method by name.

References
----------
Hairer, E.; Norsett, S.; Wanner, G. (1993). "Solving Ordinary Differential
Equations I".

Dormand, J. R.; Prince, P. J. (1980). "A family of embedded Runge-Kutta
formulas".
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

import numba
import numpy as np
from numba.core.dispatcher import Dispatcher

from kutta.algorithms.integrators.base import _Integrator
from kutta.algorithms.integrators.configs import _AdaptiveConfig
from kutta.algorithms.integrators.control import StepSizeController
from kutta.algorithms.integrators.tableau import ButcherTable
from kutta.algorithms.integrators.tables import get_table
from kutta.algorithms.integrators.types import (_IntegrationState,
                                                _Trajectory)
from kutta.algorithms.utils.config import FASTMATH
from kutta.algorithms.utils.exceptions import ConfigurationError
from kutta.utils.log_config import logger


def weighted_combination(values: Sequence[Any], coeffs: Sequence[Any]) -> Any:
    """Return ``sum(coeffs[i] * values[i])``.

    The accumulator is seeded with the first term, so the value type does
    not need an additive identity.

    Parameters
    ----------
    values : sequence
        Stage derivatives (or any values supporting ``*`` and ``+``).
    coeffs : sequence
        Scalar weights, one per value.

    Returns
    -------
    Any
        The linear combination.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
        If the sequences differ in length or are empty.
    """
    if len(values) != len(coeffs):
        raise ConfigurationError(
            f"Coefficient row of length {len(coeffs)} does not match {len(values)} values"
        )
    if len(coeffs) == 0:
        raise ConfigurationError("Weighted combination needs at least one term")
    result = coeffs[0] * values[0]
    for coeff, value in zip(coeffs[1:], values[1:]):
        result = result + coeff * value
    return result


def _stage_derivatives(f, t, dt, y, table: ButcherTable) -> List[Any]:
    k = []
    for a_i, c_i in zip(table.a, table.c):
        if a_i:
            y_stage = y + dt * weighted_combination(k, a_i)
        else:
            y_stage = y
        k.append(f(t + c_i * dt, y_stage))
    return k


def explicit_step(f: Callable[[Any, Any], Any], t: Any, dt: Any, y: Any, table: ButcherTable) -> Any:
    """Advance ``y' = f(t, y)`` by one explicit Runge-Kutta step.

    Parameters
    ----------
    f : callable
        Right-hand side ``f(t, y)``.
    t : scalar
        Start time.
    dt : scalar
        Step size.
    y : Any
        Value at *t*.
    table : :class:`~kutta.algorithms.integrators.tableau.ButcherTable`
        Method description.

    Returns
    -------
    Any
        Approximation of ``y(t + dt)``.
    """
    k = _stage_derivatives(f, t, dt, y, table)
    return y + dt * weighted_combination(k, table.b)


def embedded_step(f: Callable[[Any, Any], Any], t: Any, dt: Any, y: Any, table: ButcherTable) -> Tuple[Any, Any]:
    """Advance one step and return both estimates of an embedded pair.

    Parameters
    ----------
    f, t, dt, y, table
        As for :func:`~kutta.algorithms.integrators.rk.explicit_step`.
        *table* must carry secondary weights ``b2``.

    Returns
    -------
    tuple
        ``(y_high, y_low)`` computed from the same stage derivatives with
        weights ``b`` and ``b2`` respectively.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
        If *table* has no ``b2``.
    """
    if table.b2 is None:
        raise ConfigurationError(f"Butcher table '{table.name}' has no embedded weights (b2)")
    k = _stage_derivatives(f, t, dt, y, table)
    y_high = y + dt * weighted_combination(k, table.b)
    y_low = y + dt * weighted_combination(k, table.b2)
    return y_high, y_low


def step(f: Callable[[Any, Any], Any], t: Any, dt: Any, y: Any, method: str = "rk4", scalar="float") -> Any:
    """Single explicit step of a named method, e.g. ``step(f, t, dt, y, "heun")``."""
    return explicit_step(f, t, dt, y, get_table(method, scalar))


def _named_step(method: str) -> Callable[..., Any]:
    table = get_table(method)

    def named_step(f: Callable[[Any, Any], Any], t: Any, dt: Any, y: Any) -> Any:
        return explicit_step(f, t, dt, y, table)

    named_step.__name__ = f"{method}_step"
    named_step.__qualname__ = named_step.__name__
    named_step.__doc__ = (
        f"One explicit step of the '{method}' method, ``y(t + dt)`` from ``y(t)``.\n\n"
        "Coefficients are ``float``; use :func:`~kutta.algorithms.integrators.rk.step`\n"
        "with ``scalar=...`` for other scalar fields."
    )
    return named_step


euler_step = _named_step("euler")
rk3_step = _named_step("rk3")
rk4_step = _named_step("rk4")
heun_step = _named_step("heun")


@numba.njit(cache=False, fastmath=FASTMATH)
def _stages_jit_kernel(f, t, y, h, A, C):
    s = C.size
    k = np.empty((s, y.size), dtype=np.float64)
    k[0] = f(t + C[0] * h, y)
    for i in range(1, s):
        y_stage = y.copy()
        for j in range(i):
            a_ij = A[i, j]
            if a_ij != 0.0:
                y_stage += h * a_ij * k[j]
        k[i] = f(t + C[i] * h, y_stage)
    return k


@numba.njit(cache=False, fastmath=FASTMATH)
def _combine_jit_kernel(y, h, k, B):
    y_new = y.copy()
    for j in range(B.size):
        b_j = B[j]
        if b_j != 0.0:
            y_new += h * b_j * k[j]
    return y_new


@numba.njit(cache=False, fastmath=FASTMATH)
def rk_step_jit_kernel(f, t, y, h, A, B, C):
    k = _stages_jit_kernel(f, t, y, h, A, C)
    return _combine_jit_kernel(y, h, k, B)


@numba.njit(cache=False, fastmath=FASTMATH)
def rk_embedded_step_jit_kernel(f, t, y, h, A, B_HIGH, B_LOW, C):
    k = _stages_jit_kernel(f, t, y, h, A, C)
    y_high = _combine_jit_kernel(y, h, k, B_HIGH)
    y_low = _combine_jit_kernel(y, h, k, B_LOW)
    return y_high, y_low


def _build_jit_rhs(f: Callable[[Any, Any], Any]) -> Callable[[float, np.ndarray], np.ndarray]:
    """Return *f* as a numba dispatcher, compiling it when needed."""
    if isinstance(f, Dispatcher):
        return f
    logger.debug(f"Compiling right-hand side {getattr(f, '__name__', f)} with numba")
    return numba.njit(cache=False, fastmath=FASTMATH)(f)


def _as_jit_state(y0: Any) -> np.ndarray:
    y = np.ascontiguousarray(y0, dtype=np.float64)
    if y.ndim != 1:
        raise ValueError(f"Compiled integration needs a 1-D state, got shape {y.shape}")
    return y


class _RungeKuttaBase(_Integrator):
    """Provide shared functionality of explicit Runge-Kutta schemes.

    Parameters
    ----------
    table : :class:`~kutta.algorithms.integrators.tableau.ButcherTable`
        Method description.
    name : str or None, optional
        Identifier, defaults to the table name.
    jit : bool, default False
        Route ``float64`` vector problems through the numba kernels.
    **options
        Additional keyword options forwarded to the base :class:`~kutta.algorithms.integrators.base._Integrator`.

    Notes
    -----
    The class is **not** intended to be used directly.  Concrete subclasses
    expose a public interface compliant with
    :class:`~kutta.algorithms.integrators.base._Integrator`.
    """

    def __init__(self, table: ButcherTable, name: Optional[str] = None, jit: bool = False, **options):
        self._table = table
        self._jit = jit
        super().__init__(name if name is not None else table.name, **options)

    @property
    def table(self) -> ButcherTable:
        """Butcher table of the method."""
        return self._table

    @property
    def order(self) -> Optional[int]:
        """Return the order of the embedded estimate, None for fixed-step tables."""
        return self._table.order

    @property
    def jit(self) -> bool:
        return self._jit


class _FixedStepRK(_RungeKuttaBase):
    """Implement an explicit fixed-step Runge-Kutta scheme.

    One step is taken per output interval, so the step size is the spacing
    of the *t_vals* array supplied to :func:`~kutta.algorithms.integrators.rk._FixedStepRK.integrate`.
    """

    def integrate(self, f: Callable[[Any, Any], Any], y0: Any, t_vals: Sequence[Any], **kwargs) -> _Trajectory:
        """Integrate ``y' = f(t, y)`` with one step per output interval."""
        self.validate_inputs(f, y0, t_vals)
        logger.debug(f"{self}: fixed-step integration over {len(t_vals)} output times")

        if self._jit:
            A, B, _, C = self._table.as_arrays()
            times = np.asarray(t_vals, dtype=np.float64)
            states = _FixedStepRK._integrate_fixed_rk(_build_jit_rhs(f), _as_jit_state(y0), times, A, B, C)
            return _Trajectory(times=list(t_vals), values=list(states))

        values = [y0]
        for t_n, t_next in zip(t_vals[:-1], t_vals[1:]):
            values.append(explicit_step(f, t_n, t_next - t_n, values[-1], self._table))
        return _Trajectory(times=list(t_vals), values=values)

    @staticmethod
    @numba.njit(cache=False, fastmath=FASTMATH)
    def _integrate_fixed_rk(f, y0, t_vals, A, B, C):
        n_steps = t_vals.size
        states = np.empty((n_steps, y0.size), dtype=np.float64)
        states[0] = y0
        for idx in range(n_steps - 1):
            t_n = t_vals[idx]
            h = t_vals[idx + 1] - t_n
            states[idx + 1] = rk_step_jit_kernel(f, t_n, states[idx], h, A, B, C)
        return states


class _AdaptiveStepRK(_RungeKuttaBase):
    """Implement an embedded adaptive Runge-Kutta integrator.

    Parameters
    ----------
    table : :class:`~kutta.algorithms.integrators.tableau.ButcherTable`
        Embedded method, must carry ``b2``.
    config : :class:`~kutta.algorithms.integrators.configs._AdaptiveConfig`, optional
        Controller settings.  Keyword options matching its fields (``tol``,
        ``min_step``, ...) build one when *config* is omitted.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
        If *table* is not an embedded pair.
    """

    _CONFIG_FIELDS = ("tol", "initial_step", "min_step", "max_rejections", "min_factor", "max_factor")

    def __init__(self, table: ButcherTable, config: Optional[_AdaptiveConfig] = None,
                 name: Optional[str] = None, jit: bool = False, **options):
        if not table.is_embedded:
            raise ConfigurationError(f"Adaptive integration needs an embedded table, '{table.name}' has no b2")
        cfg_opts = {key: options.pop(key) for key in self._CONFIG_FIELDS if key in options}
        if config is None:
            config = _AdaptiveConfig(**cfg_opts)
        elif cfg_opts:
            raise ConfigurationError("Pass either config or individual controller options, not both")
        self._config = config
        super().__init__(table, name=name, jit=jit, **options)

    @property
    def config(self) -> _AdaptiveConfig:
        return self._config

    def _build_stepper(self, f):
        if self._jit:
            A, B_HIGH, B_LOW, C = self._table.as_arrays()
            f_jit = _build_jit_rhs(f)

            def stepper(t, dt, y):
                return rk_embedded_step_jit_kernel(f_jit, float(t), y, float(dt), A, B_HIGH, B_LOW, C)
            return stepper

        table = self._table

        def stepper(t, dt, y):
            return embedded_step(f, t, dt, y, table)
        return stepper

    def integrate(self, f: Callable[[Any, Any], Any], y0: Any, t_vals: Sequence[Any], **kwargs) -> _Trajectory:
        """Integrate ``y' = f(t, y)``, filling each output interval adaptively.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.NonConvergenceError`
            If some interval cannot be resolved to the tolerance.
        """
        self.validate_inputs(f, y0, t_vals)
        if self._jit:
            y0 = _as_jit_state(y0)

        times = list(t_vals)
        values = [y0]
        if len(times) == 1:
            return _Trajectory(times=times, values=values)

        initial_step = self._config.initial_step
        if initial_step is None:
            initial_step = times[1] - times[0]
        state = _IntegrationState(current_time=times[0], current_value=y0, candidate_step=initial_step)
        controller = StepSizeController(self._build_stepper(f), self._config, self._table.order)

        logger.debug(f"{self}: adaptive integration over {len(times)} output times, tol={self._config.tol:.3e}")
        for t_next in times[1:]:
            controller.advance(state, t_next)
            values.append(state.current_value)

        logger.info(
            f"{self}: {state.n_accepted} accepted, {state.n_rejected} rejected sub-steps, "
            f"final dt={state.candidate_step}"
        )
        return _Trajectory(times=times, values=values)


class RungeKutta:
    """Implement a factory class for creating fixed-step Runge-Kutta integrators.

    Examples
    --------
    >>> rk4 = RungeKutta("rk4")
    >>> heun = RungeKutta("heun", scalar="fraction")
    """

    def __new__(cls, method: str = "rk4", scalar="float", **opts):
        """Create a fixed-step integrator for the named method.

        Parameters
        ----------
        method : str, default "rk4"
            Any name known to :func:`~kutta.algorithms.integrators.tables.get_table`.
            Embedded pairs are accepted and propagate their high-order weights.
        scalar : str or callable, default "float"
            Scalar field of the tableau coefficients.
        **opts
            Additional options passed to the integrator constructor.

        Returns
        -------
        :class:`~kutta.algorithms.integrators.rk._FixedStepRK`
            A fixed-step Runge-Kutta integrator instance.
        """
        return _FixedStepRK(get_table(method, scalar), **opts)


class AdaptiveRK:
    """Implement a factory class for creating adaptive step-size Runge-Kutta integrators.

    Examples
    --------
    >>> rk45 = AdaptiveRK("dopri5", tol=1e-8)
    >>> rk23 = AdaptiveRK("bogacki_shampine")
    """

    def __new__(cls, method: str = "dopri5", scalar="float", **opts):
        """Create an adaptive integrator for the named embedded pair.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
            If the method is unknown or is not an embedded pair.
        """
        return _AdaptiveStepRK(get_table(method, scalar), **opts)


def integrate(
    f: Callable[[Any, Any], Any],
    y0: Any,
    t_vals: Sequence[Any],
    method: Optional[str] = None,
    adaptive: bool = False,
    scalar="float",
    **opts,
) -> _Trajectory:
    """Integrate ``y' = f(t, y)`` and return the values at *t_vals*.

    Parameters
    ----------
    f : callable
        Right-hand side ``f(t, y)``.
    y0 : Any
        Initial value at ``t_vals[0]``.
    t_vals : sequence
        Strictly increasing output times.
    method : str or None, optional
        Method name; defaults to ``"rk4"`` in fixed-step mode and
        ``"dopri5"`` in adaptive mode.
    adaptive : bool, default False
        Use the step-size controller instead of one step per interval.
    scalar : str or callable, default "float"
        Scalar field of the tableau coefficients.
    **opts
        Forwarded to the integrator (``jit``, ``tol``, ``config``, ...).

    Returns
    -------
    :class:`~kutta.algorithms.integrators.types._Trajectory`
        Output trajectory.
    """
    if adaptive:
        integrator = AdaptiveRK(method or "dopri5", scalar=scalar, **opts)
    else:
        integrator = RungeKutta(method or "rk4", scalar=scalar, **opts)
    return integrator.integrate(f, y0, t_vals)
