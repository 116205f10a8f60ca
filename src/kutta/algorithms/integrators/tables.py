"""Name to Butcher table registry of the built-in methods.

The registry maps lower-case method names to
:class:`~kutta.algorithms.integrators.tableau.ButcherTable` instances whose
coefficients are exact rationals.  :func:`~kutta.algorithms.integrators.tables.get_table`
returns them converted to the scalar field requested by the caller.
"""

from fractions import Fraction
from typing import Any, Callable, Dict, Tuple

import mpmath

from kutta.algorithms.integrators.coefficients.euler import A as EULER_A
from kutta.algorithms.integrators.coefficients.euler import B as EULER_B
from kutta.algorithms.integrators.coefficients.euler import C as EULER_C
from kutta.algorithms.integrators.coefficients.heun import A as HEUN_A
from kutta.algorithms.integrators.coefficients.heun import B as HEUN_B
from kutta.algorithms.integrators.coefficients.heun import C as HEUN_C
from kutta.algorithms.integrators.coefficients.rk3 import A as RK3_A
from kutta.algorithms.integrators.coefficients.rk3 import B as RK3_B
from kutta.algorithms.integrators.coefficients.rk3 import C as RK3_C
from kutta.algorithms.integrators.coefficients.rk4 import A as RK4_A
from kutta.algorithms.integrators.coefficients.rk4 import B as RK4_B
from kutta.algorithms.integrators.coefficients.rk4 import C as RK4_C
from kutta.algorithms.integrators.coefficients.rk23 import \
    B_HIGH as RK23_B_HIGH
from kutta.algorithms.integrators.coefficients.rk23 import B_LOW as RK23_B_LOW
from kutta.algorithms.integrators.coefficients.rk23 import A as RK23_A
from kutta.algorithms.integrators.coefficients.rk23 import C as RK23_C
from kutta.algorithms.integrators.coefficients.rk23 import P as RK23_P
from kutta.algorithms.integrators.coefficients.rk45 import \
    B_HIGH as RK45_B_HIGH
from kutta.algorithms.integrators.coefficients.rk45 import B_LOW as RK45_B_LOW
from kutta.algorithms.integrators.coefficients.rk45 import A as RK45_A
from kutta.algorithms.integrators.coefficients.rk45 import C as RK45_C
from kutta.algorithms.integrators.coefficients.rk45 import P as RK45_P
from kutta.algorithms.integrators.tableau import ButcherTable
from kutta.algorithms.utils.config import MPMATH_DPS
from kutta.algorithms.utils.exceptions import ConfigurationError

EULER = ButcherTable(a=EULER_A, b=EULER_B, c=EULER_C, name="euler")
HEUN = ButcherTable(a=HEUN_A, b=HEUN_B, c=HEUN_C, name="heun")
RK3 = ButcherTable(a=RK3_A, b=RK3_B, c=RK3_C, name="rk3")
RK4 = ButcherTable(a=RK4_A, b=RK4_B, c=RK4_C, name="rk4")
BOGACKI_SHAMPINE = ButcherTable(
    a=RK23_A, b=RK23_B_HIGH, c=RK23_C, b2=RK23_B_LOW, order=RK23_P, name="bogacki_shampine"
)
DOPRI5 = ButcherTable(
    a=RK45_A, b=RK45_B_HIGH, c=RK45_C, b2=RK45_B_LOW, order=RK45_P, name="dopri5"
)

FIXED_METHODS: Tuple[str, ...] = ("euler", "rk3", "rk4", "heun")

_REGISTRY: Dict[str, ButcherTable] = {
    "euler": EULER,
    "heun": HEUN,
    "rk3": RK3,
    "rk4": RK4,
    "bogacki_shampine": BOGACKI_SHAMPINE,
    "rk23": BOGACKI_SHAMPINE,
    "dopri5": DOPRI5,
    "rk45": DOPRI5,
}


def _mpf(x: Any) -> Any:
    # Fractions go through their exact ratio so no digit is lost to float.
    if isinstance(x, Fraction):
        return mpmath.mpf(x.numerator) / mpmath.mpf(x.denominator)
    return mpmath.mpf(x)


_SCALARS: Dict[str, Callable[[Any], Any]] = {
    "float": float,
    "fraction": Fraction,
    "mpmath": _mpf,
}


def available_methods() -> Tuple[str, ...]:
    """Return the sorted names accepted by :func:`~kutta.algorithms.integrators.tables.get_table`."""
    return tuple(sorted(_REGISTRY))


def get_table(name: str, scalar: "str | Callable[[Any], Any]" = "float") -> ButcherTable:
    """Resolve a method name to its Butcher table.

    Parameters
    ----------
    name : str
        Method name (case insensitive), see
        :func:`~kutta.algorithms.integrators.tables.available_methods`.
    scalar : str or callable, default "float"
        Scalar field of the returned coefficients.  One of ``"float"``,
        ``"fraction"``, ``"mpmath"`` or a conversion callable.  With
        ``"mpmath"`` the working precision is raised to at least
        :data:`~kutta.algorithms.utils.config.MPMATH_DPS` digits.

    Returns
    -------
    :class:`~kutta.algorithms.integrators.tableau.ButcherTable`
        The method in the requested precision.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
        If *name* or *scalar* is unknown.
    """
    key = name.lower()
    if key not in _REGISTRY:
        raise ConfigurationError(
            f"Unknown Runge-Kutta method '{name}'. Available: {', '.join(available_methods())}"
        )
    if isinstance(scalar, str):
        if scalar not in _SCALARS:
            raise ConfigurationError(
                f"Unknown scalar field '{scalar}'. Available: {', '.join(sorted(_SCALARS))}"
            )
        if scalar == "mpmath" and mpmath.mp.dps < MPMATH_DPS:
            mpmath.mp.dps = MPMATH_DPS
        scalar = _SCALARS[scalar]
    return _REGISTRY[key].astype(scalar)
