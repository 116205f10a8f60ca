"""Provide the Butcher tableau description of explicit Runge-Kutta methods.

A tableau is stored in its ragged, strictly lower triangular form: row ``i``
of ``a`` holds the ``i`` weights applied to the previous stage derivatives
when the evaluation point of stage ``i`` is assembled.  Coefficients are
kept in whatever scalar type they were declared with (exact
:class:`fractions.Fraction` for the built-in methods) and converted to the
scalar field of the state with :meth:`~kutta.algorithms.integrators.tableau.ButcherTable.astype`.

References
----------
Butcher, J. C. (2016). "Numerical Methods for Ordinary Differential
Equations".
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

from kutta.algorithms.utils.exceptions import ConfigurationError


def _as_tuple(seq: Sequence[Any]) -> Tuple[Any, ...]:
    return tuple(seq)


@dataclass(frozen=True)
class ButcherTable:
    """Immutable Butcher tableau of an explicit Runge-Kutta method.

    Parameters
    ----------
    a : sequence of sequences
        Stage coefficients.  Row ``i`` has exactly ``i`` entries, row 0 is
        empty.
    b : sequence
        Weights of the propagated solution, one per stage.
    c : sequence
        Nodes, i.e. stage time offsets in units of the step size.
    b2 : sequence or None, default None
        Weights of the embedded estimate.  Only present on tables that
        support local error estimation.
    order : int or None, default None
        Order of the embedded lower-order estimate.  Used as exponent by the
        step-size controller.
    name : str, default "custom"
        Human readable identifier.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
        If the table violates the shape invariants.

    Examples
    --------
    >>> from fractions import Fraction as F
    >>> heun = ButcherTable(a=[[], [1]], b=[F(1, 2), F(1, 2)], c=[0, 1])
    >>> heun.stages
    2
    """

    a: Tuple[Tuple[Any, ...], ...]
    b: Tuple[Any, ...]
    c: Tuple[Any, ...]
    b2: Optional[Tuple[Any, ...]] = None
    order: Optional[int] = None
    name: str = "custom"

    def __post_init__(self):
        # Normalise to tuples so the frozen instance is really immutable.
        object.__setattr__(self, "a", tuple(_as_tuple(row) for row in self.a))
        object.__setattr__(self, "b", _as_tuple(self.b))
        object.__setattr__(self, "c", _as_tuple(self.c))
        if self.b2 is not None:
            object.__setattr__(self, "b2", _as_tuple(self.b2))
        self.validate()

    def validate(self) -> None:
        """Check the shape invariants of the tableau.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.ConfigurationError`
            If any of the following holds:
            - the table has no stage,
            - ``len(a)``, ``len(b)`` and ``len(c)`` differ,
            - some row ``a[i]`` does not have exactly ``i`` entries,
            - ``b2`` is given with a length different from ``b``,
            - ``order`` is given and is not a positive integer.
        """
        s = len(self.b)
        if s == 0:
            raise ConfigurationError(f"Butcher table '{self.name}' must have at least one stage")
        if len(self.a) != s or len(self.c) != s:
            raise ConfigurationError(
                f"Butcher table '{self.name}': len(a)={len(self.a)}, len(b)={s}, "
                f"len(c)={len(self.c)} must all be equal"
            )
        for i, row in enumerate(self.a):
            if len(row) != i:
                raise ConfigurationError(
                    f"Butcher table '{self.name}': row a[{i}] has {len(row)} entries, expected {i}"
                )
        if self.b2 is not None and len(self.b2) != s:
            raise ConfigurationError(
                f"Butcher table '{self.name}': len(b2)={len(self.b2)} != len(b)={s}"
            )
        if self.order is not None and (int(self.order) != self.order or self.order < 1):
            raise ConfigurationError(
                f"Butcher table '{self.name}': order must be a positive integer, got {self.order}"
            )

    @property
    def stages(self) -> int:
        """Number of stages of the method."""
        return len(self.b)

    @property
    def is_embedded(self) -> bool:
        """True when the table carries secondary weights for error estimation."""
        return self.b2 is not None

    def astype(self, scalar: Callable[[Any], Any]) -> "ButcherTable":
        """Return a copy with every coefficient converted by *scalar*.

        Parameters
        ----------
        scalar : callable
            Conversion applied to each coefficient, for instance
            :class:`float`, :class:`fractions.Fraction` or
            :class:`mpmath.mpf`.

        Returns
        -------
        :class:`~kutta.algorithms.integrators.tableau.ButcherTable`
            Table in the requested scalar field.
        """
        return ButcherTable(
            a=[[scalar(x) for x in row] for row in self.a],
            b=[scalar(x) for x in self.b],
            c=[scalar(x) for x in self.c],
            b2=None if self.b2 is None else [scalar(x) for x in self.b2],
            order=self.order,
            name=self.name,
        )

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return the dense ``float64`` representation used by compiled kernels.

        Returns
        -------
        A : numpy.ndarray of shape (s, s)
            Strictly lower triangular stage matrix.
        B : numpy.ndarray of shape (s,)
            Primary weights.
        B2 : numpy.ndarray of shape (s,) or (0,)
            Embedded weights, empty when the table has none.
        C : numpy.ndarray of shape (s,)
            Nodes.
        """
        s = self.stages
        A = np.zeros((s, s), dtype=np.float64)
        for i, row in enumerate(self.a):
            for j, a_ij in enumerate(row):
                A[i, j] = float(a_ij)
        B = np.array([float(x) for x in self.b], dtype=np.float64)
        C = np.array([float(x) for x in self.c], dtype=np.float64)
        if self.b2 is None:
            B2 = np.empty(0, dtype=np.float64)
        else:
            B2 = np.array([float(x) for x in self.b2], dtype=np.float64)
        return A, B, B2, C

    def __str__(self):
        return f"ButcherTable(name='{self.name}', stages={self.stages}, embedded={self.is_embedded})"
