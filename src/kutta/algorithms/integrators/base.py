"""Provide abstract interfaces for numerical time integration.

References
----------
Hairer, E., Norsett, S. P., & Wanner, G. (1993). "Solving Ordinary
Differential Equations I: Non-stiff Problems".
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

from kutta.algorithms.integrators.types import _Trajectory


class _Integrator(ABC):
    """Define the minimal interface that every concrete integrator must satisfy.

    Parameters
    ----------
    name : str
        Human-readable identifier of the method.
    **options
        Extra keyword arguments left untouched and stored in
        :attr:`~kutta.algorithms.integrators.base._Integrator.options` for later use by subclasses.

    Notes
    -----
    Subclasses *must* implement the abstract members :func:`~kutta.algorithms.integrators.base._Integrator.order` and
    :func:`~kutta.algorithms.integrators.base._Integrator.integrate`.

    Examples
    --------
    Creating a dummy first-order explicit Euler scheme::

        class Euler(_Integrator):
            @property
            def order(self):
                return 1

            def integrate(self, f, y0, t_vals, **kwds):
                y = [y0]
                for t0, t1 in zip(t_vals[:-1], t_vals[1:]):
                    y.append(y[-1] + (t1 - t0) * f(t0, y[-1]))
                return _Trajectory(list(t_vals), y)
    """

    def __init__(self, name: str, **options):
        self.name = name
        self.options = options

    @property
    @abstractmethod
    def order(self) -> Optional[int]:
        """Order used by step-size control.

        Returns
        -------
        int or None
            Order of the embedded estimate, or None if not applicable
        """
        pass

    @abstractmethod
    def integrate(
        self,
        f: Callable[[Any, Any], Any],
        y0: Any,
        t_vals: Sequence[Any],
        **kwargs
    ) -> _Trajectory:
        """Integrate ``y' = f(t, y)`` from the initial value *y0*.

        Parameters
        ----------
        f : callable
            Right-hand side with signature ``f(t, y) -> dy/dt``.
        y0 : Any
            Initial value at ``t_vals[0]``.
        t_vals : sequence
            Strictly increasing output times.
        **kwargs
            Additional integration options

        Returns
        -------
        :class:`~kutta.algorithms.integrators.types._Trajectory`
            Integration results, one value per entry of *t_vals*.

        Raises
        ------
        ValueError
            If the inputs are inconsistent
        """
        pass

    def validate_rhs(self, f: Callable[[Any, Any], Any]) -> None:
        """Check that *f* is callable with the ``(t, y)`` signature.

        Callables whose signature cannot be introspected (builtins, some
        compiled dispatchers) are accepted as they are.

        Raises
        ------
        ValueError
            If *f* is not callable or takes fewer than two arguments.
        """
        if not callable(f):
            raise ValueError(f"Right-hand side must be callable for {self.name}")
        try:
            sig = inspect.signature(f)
        except (TypeError, ValueError):
            return
        params = list(sig.parameters.values())
        if any(p.kind == p.VAR_POSITIONAL for p in params):
            return
        positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
        if len(positional) < 2:
            raise ValueError(f"Right-hand side must have signature (t, y) for {self.name}")

    def validate_inputs(
        self,
        f: Callable[[Any, Any], Any],
        y0: Any,
        t_vals: Sequence[Any]
    ) -> None:
        """Validate that the input arguments form a consistent integration task.

        Parameters
        ----------
        f : callable
            Right-hand side to be integrated.
        y0 : Any
            Initial value.
        t_vals : sequence
            Output times, at least one entry, strictly increasing.

        Raises
        ------
        ValueError
            If any of the following conditions holds:
            - *f* is not a ``(t, y)`` callable.
            - *y0* is None.
            - ``t_vals`` is empty.
            - ``t_vals`` is not strictly increasing.
        """
        self.validate_rhs(f)

        if y0 is None:
            raise ValueError("Initial value must not be None")

        if len(t_vals) < 1:
            raise ValueError("Must provide at least 1 time point")

        if not all(t1 > t0 for t0, t1 in zip(t_vals[:-1], t_vals[1:])):
            raise ValueError("Time values must be strictly increasing")

    def __str__(self):
        return f"KUTTA-{self.name}"

    def __repr__(self):
        return f"{self.__class__.__name__}(name='{self.name}', options={self.options})"
