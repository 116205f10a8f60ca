from dataclasses import dataclass, field
from typing import Any, List, Sequence, Union

import numpy as np


@dataclass
class _Trajectory:
    """Container for integration results.
    
    Attributes
    ----------
    times : list
        Requested output times, the initial time included.
    values : list
        State at each entry of *times*.  Values keep the type returned by
        the right-hand side (float, ndarray, mpf, ...).
    """
    times: List[Any]
    values: List[Any]

    def __post_init__(self):
        self.times = list(self.times)
        self.values = list(self.values)
        if len(self.times) != len(self.values):
            raise ValueError(
                f"Times and values must have same length: "
                f"{len(self.times)} != {len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.times)

    @property
    def states(self) -> np.ndarray:
        """Values stacked along a new leading axis, shape ``(n_points, ...)``."""
        return np.stack([np.asarray(v) for v in self.values])

    def interpolate(self, t: Union[Sequence[float], float]) -> np.ndarray:
        """Evaluate the trajectory at arbitrary times by linear interpolation.

        Parameters
        ----------
        t : float or array_like
            Time (or array of times) inside ``[times[0], times[-1]]``.

        Returns
        -------
        numpy.ndarray
            Interpolated state(s) with the shape of one value for a scalar
            *t*, or ``(n_times, ...)`` for an array input.
        """
        if len(self.times) < 2:
            raise ValueError("Interpolation needs at least two output times.")

        times = np.asarray(self.times, dtype=float)
        states = self.states.astype(float)
        t_arr = np.atleast_1d(t).astype(float)

        if np.any(t_arr < times[0]) or np.any(t_arr > times[-1]):
            raise ValueError("Interpolation times must lie within the solution interval.")

        idxs = np.searchsorted(times, t_arr, side="right") - 1
        idxs = np.clip(idxs, 0, len(times) - 2)

        t0 = times[idxs]
        t1 = times[idxs + 1]
        s = (t_arr - t0) / (t1 - t0)  # Normalised position in interval, 0 ≤ s ≤ 1

        y0 = states[idxs]
        y1 = states[idxs + 1]
        s = s.reshape((-1,) + (1,) * (states.ndim - 1))
        y_out = y0 + s * (y1 - y0)

        if np.isscalar(t):
            return y_out[0]
        return y_out


@dataclass
class _IntegrationState:
    """Mutable (t, y) pair threaded through the adaptive controller.

    Attributes
    ----------
    current_time, current_value
        Latest accepted point.
    candidate_step : float
        Step size to attempt next.  Carried over between output intervals.
    n_accepted, n_rejected : int
        Sub-step counters, informative only.
    """
    current_time: Any
    current_value: Any
    candidate_step: Any
    n_accepted: int = field(default=0)
    n_rejected: int = field(default=0)
