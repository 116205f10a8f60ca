"""Example script: harmonic oscillator integrated with a fixed-step RK4
scheme and with the adaptive Dormand-Prince 5(4) pair, compared against the
exact solution.

Run with
    python examples/oscillator.py
"""

import os
import sys

import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from kutta import AdaptiveRK, RungeKutta
from kutta.utils.log_config import logger


def rhs(t, y):
    return np.array([y[1], -y[0]])


def main() -> None:
    t_vals = np.linspace(0.0, 20.0, 41)
    y0 = np.array([1.0, 0.0])
    exact = np.column_stack([np.cos(t_vals), -np.sin(t_vals)])

    runs = [
        ("RK4, one step per output", RungeKutta("rk4")),
        ("RK4 compiled", RungeKutta("rk4", jit=True)),
        ("Dormand-Prince 5(4), tol=1e-8", AdaptiveRK("dopri5", tol=1e-8)),
        ("Bogacki-Shampine 3(2), tol=1e-6", AdaptiveRK("bogacki_shampine", tol=1e-6)),
    ]

    for label, integrator in runs:
        traj = integrator.integrate(rhs, y0, t_vals)
        err = np.max(np.abs(traj.states - exact))
        logger.info(f"{label:<35s} max error = {err:.3e}")


if __name__ == "__main__":
    main()
