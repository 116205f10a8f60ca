"""Heun's method, the explicit trapezoidal rule (2 stages, order 2)."""

from fractions import Fraction as F

A = (
    (),
    (F(1),),
)

B = (F(1, 2), F(1, 2))

C = (F(0), F(1))
