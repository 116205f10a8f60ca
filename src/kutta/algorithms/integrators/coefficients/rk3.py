"""Kutta's third-order method (3 stages, order 3)."""

from fractions import Fraction as F

A = (
    (),
    (F(1, 2),),
    (F(-1), F(2)),
)

B = (F(1, 6), F(2, 3), F(1, 6))

C = (F(0), F(1, 2), F(1))
