"""Classical fourth-order Runge-Kutta method (4 stages, order 4)."""

from fractions import Fraction as F

A = (
    (),
    (F(1, 2),),
    (F(0), F(1, 2)),
    (F(0), F(0), F(1)),
)

B = (F(1, 6), F(1, 3), F(1, 3), F(1, 6))

C = (F(0), F(1, 2), F(1, 2), F(1))
