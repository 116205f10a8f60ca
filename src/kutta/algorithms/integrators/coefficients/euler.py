"""Forward Euler method (1 stage, order 1)."""

from fractions import Fraction as F

A = (
    (),
)

B = (F(1),)

C = (F(0),)
