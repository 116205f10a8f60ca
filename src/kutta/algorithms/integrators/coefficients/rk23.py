"""Bogacki-Shampine 3(2) embedded pair (4 stages, FSAL).

References
----------
Bogacki, P.; Shampine, L. F. (1989). "A 3(2) pair of Runge-Kutta formulas".
"""

from fractions import Fraction as F

A = (
    (),
    (F(1, 2),),
    (F(0), F(3, 4)),
    (F(2, 9), F(1, 3), F(4, 9)),
)

B_HIGH = (F(2, 9), F(1, 3), F(4, 9), F(0))

B_LOW = (F(7, 24), F(1, 4), F(1, 3), F(1, 8))

C = (F(0), F(1, 2), F(3, 4), F(1))

P = 2
