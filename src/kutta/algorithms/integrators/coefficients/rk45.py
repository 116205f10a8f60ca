"""Dormand-Prince 5(4) embedded pair (7 stages, FSAL).

References
----------
Dormand, J. R.; Prince, P. J. (1980). "A family of embedded Runge-Kutta
formulas".
"""

from fractions import Fraction as F

A = (
    (),
    (F(1, 5),),
    (F(3, 40), F(9, 40)),
    (F(44, 45), F(-56, 15), F(32, 9)),
    (F(19372, 6561), F(-25360, 2187), F(64448, 6561), F(-212, 729)),
    (F(9017, 3168), F(-355, 33), F(46732, 5247), F(49, 176), F(-5103, 18656)),
    (F(35, 384), F(0), F(500, 1113), F(125, 192), F(-2187, 6784), F(11, 84)),
)

B_HIGH = (F(35, 384), F(0), F(500, 1113), F(125, 192), F(-2187, 6784), F(11, 84), F(0))

B_LOW = (
    F(5179, 57600), F(0), F(7571, 16695), F(393, 640),
    F(-92097, 339200), F(187, 2100), F(1, 40),
)

C = (F(0), F(1, 5), F(3, 10), F(4, 5), F(8, 9), F(1), F(1))

P = 4
