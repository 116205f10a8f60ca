"""Butcher tableau constants of the built-in explicit Runge-Kutta methods.

Each module exposes the ragged stage matrix ``A``, the weights ``B`` and the
nodes ``C`` as exact rationals.  Embedded pairs additionally expose
``B_LOW`` and ``P``, the order of the lower-order estimate.
"""
