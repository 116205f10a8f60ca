# Default relative tolerance of the adaptive integrators
TOL = 1e-10

FASTMATH = False  # Global flag for Numba's fastmath option 

# Step-size controller bounds
MIN_STEP = 1e-12
MAX_REJECTIONS = 64
MIN_FACTOR = 0.01
MAX_FACTOR = 10.0

# Precision control
MPMATH_DPS = 50  # Decimal places for mpmath (default 50, standard float64 ≈ 15-17)
