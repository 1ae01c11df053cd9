"""
trackkit - Constants
====================

License: MIT
"""

import numpy as np


# =============================================================================
# WGS-84 Reference Ellipsoid
# =============================================================================

WGS84_SEMI_MAJOR_AXIS = 6378137.0          # a [m]
WGS84_FLATTENING = 1.0 / 298.257223563     # f [-]


# =============================================================================
# Numerical Defaults
# =============================================================================

EPS = np.finfo(np.float64).eps             # eps(1)
SERIES_MAX_ITER = 5000
