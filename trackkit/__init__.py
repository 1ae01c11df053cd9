"""
trackkit - Target Tracking and Astrodynamics Function Library
=============================================================

Stateless NumPy/SciPy kernels for tracking and estimation.

Modules:
    gamma: central and noncentral gamma PDF/CDF, inverse CDF, sampling
    cubature: third/fifth-order cubature points, 1D Gauss-Hermite points
    info_filter: cubature information filter measurement update
    coordinates: Cartesian->spherical, ENU axes, CIRS<->GCRS
    models: polynomial transition and process noise matrices
    initialization: two-point differencing track initialization
    math_utils: rising factorial, semi-definite square root, helpers

Example:
    >>> from trackkit import CubatureUpdateConfig, third_order_cub_points, cub_info_update
    >>> xi, w = third_order_cub_points(2)
    >>> y, P_inv = cub_info_update(y_pred, P_inv_pred, z, R_inv, h,
    ...                            CubatureUpdateConfig(xi=xi, w=w))

License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .exceptions import (
    TrackkitError,
    UnsupportedParameterError,
    InvalidAlgorithmError,
    SeriesNonconvergenceWarning,
)
from .gamma import (
    GammaD,
    SeriesConfig,
    gamma_mean,
    gamma_var,
    gamma_pdf,
    gamma_cdf,
    gamma_inv_cdf,
    gamma_rand,
)
from .cubature import (
    CubatureAlgorithm,
    third_order_cub_points,
    cubature_points,
    fifth_order_cub_points,
    quadrature_points_1d,
    full_sym_perms,
    pm_combos,
)
from .info_filter import CubatureUpdateConfig, cub_info_update
from .coordinates import (
    cart_to_sphere,
    get_enu_axes,
    cirs_gcrs_matrix,
    cirs_gcrs_matrix_xys,
    cirs_to_gcrs,
    gcrs_to_cirs,
)
from .models import f_poly_kal, q_poly_kal_direct_disc
from .initialization import two_point_diff_init
from .math_utils import (
    rising_factorial,
    chol_semi_def,
    calc_mixture_mean,
    nearest_point_in_ellipsoid,
    wrap_range,
    mean_angle,
)

__all__ = [
    # Errors
    "TrackkitError",
    "UnsupportedParameterError",
    "InvalidAlgorithmError",
    "SeriesNonconvergenceWarning",

    # Gamma distribution
    "GammaD",
    "SeriesConfig",
    "gamma_mean",
    "gamma_var",
    "gamma_pdf",
    "gamma_cdf",
    "gamma_inv_cdf",
    "gamma_rand",

    # Cubature
    "CubatureAlgorithm",
    "third_order_cub_points",
    "cubature_points",
    "fifth_order_cub_points",
    "quadrature_points_1d",
    "full_sym_perms",
    "pm_combos",

    # Filtering
    "CubatureUpdateConfig",
    "cub_info_update",
    "two_point_diff_init",
    "f_poly_kal",
    "q_poly_kal_direct_disc",

    # Coordinates
    "cart_to_sphere",
    "get_enu_axes",
    "cirs_gcrs_matrix",
    "cirs_gcrs_matrix_xys",
    "cirs_to_gcrs",
    "gcrs_to_cirs",

    # Math
    "rising_factorial",
    "chol_semi_def",
    "calc_mixture_mean",
    "nearest_point_in_ellipsoid",
    "wrap_range",
    "mean_angle",
]
