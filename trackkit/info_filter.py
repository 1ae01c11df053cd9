"""
trackkit - Cubature Information Filter Measurement Update
=========================================================

Information form of the cubature Kalman filter update. The filter carries
the information state y = P^-1 x and the information matrix P^-1 instead
of (x, P); measurement updates become additive:

    y+     = y-     + i
    P^-1+  = P^-1-  + I

The nonlinear measurement h is propagated with cubature points, and the
cross-covariance Pxz replaces the measurement Jacobian through the
pseudo-measurement matrix H ~ (P^-1 Pxz)^T.

Angular measurements or states can be handled with the optional
innovation / state-difference transforms and a custom measurement
averager (see trackkit.math_utils.wrap_range and mean_angle).

Reference:
    Chandra, Gu & Postlethwaite, "Square root cubature information
    filter", IEEE Sensors Journal 13(2), 2013 (Algorithm 1)

License: MIT
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np
from numpy.linalg import LinAlgError

from .cubature import fifth_order_cub_points, quadrature_points_1d
from .math_utils import calc_mixture_mean, chol_semi_def


def _identity(d: np.ndarray) -> np.ndarray:
    return d


@dataclass
class CubatureUpdateConfig:
    """
    Optional inputs of cub_info_update.

    Args:
        xi: [x_dim, num_points] cubature points. When omitted together
            with w, fifth_order_cub_points(x_dim) is used for x_dim > 1 and
            quadrature_points_1d(3) for x_dim == 1. Pass precomputed points
            when calling repeatedly.
        w: [num_points] cubature weights
        innovation_transform: Maps a measurement difference to its
            canonical range (e.g. angle wrapping). Default: identity.
        measurement_averager: f(Z, w) -> weighted mean of the [z_dim, N]
            measurement points. Default: calc_mixture_mean.
        state_difference_transform: Like innovation_transform, for state
            differences. Default: identity.
    """
    xi: Optional[np.ndarray] = None
    w: Optional[np.ndarray] = None
    innovation_transform: Optional[Callable[[np.ndarray], np.ndarray]] = None
    measurement_averager: Optional[Callable[[np.ndarray, np.ndarray], np.ndarray]] = None
    state_difference_transform: Optional[Callable[[np.ndarray], np.ndarray]] = None

    def cubature_set(self, x_dim: int) -> Tuple[np.ndarray, np.ndarray]:
        """Points and weights to use for an x_dim state."""
        if (self.xi is None) != (self.w is None):
            raise ValueError("xi and w must be given together")

        if self.xi is not None:
            xi = np.asarray(self.xi, dtype=np.float64)
            w = np.asarray(self.w, dtype=np.float64).ravel()
            if xi.shape != (x_dim, w.size):
                raise ValueError(
                    f"xi must have shape ({x_dim}, {w.size}), got {xi.shape}"
                )
            return xi, w

        if x_dim > 1:
            return fifth_order_cub_points(x_dim)
        return quadrature_points_1d(3)


def cub_info_update(y_pred: np.ndarray,
                    P_inv_pred: np.ndarray,
                    z: np.ndarray,
                    R_inv: np.ndarray,
                    h: Callable[[np.ndarray], np.ndarray],
                    config: Optional[CubatureUpdateConfig] = None
                    ) -> Tuple[np.ndarray, np.ndarray]:
    """
    One cubature information filter measurement update.

    Args:
        y_pred: [x_dim] predicted information state P^-1 x
        P_inv_pred: [x_dim, x_dim] predicted information matrix
        z: [z_dim] measurement
        R_inv: [z_dim, z_dim] inverse measurement covariance
        h: Measurement function h(x) -> z. Extra parameters can be bound
            with a lambda or functools.partial. Exceptions raised by h are
            not caught.
        config: Cubature points and optional transforms

    Returns:
        y_update: [x_dim] posterior information state
        P_inv_update: [x_dim, x_dim] posterior information matrix
    """
    cfg = config or CubatureUpdateConfig()

    y_pred = np.asarray(y_pred, dtype=np.float64).ravel()
    P_inv_pred = np.asarray(P_inv_pred, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64).ravel()
    R_inv = np.asarray(R_inv, dtype=np.float64)

    x_dim = y_pred.size
    z_dim = z.size

    xi, w = cfg.cubature_set(x_dim)
    innov_trans = cfg.innovation_transform or _identity
    meas_avg = cfg.measurement_averager or calc_mixture_mean
    state_diff_trans = cfg.state_difference_transform or _identity

    # Recover the state estimate
    try:
        x_pred = np.linalg.solve(P_inv_pred, y_pred)
    except LinAlgError:
        x_pred = np.linalg.lstsq(P_inv_pred, y_pred, rcond=None)[0]

    # Square root of the (possibly rank deficient) covariance
    S_pred = chol_semi_def(np.linalg.pinv(P_inv_pred))

    # Cubature state points [x_dim, N]
    X = S_pred @ xi + x_pred[:, None]
    n_points = X.shape[1]

    # Cubature measurement points [z_dim, N]
    Z = np.zeros((z_dim, n_points))
    for i in range(n_points):
        Z[:, i] = np.asarray(h(X[:, i]), dtype=np.float64).ravel()

    z_pred = np.asarray(meas_avg(Z, w), dtype=np.float64).ravel()
    innovation = np.asarray(innov_trans(z - z_pred), dtype=np.float64).ravel()

    # Cross covariance
    Pxz = np.zeros((x_dim, z_dim))
    for i in range(n_points):
        diff_z = np.asarray(innov_trans(Z[:, i] - z_pred), dtype=np.float64).ravel()
        diff_x = np.asarray(state_diff_trans(X[:, i] - x_pred), dtype=np.float64).ravel()
        Pxz += w[i] * np.outer(diff_x, diff_z)

    # Pseudo-measurement matrix H^T = P^-1 Pxz
    Ht = P_inv_pred @ Pxz
    I_contrib = Ht @ R_inv @ Ht.T
    i_contrib = Ht @ R_inv @ (innovation + Ht.T @ x_pred)

    return y_pred + i_contrib, P_inv_pred + I_contrib
