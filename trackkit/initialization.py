"""
trackkit - Track Initialization
===============================

Two-point differencing: a position/velocity state from two Cartesian
position measurements taken T seconds apart.

Reference:
    Mallick & La Scala, "Comparison of single-point and two-point
    difference track initiation algorithms using position measurements",
    Acta Automatica Sinica, 2008 (Eqs. 39, 40, 56)

License: MIT
"""

from typing import Tuple

import numpy as np


def two_point_diff_init(T: float, z: np.ndarray, R: np.ndarray,
                        q: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Initialize a [position; velocity] state from two measurements.

    Args:
        T: Time between the measurements [s]
        z: [z_dim, 2] position measurements (z_dim = 2 or 3); the second
            column is the later one
        R: [z_dim, z_dim] covariance shared by both measurements, or
            [2, z_dim, z_dim] one per measurement
        q: Process noise power spectral density [length^2/time^3] of a
            discretized white-noise-acceleration model. 0 = none.

    Returns:
        x: [2*z_dim] state, positions first
        P: [2*z_dim, 2*z_dim] covariance
    """
    z = np.asarray(z, dtype=np.float64)
    R = np.asarray(R, dtype=np.float64)
    z_dim = z.shape[0]
    if z.shape != (z_dim, 2):
        raise ValueError(f"z must have shape (z_dim, 2), got {z.shape}")

    if R.ndim == 2:
        R = np.stack([R, R])

    pos = slice(0, z_dim)
    vel = slice(z_dim, 2 * z_dim)

    x = np.zeros(2 * z_dim)
    x[pos] = z[:, 1]
    x[vel] = (z[:, 1] - z[:, 0]) / T

    P = np.zeros((2 * z_dim, 2 * z_dim))
    P[pos, pos] = R[1]
    P[pos, vel] = R[1] / T
    P[vel, pos] = R[1] / T
    P[vel, vel] = (R[0] + R[1]) / T ** 2 + (q * T / 3.0) * np.eye(z_dim)

    return x, P
