"""
trackkit - Math Utilities
=========================

Small numeric helpers shared by the filters and coordinate routines.

License: MIT
"""

from typing import Optional, Union

import numpy as np
from scipy.optimize import brentq
from scipy.special import gammaln


def rising_factorial(x: Union[float, np.ndarray], n: Union[float, np.ndarray]) -> np.ndarray:
    """
    Rising factorial (Pochhammer symbol) x (x+1) ... (x+n-1).

    Evaluated as exp(gammaln(x+n) - gammaln(x)) so that large arguments
    do not overflow in intermediate results. rising_factorial(1, n) == n!.
    """
    x = np.asarray(x, dtype=np.float64)
    n = np.asarray(n, dtype=np.float64)
    return np.exp(gammaln(x + n) - gammaln(x))[()]


def chol_semi_def(A: np.ndarray, lower: bool = True) -> np.ndarray:
    """
    Triangular square root of a symmetric positive semi-definite matrix.

    Unlike np.linalg.cholesky this does not fail on singular input: the
    matrix is factored through its eigendecomposition (negative round-off
    eigenvalues clipped to zero) and re-triangularized with a QR step.

    Returns:
        L with L @ L.T == A (lower=True) or U with U.T @ U == A
    """
    A = np.asarray(A, dtype=np.float64)
    A = 0.5 * (A + A.T)

    eigvals, eigvecs = np.linalg.eigh(A)
    eigvals = np.maximum(eigvals, 0.0)

    # A = M.T @ M with M = sqrt(D) V.T; QR gives M = Q R, so A = R.T R
    M = np.sqrt(eigvals)[:, None] * eigvecs.T
    R = np.linalg.qr(M, mode="r")

    # Nonnegative diagonal
    signs = np.where(np.diag(R) < 0, -1.0, 1.0)
    R = signs[:, None] * R

    return R.T if lower else R


def calc_mixture_mean(points: np.ndarray, w: np.ndarray) -> np.ndarray:
    """
    Weighted average of column vectors.

    Args:
        points: [dim, N] values
        w: [N] weights

    Returns:
        [dim] weighted mean
    """
    return np.asarray(points, dtype=np.float64) @ np.asarray(w, dtype=np.float64).ravel()


def nearest_point_in_ellipsoid(z: np.ndarray, A: np.ndarray, p: np.ndarray,
                               gamma_val: float = 1.0, **root_kwargs) -> np.ndarray:
    """
    Closest point to p on or inside the ellipsoid (x-z)' A (x-z) <= gamma_val.

    With B = A/gamma_val, a point outside the ellipsoid projects to
    zp = z + (I + mu B)^-1 (p - z) where mu > 0 solves
    (zp-z)' B (zp-z) = 1. The scalar equation is solved with
    scipy.optimize.brentq in the eigenbasis of B.

    Args:
        z: [n] center of the ellipsoid
        A: [n, n] symmetric positive definite shape matrix
        p: [n] query point
        gamma_val: Ellipsoid threshold
        **root_kwargs: Passed through to brentq (e.g. xtol, maxiter)

    Returns:
        [n] nearest point
    """
    z = np.asarray(z, dtype=np.float64).ravel()
    p = np.asarray(p, dtype=np.float64).ravel()
    B = np.asarray(A, dtype=np.float64) / gamma_val
    B = 0.5 * (B + B.T)

    beta, V = np.linalg.eigh(B)
    if beta[0] <= 0:
        raise ValueError("A must be positive definite")

    c = V.T @ (p - z)
    if np.sum(beta * c ** 2) <= 1.0:
        return p

    def constraint(mu):
        return np.sum(beta * c ** 2 / (1.0 + mu * beta) ** 2) - 1.0

    mu_hi = 1.0 / beta[0]
    while constraint(mu_hi) > 0:
        mu_hi *= 2.0

    mu = brentq(constraint, 0.0, mu_hi, **root_kwargs)
    return z + V @ (c / (1.0 + mu * beta))


def wrap_range(x: Union[float, np.ndarray], min_bound: float, max_bound: float) -> np.ndarray:
    """
    Wrap values into the half-open interval [min_bound, max_bound).

    Typical use is as an innovation transform for angles:
        lambda d: np.array([d[0], wrap_range(d[1], -np.pi, np.pi)])
    """
    span = max_bound - min_bound
    return (np.mod(np.asarray(x, dtype=np.float64) - min_bound, span) + min_bound)[()]


def mean_angle(angles: np.ndarray, w: Optional[np.ndarray] = None) -> float:
    """Weighted circular mean of angles in radians, in [-pi, pi]."""
    angles = np.asarray(angles, dtype=np.float64).ravel()
    if w is None:
        w = np.full(angles.size, 1.0 / angles.size)
    w = np.asarray(w, dtype=np.float64).ravel()
    return float(np.arctan2(np.sum(w * np.sin(angles)), np.sum(w * np.cos(angles))))
