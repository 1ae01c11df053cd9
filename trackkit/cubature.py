"""
trackkit - Cubature Point Generation
====================================

Weighted point sets for integrating against a zero-mean, identity-covariance
Gaussian. A set (xi, w) is used as

    E[f(x)] ~= sum_i w[i] * f(S @ xi[:, i] + mu),   x ~ N(mu, S @ S.T)

Points are stored column-wise: xi has shape [num_dim, num_points].

Third-order sets (all weights sum to one, odd moments vanish by symmetry):
    0  Cubature Kalman filter points         (Arasaratnam & Haykin 2009)
    1  Basic unscented points                (Julier & Uhlmann 2004, IIIA)
    2  Extended symmetric unscented set      (Julier & Uhlmann 2004, IVA)
    3  Stroud E_n^{r^2} 3-1, 2n points       (Stroud 1971, p. 315)
    4  Stroud E_n^{r^2} 3-2, 2^n points      (Stroud 1971, p. 316)

License: MIT
"""

from enum import IntEnum
from typing import List, Tuple, Union

import numpy as np
from numpy.polynomial.hermite_e import hermegauss

from .exceptions import InvalidAlgorithmError


class CubatureAlgorithm(IntEnum):
    """Third-order cubature point sets"""
    CKF = 0                  # ±sqrt(n) e_i
    UNSCENTED_BASIC = 1      # same geometry as CKF, block layout
    EXTENDED_SYMMETRIC = 2   # origin + ±sqrt(n/(1-w0)) e_i
    STROUD_3_1 = 3           # full symmetric permutations, 2n points
    STROUD_3_2 = 4           # all sign combinations, 2^n points


# =============================================================================
# Permutation Helpers
# =============================================================================

def pm_combos(v: np.ndarray) -> np.ndarray:
    """
    All 2^n sign assignments of the vector v.

    Ordering follows binary counting with the first component changing
    slowest and "+" before "-".

    Returns:
        [n, 2^n] array, one combination per column
    """
    v = np.asarray(v, dtype=np.float64).ravel()
    n = v.size

    bits = (np.arange(2 ** n)[:, None] >> np.arange(n - 1, -1, -1)) & 1
    signs = 1 - 2 * bits
    return (signs * v).T


def _distinct_permutations(values: np.ndarray) -> List[np.ndarray]:
    """Distinct orderings of a multiset, largest values first."""
    vals, counts = np.unique(values, return_counts=True)
    vals = vals[::-1]
    counts = list(counts[::-1])
    n = len(values)

    perms = []
    prefix: List[float] = []

    def build():
        if len(prefix) == n:
            perms.append(np.array(prefix))
            return
        for idx, c in enumerate(counts):
            if c == 0:
                continue
            counts[idx] -= 1
            prefix.append(vals[idx])
            build()
            prefix.pop()
            counts[idx] += 1

    build()
    return perms


def full_sym_perms(v: np.ndarray) -> np.ndarray:
    """
    Fully symmetric set generated by v.

    Every distinct placement of the entries of |v| over the axes, each
    combined with every sign assignment of its nonzero entries. For
    v = [r, 0, 0] this gives ±r e_1, ±r e_2, ±r e_3.

    Returns:
        [n, num_points] array, one point per column
    """
    v = np.abs(np.asarray(v, dtype=np.float64).ravel())

    points = []
    for p in _distinct_permutations(v):
        nz = np.flatnonzero(p)
        if nz.size == 0:
            points.append(p)
            continue
        for signs in pm_combos(np.ones(nz.size)).T:
            q = p.copy()
            q[nz] *= signs
            points.append(q)

    return np.array(points).T


# =============================================================================
# Point Sets
# =============================================================================

def _check_dim(num_dim: int) -> int:
    if int(num_dim) != num_dim or num_dim < 1:
        raise ValueError(f"num_dim must be a positive integer, got {num_dim}")
    return int(num_dim)


def third_order_cub_points(num_dim: int,
                           algorithm: Union[int, CubatureAlgorithm] = CubatureAlgorithm.CKF,
                           w0: float = 1.0 / 3.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Third-order cubature points for a standard normal in num_dim dimensions.

    Args:
        num_dim: Dimensionality of the points
        algorithm: CubatureAlgorithm (or its integer code 0-4)
        w0: Weight of the origin point, only used by EXTENDED_SYMMETRIC.
            Must lie in (0, 1). Values close to 1 push the other points
            far from the origin.

    Returns:
        xi: [num_dim, num_points] points
        w: [num_points] weights
    """
    n = _check_dim(num_dim)
    try:
        algorithm = CubatureAlgorithm(algorithm)
    except ValueError:
        raise InvalidAlgorithmError(
            f"Unknown cubature algorithm {algorithm!r}. "
            f"Available: {[a.value for a in CubatureAlgorithm]}"
        ) from None

    if algorithm == CubatureAlgorithm.CKF:
        xi = np.zeros((n, 2 * n))
        for i in range(n):
            xi[i, 2 * i] = np.sqrt(n)
            xi[i, 2 * i + 1] = -np.sqrt(n)
        w = np.full(2 * n, 1.0 / (2 * n))

    elif algorithm == CubatureAlgorithm.UNSCENTED_BASIC:
        xi = np.hstack([np.sqrt(n) * np.eye(n), -np.sqrt(n) * np.eye(n)])
        w = np.full(2 * n, 1.0 / (2 * n))

    elif algorithm == CubatureAlgorithm.EXTENDED_SYMMETRIC:
        if w0 <= 0:
            raise ValueError(f"w0 must be > 0, got {w0}")
        if w0 >= 1:
            raise ValueError(f"w0 must be < 1 for real-valued points, got {w0}")
        scale = np.sqrt(n / (1.0 - w0))
        xi = np.hstack([np.zeros((n, 1)), scale * np.eye(n), -scale * np.eye(n)])
        w = np.full(2 * n + 1, (1.0 - w0) / (2 * n))
        w[0] = w0

    elif algorithm == CubatureAlgorithm.STROUD_3_1:
        r = np.sqrt(n / 2.0)
        v = np.zeros(n)
        v[0] = r
        # sqrt(2) rescales Stroud's exp(-x'x) weight to N(0, I)
        xi = np.sqrt(2.0) * full_sym_perms(v)
        w = np.full(2 * n, 1.0 / (2 * n))

    else:  # STROUD_3_2
        r = 1.0 / np.sqrt(2.0)
        xi = np.sqrt(2.0) * pm_combos(r * np.ones(n))
        w = np.full(2 ** n, 2.0 ** (-n))

    return xi, w


cubature_points = third_order_cub_points


def fifth_order_cub_points(num_dim: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fifth-order symmetric cubature set with 2n^2 + 1 points.

        origin                          weight 2/(n+2)
        ±sqrt(n+2) e_i                  weight (4-n)/(2(n+2)^2)
        sqrt((n+2)/2) (±e_i ± e_j)      weight 1/(n+2)^2

    For n > 4 the axis weights are negative. For n = 1 the set reduces to
    the 3-point Gauss-Hermite rule.
    """
    n = _check_dim(num_dim)
    c = n + 2.0

    v = np.zeros(n)
    v[0] = np.sqrt(c)
    axis_pts = full_sym_perms(v)

    blocks = [np.zeros((n, 1)), axis_pts]
    weights = [np.array([2.0 / c]),
               np.full(axis_pts.shape[1], (4.0 - n) / (2.0 * c ** 2))]

    if n > 1:
        v = np.zeros(n)
        v[:2] = np.sqrt(c / 2.0)
        pair_pts = full_sym_perms(v)
        blocks.append(pair_pts)
        weights.append(np.full(pair_pts.shape[1], 1.0 / c ** 2))

    return np.hstack(blocks), np.concatenate(weights)


def quadrature_points_1d(num_points: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Hermite points for a 1D standard normal.

    Returns:
        xi: [1, num_points] points
        w: [num_points] weights summing to one
    """
    num_points = _check_dim(num_points)
    x, w = hermegauss(num_points)
    return x[None, :], w / np.sum(w)
