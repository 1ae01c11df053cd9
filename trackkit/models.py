"""
trackkit - Polynomial Dynamic Models
====================================

Discrete-time linear models for states stacked as
[position; velocity; acceleration; ...], each block num_dim long.

License: MIT
"""

from math import factorial
from typing import Union

import numpy as np


def f_poly_kal(T: float, num_dim: int, order: int) -> np.ndarray:
    """
    State transition matrix of a polynomial (constant-derivative) model.

    Args:
        T: Propagation interval [s]
        num_dim: Spatial dimensions (generally 3)
        order: Highest derivative in the state (1 = constant velocity)

    Returns:
        F: (num_dim*(order+1)) x (num_dim*(order+1)) transition matrix
    """
    n = order + 1
    F_1d = np.zeros((n, n))
    for i in range(n):
        for j in range(i, n):
            F_1d[i, j] = T ** (j - i) / factorial(j - i)

    return np.kron(F_1d, np.eye(num_dim))


def q_poly_kal_direct_disc(T: float, x: np.ndarray, order: int,
                           sigma_v2: Union[float, np.ndarray]) -> np.ndarray:
    """
    Process noise covariance of a direct-discrete polynomial model.

    The noise enters one derivative above the highest state derivative,
    so order=1 is the discrete white noise acceleration (DWNA) model and
    order=2 the discrete white noise jerk model. Per dimension

        Q_1d = sigma_v2 * G @ G.T,   G[i] = T^(order-i+1) / (order-i+1)!

    (i counting from 0). The result is singular by construction.

    Args:
        T: Propagation interval [s]
        x: State vector, only used for its length
        order: Highest derivative in the state, >= 0
        sigma_v2: Driving noise variance, scalar or one value per dimension

    Returns:
        Q: len(x) x len(x) covariance
    """
    x_dim = np.asarray(x).shape[0]
    if x_dim % (order + 1) != 0:
        raise ValueError(f"State length {x_dim} is not a multiple of order+1={order + 1}")
    num_dim = x_dim // (order + 1)

    sigma_v2 = np.asarray(sigma_v2, dtype=np.float64).ravel()
    if sigma_v2.size == 1:
        sigma_v2 = np.full(num_dim, sigma_v2[0])

    G = np.array([T ** (order - i + 1) / factorial(order - i + 1)
                  for i in range(order + 1)])
    Q_base = np.outer(G, G)

    return np.kron(Q_base, np.diag(sigma_v2))
