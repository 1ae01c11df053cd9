"""
trackkit - Coordinate Conversions
=================================

- Cartesian -> spherical (monostatic or bistatic range, local receiver axes)
- East-North-Up axes on a reference ellipsoid
- CIRS <-> GCRS rotation at a TT date (IAU 2006/2000A via pyerfa), or
  from given CIP coordinates X, Y and CIO locator s

Vectors are stored column-wise: a set of N points has shape [3, N].

License: MIT
"""

import warnings
from typing import Optional, Sequence, Tuple, Union

import erfa
import numpy as np

from .constants import WGS84_FLATTENING, WGS84_SEMI_MAJOR_AXIS
from .exceptions import InvalidAlgorithmError


# =============================================================================
# Cartesian -> Spherical
# =============================================================================

def _as_columns(v: Optional[np.ndarray], n: int) -> np.ndarray:
    """[3, n] locations from None, a single vector or a [>=3, n] array."""
    if v is None:
        return np.zeros((3, n))
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 1:
        return np.repeat(v[:3, None], n, axis=1)
    if v.shape[1] == 1:
        return np.repeat(v[:3], n, axis=1)
    return v[:3]


def cart_to_sphere(cart_points: np.ndarray,
                   system_type: int = 0,
                   use_half_range: bool = True,
                   z_tx: Optional[np.ndarray] = None,
                   z_rx: Optional[np.ndarray] = None,
                   M: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Convert Cartesian points to [range, azimuth, elevation].

    The range is the bistatic path length transmitter -> target -> receiver.
    With both sites at the origin and use_half_range=True this is the
    ordinary one-way range.

    Args:
        cart_points: [3, N] (or [3]) points [x; y; z]
        system_type: 0 - azimuth from the x-axis in the x-y plane,
                         elevation toward +z
                     1 - azimuth from the z-axis in the z-x plane,
                         elevation toward +y (z = boresight)
        use_half_range: Divide the bistatic range by two
        z_tx: Transmitter location(s), [3] or [3, N]. Default: origin
        z_rx: Receiver location(s), [3] or [3, N]. Default: origin
        M: Rotation(s) from global to receiver-local axes, [3, 3] or
            [N, 3, 3]. Default: identity

    Returns:
        [3, N] (or [3]) points [r; azimuth; elevation], angles in radians
    """
    if system_type not in (0, 1):
        raise InvalidAlgorithmError(f"Invalid system type {system_type!r}")

    pts = np.asarray(cart_points, dtype=np.float64)
    single = pts.ndim == 1
    pts = pts[:3].reshape(3, -1)
    n = pts.shape[1]

    rx = _as_columns(z_rx, n)
    tx = _as_columns(z_tx, n)

    if M is None:
        M = np.broadcast_to(np.eye(3), (n, 3, 3))
    else:
        M = np.asarray(M, dtype=np.float64)
        if M.ndim == 2:
            M = np.broadcast_to(M, (n, 3, 3))

    # Target and transmitter in the receiver's local frame
    z_loc = np.einsum("nij,jn->in", M, pts - rx)
    tx_loc = np.einsum("nij,jn->in", M, tx - rx)

    r1 = np.linalg.norm(z_loc, axis=0)              # receiver -> target
    r2 = np.linalg.norm(z_loc - tx_loc, axis=0)     # target -> transmitter
    r = r1 + r2
    if use_half_range:
        r = r / 2.0

    x, y, z = z_loc
    if np.any(r1 == 0):
        warnings.warn("Target collocated with receiver; elevation is undefined",
                      RuntimeWarning, stacklevel=2)

    with np.errstate(invalid="ignore", divide="ignore"):
        if system_type == 0:
            azimuth = np.arctan2(y, x)
            elevation = np.arcsin(z / r1)
        else:
            azimuth = np.arctan2(x, z)
            elevation = np.arcsin(y / r1)

    out = np.vstack([r, azimuth, elevation])
    return out[:, 0] if single else out


# =============================================================================
# East-North-Up Axes
# =============================================================================

def get_enu_axes(plh_point: Sequence[float],
                 just_vertical: bool = False,
                 a: float = WGS84_SEMI_MAJOR_AXIS,
                 f: float = WGS84_FLATTENING
                 ) -> Tuple[np.ndarray, Union[np.ndarray, float]]:
    """
    East, North and Up unit vectors at a geodetic point.

    The axes are the normalized derivatives of the ECEF position with
    respect to longitude, latitude and height. East is taken as
    North x Up so that the frame stays defined at the poles.

    Args:
        plh_point: [latitude, longitude] or [latitude, longitude, height]
            in radians / meters
        just_vertical: Only return the Up direction
        a: Semi-major axis of the reference ellipsoid [m]
        f: Flattening of the reference ellipsoid

    Returns:
        u: [3, 3] with columns East, North, Up (or [3] Up only)
        c: [3] magnitudes of dr/dlon, dr/dlat, dr/dh (or the Up magnitude)
    """
    phi = plh_point[0]
    lam = plh_point[1]
    h = plh_point[2] if len(plh_point) > 2 else 0.0

    sin_p, cos_p = np.sin(phi), np.cos(phi)
    sin_l, cos_l = np.sin(lam), np.cos(lam)

    # Up: dr/dh
    u3 = np.array([cos_p * cos_l, cos_p * sin_l, sin_p])
    c3 = np.linalg.norm(u3)
    u3 = u3 / c3

    if just_vertical:
        return u3, c3

    e2 = 2.0 * f - f ** 2
    Ne = a / np.sqrt(1.0 - e2 * sin_p ** 2)
    dNe_dphi = a * e2 * cos_p * sin_p / (1.0 - e2 * sin_p ** 2) ** 1.5

    # East: dr/dlambda (magnitude only, direction from orthogonality)
    u1 = np.array([-(Ne + h) * cos_p * sin_l,
                   (Ne + h) * cos_p * cos_l,
                   0.0])
    c1 = np.linalg.norm(u1)

    # North: dr/dphi
    u2 = np.array([(cos_p * dNe_dphi - (Ne + h) * sin_p) * cos_l,
                   (cos_p * dNe_dphi - (Ne + h) * sin_p) * sin_l,
                   (Ne * (1.0 - e2) + h) * cos_p + (1.0 - e2) * dNe_dphi * sin_p])
    c2 = np.linalg.norm(u2)
    u2 = u2 / c2

    u1 = np.cross(u2, u3)

    return np.column_stack([u1, u2, u3]), np.array([c1, c2, c3])


# =============================================================================
# CIRS <-> GCRS
# =============================================================================

def cirs_gcrs_matrix_xys(cip_x: float, cip_y: float, s: float,
                         dXdY: Optional[Sequence[float]] = None) -> np.ndarray:
    """
    Rotation matrix taking CIRS vectors to GCRS, from given CIP coordinates.

    Args:
        cip_x, cip_y: GCRS coordinates X, Y of the Celestial Intermediate Pole
        s: CIO locator [rad]
        dXdY: Celestial pole offsets [dX, dY] added to X, Y [rad]

    Returns:
        [3, 3] CIRS -> GCRS rotation (transpose of SOFA's c2ixys matrix)
    """
    if dXdY is not None:
        cip_x = cip_x + dXdY[0]
        cip_y = cip_y + dXdY[1]

    return erfa.c2ixys(cip_x, cip_y, s).T


def cirs_gcrs_matrix(TT1: float, TT2: float,
                     dXdY: Optional[Sequence[float]] = None) -> np.ndarray:
    """
    Rotation matrix taking CIRS vectors to GCRS at a terrestrial-time date.

    X, Y and s come from the IAU 2006/2000A precession-nutation model
    (erfa.xys06a).

    Args:
        TT1, TT2: Two-part Julian date in TT, e.g. (2400000.5, MJD)
        dXdY: Celestial pole offsets [dX, dY] from the IERS bulletins [rad].
            Default: no correction

    Returns:
        [3, 3] CIRS -> GCRS rotation
    """
    cip_x, cip_y, s = erfa.xys06a(TT1, TT2)
    return cirs_gcrs_matrix_xys(cip_x, cip_y, s, dXdY)


def _rotate_states(vec: np.ndarray, rot: np.ndarray) -> np.ndarray:
    vec = np.asarray(vec, dtype=np.float64)
    single = vec.ndim == 1
    vec = vec.reshape(vec.shape[0], -1)
    if vec.shape[0] not in (3, 6):
        raise ValueError(f"Vectors must be 3D or 6D, got {vec.shape[0]} rows")

    out = np.empty_like(vec)
    out[:3] = rot @ vec[:3]
    if vec.shape[0] == 6:
        out[3:] = rot @ vec[3:]
    return out[:, 0] if single else out


def cirs_to_gcrs(vec: np.ndarray, TT1: float, TT2: float,
                 dXdY: Optional[Sequence[float]] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rotate position (and velocity) vectors from CIRS to GCRS.

    Velocities are rotated with the same matrix; the centrifugal terms of
    the slow CIP motion are neglected.

    Args:
        vec: [3, N] positions or velocities, or [6, N] position+velocity
        TT1, TT2: Two-part Julian date in TT
        dXdY: Celestial pole offsets [dX, dY] [rad]

    Returns:
        vec_gcrs: Converted vectors, same shape as vec
        rot: [3, 3] rotation used
    """
    rot = cirs_gcrs_matrix(TT1, TT2, dXdY)
    return _rotate_states(vec, rot), rot


def gcrs_to_cirs(vec: np.ndarray, TT1: float, TT2: float,
                 dXdY: Optional[Sequence[float]] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of cirs_to_gcrs."""
    rot = cirs_gcrs_matrix(TT1, TT2, dXdY).T
    return _rotate_states(vec, rot), rot
