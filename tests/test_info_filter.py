"""
trackkit - Cubature Information Filter Test Suite
=================================================
pytest tests for cub_info_update.

Run: pytest tests/ -v
"""

import numpy as np
import numpy.testing as npt
import pytest

from trackkit import (
    CubatureUpdateConfig,
    cub_info_update,
    mean_angle,
    third_order_cub_points,
    wrap_range,
)


class TestLinearMeasurements:
    """With linear h the update must equal the information-form Kalman update"""

    def test_identity_measurement(self):
        """y=0, P^-1=I, h=identity, z=[1,2] -> y=[1,2], P^-1=2I"""
        y, P_inv = cub_info_update(np.zeros(2), np.eye(2), np.array([1.0, 2.0]),
                                   np.eye(2), lambda x: x)
        npt.assert_allclose(y, [1.0, 2.0], atol=1e-12)
        npt.assert_allclose(P_inv, 2.0 * np.eye(2), atol=1e-12)

    def test_general_linear_model(self):
        """Adds H' R^-1 z and H' R^-1 H"""
        H = np.array([[1.0, 0.5, 0.0],
                      [0.0, 2.0, -1.0]])
        R_inv = np.linalg.inv(np.array([[0.5, 0.1], [0.1, 0.3]]))
        P = np.array([[2.0, 0.3, 0.1],
                      [0.3, 1.0, 0.2],
                      [0.1, 0.2, 1.5]])
        P_inv = np.linalg.inv(P)
        x = np.array([1.0, -2.0, 0.5])
        y = P_inv @ x
        z = np.array([0.3, -4.1])

        y_up, P_inv_up = cub_info_update(y, P_inv, z, R_inv, lambda s: H @ s)

        npt.assert_allclose(P_inv_up, P_inv + H.T @ R_inv @ H, rtol=1e-9, atol=1e-9)
        npt.assert_allclose(y_up, y + H.T @ R_inv @ z, rtol=1e-9, atol=1e-9)

    def test_matches_covariance_form(self):
        """Recovered posterior equals the standard Kalman update"""
        H = np.array([[1.0, 0.0, 0.0, 0.0],
                      [0.0, 1.0, 0.0, 0.0]])
        R = np.diag([0.2, 0.4])
        P = np.diag([4.0, 3.0, 1.0, 1.0]) + 0.5
        x = np.array([10.0, -5.0, 1.0, 2.0])
        z = np.array([10.4, -5.3])

        y_up, P_inv_up = cub_info_update(np.linalg.solve(P, x), np.linalg.inv(P),
                                         z, np.linalg.inv(R), lambda s: H @ s)

        K = P @ H.T @ np.linalg.inv(H @ P @ H.T + R)
        x_kf = x + K @ (z - H @ x)
        P_kf = P - K @ H @ P
        npt.assert_allclose(np.linalg.solve(P_inv_up, y_up), x_kf, rtol=1e-8)
        npt.assert_allclose(np.linalg.inv(P_inv_up), P_kf, rtol=1e-8, atol=1e-10)

    def test_scalar_state(self):
        """x_dim = 1 uses 1D quadrature points"""
        # x = 4, P = 2, h(x) = 3x
        y, P_inv = cub_info_update(np.array([2.0]), np.array([[0.5]]),
                                   np.array([13.0]), np.array([[1.0]]),
                                   lambda x: 3.0 * x)
        npt.assert_allclose(y, [2.0 + 3.0 * 13.0])
        npt.assert_allclose(P_inv, [[0.5 + 9.0]])

    def test_explicit_third_order_points(self):
        """Caller-supplied points give the same linear answer"""
        xi, w = third_order_cub_points(2)
        cfg = CubatureUpdateConfig(xi=xi, w=w)
        y, P_inv = cub_info_update(np.zeros(2), np.eye(2), np.array([1.0, 2.0]),
                                   np.eye(2), lambda x: x, cfg)
        npt.assert_allclose(y, [1.0, 2.0], atol=1e-12)
        npt.assert_allclose(P_inv, 2.0 * np.eye(2), atol=1e-12)


class TestSingularInformation:
    """Tests for rank deficient predicted information matrices"""

    def test_unobserved_component_stays_uninformed(self):
        """P^-1 = diag(1, 0): the second component gains no information"""
        y, P_inv = cub_info_update(np.array([1.0, 0.0]), np.diag([1.0, 0.0]),
                                   np.array([2.0, 5.0]), np.eye(2), lambda x: x)
        npt.assert_allclose(y, [3.0, 0.0], atol=1e-12)
        npt.assert_allclose(P_inv, np.diag([2.0, 0.0]), atol=1e-12)

    def test_zero_information(self):
        """A filter with no prior information is left unchanged"""
        y, P_inv = cub_info_update(np.zeros(2), np.zeros((2, 2)),
                                   np.array([1.0, 1.0]), np.eye(2), lambda x: x)
        npt.assert_allclose(y, 0.0, atol=1e-14)
        npt.assert_allclose(P_inv, 0.0, atol=1e-14)


class TestNonlinearMeasurements:
    """Tests for nonlinear h and the configurable transforms"""

    def test_range_measurement_is_symmetric(self):
        """Range-only update keeps the information matrix symmetric PSD"""
        x = np.array([100.0, 50.0])
        P = np.diag([25.0, 16.0])
        h = lambda s: np.array([np.hypot(s[0], s[1])])
        y, P_inv = cub_info_update(np.linalg.solve(P, x), np.linalg.inv(P),
                                   np.array([112.0]), np.array([[1.0]]), h)
        npt.assert_allclose(P_inv, P_inv.T, atol=1e-12)
        assert np.all(np.linalg.eigvalsh(P_inv) > 0)
        assert np.all(np.isfinite(y))

    def test_angle_wrapping(self):
        """Wrapped innovations treat -pi + d and pi - d as neighbors"""
        x = np.array([np.pi - 0.05, 0.0])
        P_inv = 1e4 * np.eye(2)
        z = np.array([-np.pi + 0.05])
        R_inv = np.array([[100.0]])

        cfg = CubatureUpdateConfig(
            innovation_transform=lambda d: wrap_range(d, -np.pi, np.pi),
            measurement_averager=lambda Z, w: np.array([mean_angle(Z[0], w)]),
        )
        y, P_inv_up = cub_info_update(P_inv @ x, P_inv, z, R_inv,
                                      lambda s: s[:1], cfg)
        x_up = np.linalg.solve(P_inv_up, y)

        # innovation of +0.1 rad, gain 100 / (1e4 + 100)
        assert x_up[0] == pytest.approx(x[0] + 0.1 * 100.0 / 10100.0, abs=1e-9)
        assert x_up[1] == pytest.approx(0.0, abs=1e-12)

    def test_state_difference_transform_is_applied(self):
        """The state difference hook sees every cubature point"""
        calls = []

        def record(d):
            calls.append(d.copy())
            return d

        xi, w = third_order_cub_points(2)
        cfg = CubatureUpdateConfig(xi=xi, w=w, state_difference_transform=record)
        cub_info_update(np.zeros(2), np.eye(2), np.zeros(2), np.eye(2), lambda x: x, cfg)
        assert len(calls) == w.size


class TestErrors:
    """Tests for error propagation and config validation"""

    def test_measurement_function_errors_propagate(self):
        """Exceptions from h are not caught"""
        def h(x):
            raise RuntimeError("bad measurement model")

        with pytest.raises(RuntimeError, match="bad measurement model"):
            cub_info_update(np.zeros(2), np.eye(2), np.zeros(1), np.eye(1), h)

    def test_points_without_weights(self):
        """xi and w must be given together"""
        xi, _ = third_order_cub_points(2)
        with pytest.raises(ValueError):
            cub_info_update(np.zeros(2), np.eye(2), np.zeros(2), np.eye(2),
                            lambda x: x, CubatureUpdateConfig(xi=xi))

    def test_points_of_wrong_dimension(self):
        """Point dimension must match the state"""
        xi, w = third_order_cub_points(3)
        with pytest.raises(ValueError):
            cub_info_update(np.zeros(2), np.eye(2), np.zeros(2), np.eye(2),
                            lambda x: x, CubatureUpdateConfig(xi=xi, w=w))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
