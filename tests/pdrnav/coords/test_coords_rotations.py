"""Unit tests for rotation conversions in pdrnav.coords.rotations.

Test cases include:
- Known rotations (90° about each axis)
- Euler -> DCM -> Euler and Euler -> quaternion -> DCM consistency
- Shepperd extraction in all four branches
- Quaternion algebra (product composition, conjugate, normalization)
- Gimbal lock warning
"""

import unittest

import numpy as np
import pytest

from pdrnav.coords.rotations import (
    axis_angle_to_quat,
    euler_to_quat,
    euler_to_rotation_matrix,
    quat_conjugate,
    quat_multiply,
    quat_normalize,
    quat_rotate,
    quat_to_euler,
    quat_to_rotation_matrix,
    rotation_matrix_to_euler,
    rotation_matrix_to_quat,
)
from pdrnav.exceptions import InvalidInputError


class TestEulerToRotationMatrix(unittest.TestCase):
    """Body-to-navigation DCM from Z-Y-X Euler angles."""

    def test_identity_rotation(self) -> None:
        """Zero angles give the identity matrix."""
        np.testing.assert_allclose(euler_to_rotation_matrix(0.0, 0.0, 0.0), np.eye(3), atol=1e-12)

    def test_orthonormal_with_unit_determinant(self) -> None:
        """R^T R = I and det(R) = 1 for arbitrary angles."""
        R = euler_to_rotation_matrix(0.3, -0.4, 2.1)

        np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
        self.assertAlmostEqual(np.linalg.det(R), 1.0, places=12)

    def test_90_degree_yaw(self) -> None:
        """90° yaw maps body x onto navigation y."""
        R = euler_to_rotation_matrix(0.0, 0.0, np.pi / 2)
        np.testing.assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_90_degree_pitch(self) -> None:
        """90° pitch maps body x onto navigation -z."""
        R = euler_to_rotation_matrix(0.0, np.pi / 2, 0.0)
        np.testing.assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 0.0, -1.0], atol=1e-12)

    def test_90_degree_roll(self) -> None:
        """90° roll maps body y onto navigation z."""
        R = euler_to_rotation_matrix(np.pi / 2, 0.0, 0.0)
        np.testing.assert_allclose(R @ np.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0], atol=1e-12)

    def test_composition_order(self) -> None:
        """R equals Rz(yaw) @ Ry(pitch) @ Rx(roll)."""
        roll, pitch, yaw = 0.2, 0.5, -1.1
        Rz = euler_to_rotation_matrix(0.0, 0.0, yaw)
        Ry = euler_to_rotation_matrix(0.0, pitch, 0.0)
        Rx = euler_to_rotation_matrix(roll, 0.0, 0.0)

        np.testing.assert_allclose(
            euler_to_rotation_matrix(roll, pitch, yaw), Rz @ Ry @ Rx, atol=1e-12
        )


class TestRotationMatrixToEuler(unittest.TestCase):
    """Euler extraction from a DCM."""

    def test_round_trip(self) -> None:
        """Angles inside (-π, π) x (-π/2, π/2) x (-π, π) survive the round trip."""
        for angles in ([0.1, 0.2, 0.3], [-1.2, 0.7, 2.9], [3.0, -1.4, -3.0]):
            R = euler_to_rotation_matrix(*angles)
            np.testing.assert_allclose(rotation_matrix_to_euler(R), angles, atol=1e-9)

    def test_gimbal_lock_warns(self) -> None:
        """Pitch at 90° emits a UserWarning and still returns pitch = π/2."""
        R = np.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0]])
        with pytest.warns(UserWarning, match="roll and yaw are not separable"):
            euler = rotation_matrix_to_euler(R)
        self.assertAlmostEqual(euler[1], np.pi / 2)

    def test_rejects_wrong_shape(self) -> None:
        """Non-3x3 input raises InvalidInputError, which is still a ValueError."""
        with pytest.raises(InvalidInputError, match="must have shape \\(3, 3\\)"):
            rotation_matrix_to_euler(np.eye(2))
        with pytest.raises(InvalidInputError, match="must have shape \\(3, 3\\)"):
            rotation_matrix_to_quat(np.eye(4))
        with pytest.raises(ValueError):
            rotation_matrix_to_euler(np.zeros(9))


class TestQuaternionConversions(unittest.TestCase):
    """Euler / DCM / quaternion consistency."""

    def test_euler_to_quat_matches_dcm(self) -> None:
        """The quaternion of a set of Euler angles has the same DCM."""
        angles = (0.4, -0.3, 1.7)
        q = euler_to_quat(*angles)

        self.assertAlmostEqual(np.linalg.norm(q), 1.0, places=12)
        np.testing.assert_allclose(
            quat_to_rotation_matrix(q), euler_to_rotation_matrix(*angles), atol=1e-12
        )

    def test_quat_to_euler_round_trip(self) -> None:
        """Euler -> quaternion -> Euler returns the original angles."""
        angles = np.array([-0.5, 0.25, -2.5])
        np.testing.assert_allclose(quat_to_euler(euler_to_quat(*angles)), angles, atol=1e-9)

    def test_denormalized_quaternion_still_orthonormal(self) -> None:
        """quat_to_rotation_matrix normalizes its input first."""
        R = quat_to_rotation_matrix(3.0 * euler_to_quat(0.1, 0.2, 0.3))
        np.testing.assert_allclose(R, euler_to_rotation_matrix(0.1, 0.2, 0.3), atol=1e-12)

    def test_shepperd_all_branches(self) -> None:
        """Each of the four candidate branches recovers the rotation."""
        cases = [
            euler_to_rotation_matrix(0.1, 0.1, 0.1),  # trace dominant
            np.diag([1.0, -1.0, -1.0]),  # 180° about x
            np.diag([-1.0, 1.0, -1.0]),  # 180° about y
            np.diag([-1.0, -1.0, 1.0]),  # 180° about z
        ]
        for R in cases:
            q = rotation_matrix_to_quat(R)
            self.assertGreaterEqual(q[0], 0.0)
            self.assertAlmostEqual(np.linalg.norm(q), 1.0, places=12)
            np.testing.assert_allclose(quat_to_rotation_matrix(q), R, atol=1e-12)

    def test_180_about_x_is_pure_vector(self) -> None:
        """A half turn about x is q = [0, 1, 0, 0]."""
        np.testing.assert_allclose(
            rotation_matrix_to_quat(np.diag([1.0, -1.0, -1.0])), [0.0, 1.0, 0.0, 0.0], atol=1e-12
        )

    def test_axis_angle(self) -> None:
        """Axis is normalized; a zero axis gives the identity."""
        q = axis_angle_to_quat(np.array([0.0, 0.0, 5.0]), np.pi / 2)
        np.testing.assert_allclose(q, [np.cos(np.pi / 4), 0.0, 0.0, np.sin(np.pi / 4)], atol=1e-12)
        np.testing.assert_allclose(axis_angle_to_quat(np.zeros(3), 1.0), [1.0, 0.0, 0.0, 0.0])


class TestQuaternionAlgebra(unittest.TestCase):
    """Hamilton product, conjugate, normalization and rotation."""

    def test_rotate_x_to_y(self) -> None:
        """90° about z rotates x onto y."""
        q = axis_angle_to_quat(np.array([0.0, 0.0, 1.0]), np.pi / 2)
        np.testing.assert_allclose(quat_rotate(q, np.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12)

    def test_rotate_matches_dcm(self) -> None:
        """quat_rotate(q, v) equals DCM(q) @ v."""
        q = euler_to_quat(0.3, -0.2, 1.0)
        v = np.array([1.0, -2.0, 0.5])
        np.testing.assert_allclose(quat_rotate(q, v), quat_to_rotation_matrix(q) @ v, atol=1e-12)

    def test_product_composes_right_to_left(self) -> None:
        """Rotating by p ⊗ q equals rotating by q, then by p."""
        p = euler_to_quat(0.0, 0.0, 0.7)
        q = euler_to_quat(0.4, 0.0, 0.0)
        v = np.array([0.0, 1.0, 0.0])

        np.testing.assert_allclose(
            quat_rotate(quat_multiply(p, q), v), quat_rotate(p, quat_rotate(q, v)), atol=1e-12
        )

    def test_conjugate_is_inverse_of_unit_quaternion(self) -> None:
        """q ⊗ q* is the identity for unit q."""
        q = euler_to_quat(0.1, 0.2, 0.3)
        np.testing.assert_allclose(quat_multiply(q, quat_conjugate(q)), [1.0, 0.0, 0.0, 0.0], atol=1e-12)

    def test_normalize_zero_unchanged(self) -> None:
        """A zero quaternion is returned unchanged."""
        np.testing.assert_array_equal(quat_normalize(np.zeros(4)), np.zeros(4))

    def test_normalize_scales_to_unit(self) -> None:
        """Nonzero quaternions are scaled to unit norm."""
        np.testing.assert_allclose(quat_normalize(np.array([2.0, 0.0, 0.0, 0.0])), [1.0, 0.0, 0.0, 0.0])

    def test_rejects_wrong_shape(self) -> None:
        """Quaternions must have 4 elements, axes and vectors 3."""
        with pytest.raises(InvalidInputError, match="must have shape \\(4,\\)"):
            quat_multiply(np.zeros(3), np.zeros(4))
        with pytest.raises(InvalidInputError, match="must have shape \\(4,\\)"):
            quat_to_rotation_matrix(np.zeros(5))
        with pytest.raises(InvalidInputError, match="axis must have shape \\(3,\\)"):
            axis_angle_to_quat(np.zeros(2), 0.1)
        with pytest.raises(InvalidInputError, match="v must have shape \\(3,\\)"):
            quat_rotate(np.array([1.0, 0.0, 0.0, 0.0]), np.zeros(4))


if __name__ == "__main__":
    unittest.main()
