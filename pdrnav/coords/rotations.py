"""Rotation representations and conversions for body-worn sensors.

Array-level conversions between the three attitude representations used by
the PDR pipeline:
- Direction cosine matrices (3x3, body frame to navigation frame)
- Quaternions (scalar first, q = [qw, qx, qy, qz])
- Euler angles (roll, pitch, yaw in radians)

Conventions:
- The rotation sequence is Z(yaw) -> Y(pitch) -> X(roll). The resulting
  body-to-navigation matrix is R = Rz(yaw) @ Ry(pitch) @ Rx(roll), which is
  the transpose of the frame-rotation product Cx(roll) @ Cy(pitch) @ Cz(yaw).
- Quaternion products are Hamilton products. Composition reads right to left:
  quat_multiply(q_a, q_b) applies q_b first.
- Zero-magnitude quaternions are returned unchanged by quat_normalize.

Gimbal lock (pitch -> ±90°) leaves roll and yaw individually unobservable;
the extraction functions clip the arcsin argument and emit a warning there,
they do not pick a preferred split between roll and yaw.
"""

import warnings

import numpy as np
from numpy.typing import NDArray

from pdrnav.exceptions import InvalidInputError

_GIMBAL_LOCK_TOL = 1e-9


def euler_to_rotation_matrix(
    roll: float,
    pitch: float,
    yaw: float,
) -> NDArray[np.float64]:
    """Build the body-to-navigation DCM from Euler angles.

    Args:
        roll: Rotation about the body x-axis in radians.
        pitch: Rotation about the body y-axis in radians.
        yaw: Rotation about the navigation z-axis in radians.

    Returns:
        3x3 matrix R such that v_nav = R @ v_body.

    Example:
        >>> R = euler_to_rotation_matrix(0.0, 0.0, np.pi / 2)
        >>> np.round(R @ np.array([1.0, 0.0, 0.0]), 6)
        array([0., 1., 0.])
    """
    cphi, sphi = np.cos(roll), np.sin(roll)
    cthe, sthe = np.cos(pitch), np.sin(pitch)
    cpsi, spsi = np.cos(yaw), np.sin(yaw)

    # Elementary frame rotations; their product maps navigation -> body.
    c_x = np.array([[1.0, 0.0, 0.0], [0.0, cphi, sphi], [0.0, -sphi, cphi]])
    c_y = np.array([[cthe, 0.0, -sthe], [0.0, 1.0, 0.0], [sthe, 0.0, cthe]])
    c_z = np.array([[cpsi, spsi, 0.0], [-spsi, cpsi, 0.0], [0.0, 0.0, 1.0]])

    return np.ascontiguousarray((c_x @ c_y @ c_z).T, dtype=np.float64)


def rotation_matrix_to_euler(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Extract [roll, pitch, yaw] from a body-to-navigation DCM.

    Args:
        R: 3x3 rotation matrix.

    Returns:
        Euler angles [roll, pitch, yaw] in radians.

    Raises:
        InvalidInputError: If R is not 3x3.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise InvalidInputError(f"R must have shape (3, 3), got {R.shape}")

    sin_pitch = -R[2, 0]
    if abs(sin_pitch) > 1.0 - _GIMBAL_LOCK_TOL:
        warnings.warn(
            "Pitch is at ±90°, roll and yaw are not separable",
            UserWarning,
        )
    pitch = np.arcsin(np.clip(sin_pitch, -1.0, 1.0))
    roll = np.arctan2(R[2, 1], R[2, 2])
    yaw = np.arctan2(R[1, 0], R[0, 0])

    return np.array([roll, pitch, yaw], dtype=np.float64)


def euler_to_quat(
    roll: float,
    pitch: float,
    yaw: float,
) -> NDArray[np.float64]:
    """Half-angle conversion of Z-Y-X Euler angles to a unit quaternion.

    Returns:
        Quaternion [qw, qx, qy, qz].
    """
    half = 0.5 * np.array([roll, pitch, yaw], dtype=np.float64)
    (cr, cp, cy), (sr, sp, sy) = np.cos(half), np.sin(half)

    return np.array(
        [
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        ],
        dtype=np.float64,
    )


def quat_to_rotation_matrix(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Body-to-navigation DCM of a quaternion.

    The quaternion is normalized first, so slightly denormalized inputs
    still produce an orthonormal matrix.

    Raises:
        InvalidInputError: If q does not have 4 elements.
    """
    q = _as_quat(q)
    w, x, y, z = quat_normalize(q)

    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z

    return np.array(
        [
            [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy)],
            [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx)],
            [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy)],
        ],
        dtype=np.float64,
    )


def quat_to_euler(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Euler angles [roll, pitch, yaw] of a quaternion (via its DCM)."""
    return rotation_matrix_to_euler(quat_to_rotation_matrix(q))


def rotation_matrix_to_quat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a DCM to a quaternion with Shepperd's method.

    Four candidates proportional to 4*qw², 4*qx², 4*qy², 4*qz² are formed
    from the trace and the diagonal. The largest one fixes the component
    computed with a square root, and the other three follow from the
    off-diagonal sums and differences, which keeps every division well away
    from zero.

    Args:
        R: 3x3 body-to-navigation rotation matrix.

    Returns:
        Unit quaternion [qw, qx, qy, qz] with qw >= 0.

    Raises:
        InvalidInputError: If R is not 3x3.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise InvalidInputError(f"R must have shape (3, 3), got {R.shape}")

    trace = np.trace(R)
    candidates = np.array(
        [
            1.0 + trace,
            1.0 + 2.0 * R[0, 0] - trace,
            1.0 + 2.0 * R[1, 1] - trace,
            1.0 + 2.0 * R[2, 2] - trace,
        ]
    )
    k = int(np.argmax(candidates))

    if k == 0:
        w = 0.5 * np.sqrt(candidates[0])
        x = 0.25 * (R[2, 1] - R[1, 2]) / w
        y = 0.25 * (R[0, 2] - R[2, 0]) / w
        z = 0.25 * (R[1, 0] - R[0, 1]) / w
    elif k == 1:
        x = 0.5 * np.sqrt(candidates[1])
        w = 0.25 * (R[2, 1] - R[1, 2]) / x
        y = 0.25 * (R[0, 1] + R[1, 0]) / x
        z = 0.25 * (R[0, 2] + R[2, 0]) / x
    elif k == 2:
        y = 0.5 * np.sqrt(candidates[2])
        w = 0.25 * (R[0, 2] - R[2, 0]) / y
        x = 0.25 * (R[0, 1] + R[1, 0]) / y
        z = 0.25 * (R[1, 2] + R[2, 1]) / y
    else:
        z = 0.5 * np.sqrt(candidates[3])
        w = 0.25 * (R[1, 0] - R[0, 1]) / z
        x = 0.25 * (R[0, 2] + R[2, 0]) / z
        y = 0.25 * (R[1, 2] + R[2, 1]) / z

    q = quat_normalize(np.array([w, x, y, z], dtype=np.float64))
    # q and -q are the same rotation
    return q if q[0] >= 0.0 else -q


def axis_angle_to_quat(axis: NDArray[np.float64], angle: float) -> NDArray[np.float64]:
    """Quaternion for a rotation of `angle` radians about `axis`.

    The axis is normalized internally. A zero axis yields the identity.
    """
    axis = np.asarray(axis, dtype=np.float64)
    if axis.shape != (3,):
        raise InvalidInputError(f"axis must have shape (3,), got {axis.shape}")

    norm = np.linalg.norm(axis)
    if norm == 0.0:
        return np.array([1.0, 0.0, 0.0, 0.0])

    half = 0.5 * angle
    return np.concatenate(([np.cos(half)], np.sin(half) * axis / norm))


def quat_multiply(p: NDArray[np.float64], q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Hamilton product p ⊗ q."""
    pw, px, py, pz = _as_quat(p)
    qw, qx, qy, qz = _as_quat(q)

    return np.array(
        [
            pw * qw - px * qx - py * qy - pz * qz,
            pw * qx + px * qw + py * qz - pz * qy,
            pw * qy - px * qz + py * qw + pz * qx,
            pw * qz + px * qy - py * qx + pz * qw,
        ],
        dtype=np.float64,
    )


def quat_conjugate(q: NDArray[np.float64]) -> NDArray[np.float64]:
    q = _as_quat(q)
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=np.float64)


def quat_normalize(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Scale q to unit norm. A zero quaternion is returned unchanged."""
    q = _as_quat(q)
    norm = np.linalg.norm(q)
    if norm == 0.0:
        return q.copy()
    return q / norm


def quat_rotate(q: NDArray[np.float64], v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Rotate vector v by quaternion q: v' = q ⊗ (0, v) ⊗ q*.

    q is normalized before rotating so the conjugate is its inverse.
    """
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise InvalidInputError(f"v must have shape (3,), got {v.shape}")

    qn = quat_normalize(q)
    qv = np.concatenate(([0.0], v))
    return quat_multiply(quat_multiply(qn, qv), quat_conjugate(qn))[1:]


def _as_quat(q: NDArray[np.float64]) -> NDArray[np.float64]:
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise InvalidInputError(f"quaternion must have shape (4,), got {q.shape}")
    return q
