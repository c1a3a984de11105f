"""Rotation math for body-worn inertial sensors.

Array conversions between direction cosine matrices, quaternions and Euler
angles, plus the Vector3D / Quaternion / DCM / EulerAngles value types.
All rotations map body-frame vectors into the navigation frame.
"""

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
from pdrnav.coords.types import DCM, EulerAngles, Quaternion, Vector3D

__all__ = [
    # Value types
    "Vector3D",
    "Quaternion",
    "DCM",
    "EulerAngles",
    # Conversions
    "euler_to_quat",
    "euler_to_rotation_matrix",
    "quat_to_euler",
    "quat_to_rotation_matrix",
    "rotation_matrix_to_euler",
    "rotation_matrix_to_quat",
    "axis_angle_to_quat",
    # Quaternion algebra
    "quat_multiply",
    "quat_conjugate",
    "quat_normalize",
    "quat_rotate",
]
