"""
Value types for 3D vectors and rotations.

Thin, immutable wrappers around the array functions in
pdrnav.coords.rotations. They are convenient when composing rotations by
hand (tests, attitude bookkeeping); the batch pipeline itself works on
numpy arrays.

Frame convention: every rotation maps body-frame vectors into the
navigation frame (north/east/up as delivered by the orientation sensor).
"""

from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import NDArray

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
from pdrnav.utils.angles import wrap_angle


@dataclass(frozen=True)
class Vector3D:
    """
    Cartesian 3-vector (x, y, z along the body or navigation axes).

    Example:
        >>> a = Vector3D(1.0, 0.0, 0.0)
        >>> b = Vector3D(0.0, 1.0, 0.0)
        >>> a.cross(b)
        Vector3D(x=0.0, y=0.0, z=1.0)
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> "Vector3D":
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (3,):
            raise InvalidInputError(f"values must have shape (3,), got {values.shape}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def magnitude(self) -> float:
        return float(np.linalg.norm(self.to_array()))

    def normalize(self) -> "Vector3D":
        """Unit vector in the same direction; the zero vector stays zero."""
        mag = self.magnitude()
        if mag == 0.0:
            return self
        return self.scale(1.0 / mag)

    def add(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def subtract(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> "Vector3D":
        return Vector3D(self.x * factor, self.y * factor, self.z * factor)

    def dot(self, other: "Vector3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D.from_array(np.cross(self.to_array(), other.to_array()))

    def is_close(self, other: "Vector3D", eps: float = 1e-9) -> bool:
        return bool(np.all(np.abs(self.to_array() - other.to_array()) < eps))

    def __add__(self, other: "Vector3D") -> "Vector3D":
        return self.add(other)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return self.subtract(other)

    def __mul__(self, factor: float) -> "Vector3D":
        return self.scale(factor)

    __rmul__ = __mul__


@dataclass(frozen=True)
class Quaternion:
    """
    Rotation quaternion q = w + xi + yj + zk (body -> navigation).

    Products are Hamilton products: ``(p * q).rotate(v)`` equals
    ``p.rotate(q.rotate(v))``.
    """

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls()

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> "Quaternion":
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (4,):
            raise InvalidInputError(f"values must have shape (4,), got {values.shape}")
        return cls(*(float(v) for v in values))

    @classmethod
    def from_axis_angle(cls, axis: Union[Vector3D, NDArray[np.float64]], angle: float) -> "Quaternion":
        if isinstance(axis, Vector3D):
            axis = axis.to_array()
        return cls.from_array(axis_angle_to_quat(axis, angle))

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> "Quaternion":
        return cls.from_array(euler_to_quat(roll, pitch, yaw))

    @classmethod
    def from_dcm(cls, dcm: Union["DCM", NDArray[np.float64]]) -> "Quaternion":
        matrix = dcm.matrix if isinstance(dcm, DCM) else dcm
        return cls.from_array(rotation_matrix_to_quat(matrix))

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    def to_dcm(self) -> "DCM":
        return DCM(quat_to_rotation_matrix(self.to_array()))

    def to_euler(self) -> "EulerAngles":
        return EulerAngles(*quat_to_euler(self.to_array()))

    def magnitude(self) -> float:
        return float(np.linalg.norm(self.to_array()))

    def normalize(self) -> "Quaternion":
        """Unit quaternion; a zero quaternion is returned unchanged."""
        return Quaternion.from_array(quat_normalize(self.to_array()))

    def conjugate(self) -> "Quaternion":
        return Quaternion.from_array(quat_conjugate(self.to_array()))

    def multiply(self, other: "Quaternion") -> "Quaternion":
        return Quaternion.from_array(quat_multiply(self.to_array(), other.to_array()))

    def rotate(self, vector: Union[Vector3D, NDArray[np.float64]]) -> Vector3D:
        if isinstance(vector, Vector3D):
            vector = vector.to_array()
        return Vector3D.from_array(quat_rotate(self.to_array(), vector))

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        return self.multiply(other)


class DCM:
    """
    Direction cosine matrix (3x3, body -> navigation).

    Args:
        matrix: 3x3 array-like. Orthonormality is not enforced; the caller
            owns that invariant when building a DCM from raw values.

    Raises:
        InvalidInputError: If matrix is not 3x3.

    Example:
        >>> dcm = DCM.from_euler(0.0, 0.0, np.pi / 2)
        >>> np.round(dcm.transform_to_body_frame(np.array([0.0, 1.0, 0.0])), 6)
        array([1., 0., 0.])
    """

    def __init__(self, matrix: NDArray[np.float64]):
        matrix = np.array(matrix, dtype=np.float64)
        if matrix.shape != (3, 3):
            raise InvalidInputError(f"DCM must have shape (3, 3), got {matrix.shape}")
        self._matrix = matrix

    @classmethod
    def identity(cls) -> "DCM":
        return cls(np.eye(3))

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> "DCM":
        """
        Body-to-navigation DCM, Rz(yaw) @ Ry(pitch) @ Rx(roll).

        This is the transpose of the frame-rotation product Cx @ Cy @ Cz,
        which maps navigation vectors into the body frame instead.
        """
        return cls(euler_to_rotation_matrix(roll, pitch, yaw))

    @property
    def matrix(self) -> NDArray[np.float64]:
        return self._matrix.copy()

    def to_euler(self) -> "EulerAngles":
        return EulerAngles(*rotation_matrix_to_euler(self._matrix))

    def to_quaternion(self) -> Quaternion:
        return Quaternion.from_dcm(self._matrix)

    def transpose(self) -> "DCM":
        return DCM(self._matrix.T)

    def multiply(self, other: "DCM") -> "DCM":
        return DCM(self._matrix @ other._matrix)

    def transform_to_nav_frame(self, v: NDArray[np.float64]) -> NDArray[np.float64]:
        return self._matrix @ _as_vec3(v)

    def transform_to_body_frame(self, v: NDArray[np.float64]) -> NDArray[np.float64]:
        return self._matrix.T @ _as_vec3(v)

    def __matmul__(self, other: "DCM") -> "DCM":
        return self.multiply(other)

    def __repr__(self) -> str:
        return f"DCM({self._matrix.tolist()})"


@dataclass(frozen=True)
class EulerAngles:
    """Roll, pitch and yaw in radians."""

    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    @classmethod
    def from_degrees(cls, roll_deg: float, pitch_deg: float, yaw_deg: float) -> "EulerAngles":
        return cls(*np.deg2rad([roll_deg, pitch_deg, yaw_deg]).tolist())

    def to_degrees(self) -> NDArray[np.float64]:
        return np.rad2deg(self.to_array())

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.roll, self.pitch, self.yaw], dtype=np.float64)

    def normalize(self) -> "EulerAngles":
        """Wrap each angle independently into [-π, π]."""
        return EulerAngles(wrap_angle(self.roll), wrap_angle(self.pitch), wrap_angle(self.yaw))

    def to_dcm(self) -> DCM:
        return DCM.from_euler(self.roll, self.pitch, self.yaw)

    def to_quaternion(self) -> Quaternion:
        return Quaternion.from_euler(self.roll, self.pitch, self.yaw)


def _as_vec3(v: Union[Vector3D, NDArray[np.float64]]) -> NDArray[np.float64]:
    if isinstance(v, Vector3D):
        return v.to_array()
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise InvalidInputError(f"vector must have shape (3,), got {v.shape}")
    return v
