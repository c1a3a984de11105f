"""
Quaternion attitude estimation from gyroscope and accelerometer.

State: unit quaternion q = [w, x, y, z], body -> navigation.

Predict (every sample):
    Δθ = |ω| dt,  Δq = [cos(Δθ/2), sin(Δθ/2) ω/|ω|]
    q <- normalize(q ⊗ Δq)

Update (only while the device is judged non-accelerating, i.e. the
accelerometer magnitude is within `accel_tolerance` of g):
    z    = g * a / |a|                      (measured gravity, body frame)
    h(q) = C(q)^T (0, 0, g)^T
         = g [2(xz - wy), 2(yz + wx), w² - x² - y² + z²]
    H    = ∂h/∂q (3×4, below)

The quaternion is renormalized after every update and before it is read.
"""

import logging
from typing import Optional

import numpy as np

from pdrnav.coords.rotations import axis_angle_to_quat, quat_multiply, quat_normalize
from pdrnav.coords.types import EulerAngles, Quaternion
from pdrnav.estimators.extended_kalman_filter import ExtendedKalmanFilter
from pdrnav.exceptions import InvalidInputError, SingularMatrixError
from pdrnav.utils.angles import GRAVITY

logger = logging.getLogger(__name__)

DEFAULT_TIMESTEP = 0.02
ACCEL_TOLERANCE = 1.0
PROCESS_NOISE = 0.001
MEASUREMENT_NOISE = 0.1


def right_multiplication_matrix(p: np.ndarray) -> np.ndarray:
    """Matrix M(p) with q ⊗ p = M(p) @ q."""
    pw, px, py, pz = p
    return np.array(
        [
            [pw, -px, -py, -pz],
            [px, pw, pz, -py],
            [py, -pz, pw, px],
            [pz, py, -px, pw],
        ]
    )


def expected_gravity(q: np.ndarray, g: float) -> np.ndarray:
    """Navigation gravity (0, 0, g) seen in the body frame of attitude q."""
    w, x, y, z = q
    return g * np.array(
        [
            2.0 * (x * z - w * y),
            2.0 * (y * z + w * x),
            w * w - x * x - y * y + z * z,
        ]
    )


def expected_gravity_jacobian(q: np.ndarray, g: float) -> np.ndarray:
    """∂h/∂[w, x, y, z] of expected_gravity."""
    w, x, y, z = q
    return 2.0 * g * np.array(
        [
            [-y, z, -w, x],
            [x, w, z, y],
            [w, -x, -y, z],
        ]
    )


class AttitudeEstimator:
    """
    Quaternion EKF fusing gyroscope integration and gravity observations.

    Args:
        dt: Sampling interval in seconds. Default: 0.02 (50 Hz).
        gravity: Gravity magnitude in m/s². Default: 9.81.
        accel_tolerance: Maximum |‖a‖ - g| for a gravity update. Default: 1.0.

    Example:
        >>> est = AttitudeEstimator(dt=0.02)
        >>> q = est.update(np.zeros(3), np.array([0.0, 0.0, 9.81]))
        >>> np.round(q, 6)
        array([1., 0., 0., 0.])
    """

    def __init__(
        self,
        dt: float = DEFAULT_TIMESTEP,
        gravity: float = GRAVITY,
        accel_tolerance: float = ACCEL_TOLERANCE,
    ):
        if dt <= 0:
            raise InvalidInputError(f"dt must be positive, got {dt}")
        self.dt = float(dt)
        self.accel_tolerance = float(accel_tolerance)
        self.gravity = self._validate_gravity(gravity)
        self._ekf = self._build_filter()

    def _build_filter(self) -> ExtendedKalmanFilter:
        return ExtendedKalmanFilter(
            process_model=self._propagate,
            process_jacobian=self._propagation_jacobian,
            measurement_model=lambda q: expected_gravity(q, self.gravity),
            measurement_jacobian=lambda q: expected_gravity_jacobian(q, self.gravity),
            Q=PROCESS_NOISE * np.eye(4),
            R=MEASUREMENT_NOISE * np.eye(3),
            x0=np.array([1.0, 0.0, 0.0, 0.0]),
        )

    @staticmethod
    def _increment(omega: np.ndarray, dt: float) -> np.ndarray:
        angle = np.linalg.norm(omega) * dt
        if angle > 0.0:
            return axis_angle_to_quat(omega, angle)
        return np.array([1.0, 0.0, 0.0, 0.0])

    def _propagate(self, q: np.ndarray, omega: Optional[np.ndarray], dt: float) -> np.ndarray:
        return quat_normalize(quat_multiply(q, self._increment(omega, dt)))

    def _propagation_jacobian(self, q: np.ndarray, omega: Optional[np.ndarray], dt: float) -> np.ndarray:
        return right_multiplication_matrix(self._increment(omega, dt))

    def update(self, gyro: np.ndarray, accel: np.ndarray) -> np.ndarray:
        """
        Process one gyroscope/accelerometer sample.

        Args:
            gyro: Body angular rate, shape (3,). Units: rad/s.
            accel: Body specific force, shape (3,). Units: m/s².

        Returns:
            Normalized quaternion [w, x, y, z].
        """
        gyro = np.asarray(gyro, dtype=float)
        accel = np.asarray(accel, dtype=float)
        if gyro.shape != (3,):
            raise InvalidInputError(f"gyro must have shape (3,), got {gyro.shape}")
        if accel.shape != (3,):
            raise InvalidInputError(f"accel must have shape (3,), got {accel.shape}")

        self._ekf.predict(u=gyro, dt=self.dt)

        accel_norm = np.linalg.norm(accel)
        if accel_norm > 0.0 and abs(accel_norm - self.gravity) < self.accel_tolerance:
            try:
                self._ekf.update(accel / accel_norm * self.gravity)
            except SingularMatrixError:
                logger.warning("Singular innovation covariance, skipping gravity update")

        self._ekf.set_state(quat_normalize(self._ekf.state))
        return self._ekf.state.copy()

    def estimate(self, gyro: np.ndarray, accel: np.ndarray) -> np.ndarray:
        """
        Run over whole recordings.

        Args:
            gyro: Shape (N, 3), rad/s.
            accel: Shape (N, 3), m/s².

        Returns:
            Quaternions after each sample, shape (N, 4).
        """
        gyro = np.asarray(gyro, dtype=float)
        accel = np.asarray(accel, dtype=float)
        if gyro.ndim != 2 or gyro.shape[1] != 3 or gyro.shape != accel.shape:
            raise InvalidInputError(
                f"gyro and accel must both have shape (N, 3), got {gyro.shape} and {accel.shape}"
            )
        return np.array([self.update(w, a) for w, a in zip(gyro, accel)]).reshape(-1, 4)

    @property
    def quaternion(self) -> Quaternion:
        return Quaternion.from_array(quat_normalize(self._ekf.state))

    @property
    def euler_angles(self) -> EulerAngles:
        return self.quaternion.to_euler()

    def set_gravity(self, gravity: float) -> None:
        self.gravity = self._validate_gravity(gravity)

    def reset(self) -> None:
        """Back to the identity attitude with unit covariance."""
        self._ekf = self._build_filter()

    @staticmethod
    def _validate_gravity(gravity: float) -> float:
        if gravity <= 0:
            raise InvalidInputError(f"gravity must be positive, got {gravity}")
        return float(gravity)
