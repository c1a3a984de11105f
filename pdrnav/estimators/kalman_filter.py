"""
Kalman filter with linear and externally linearized updates.

Linear model:
    x_k = A x_{k-1} + w,      w ~ N(0, Q)
    z_k = H x_k + v,          v ~ N(0, R)

Prediction:
    x <- A x
    P <- A P A^T + Q

Update:
    y = z - H x               (innovation)
    S = H P H^T + R           (innovation covariance)
    K = P H^T S^{-1}          (gain)
    x <- x + K y
    P <- (I - K H) P          (then symmetrized)

The nonlinear entry points (predict_nonlinear / update_nonlinear) take a
transition function with its Jacobian, or a predicted measurement with its
Jacobian, and run exactly the same algebra. S^{-1} goes through
pdrnav.estimators.linalg.invert_matrix, so a singular innovation covariance
raises SingularMatrixError and leaves x and P untouched.

Every setter validates dimensions before touching the filter, so a bad
matrix never leaves the filter half-configured.
"""

from typing import Callable, Optional, Tuple

import numpy as np

from pdrnav.estimators.base import StateEstimator
from pdrnav.estimators.linalg import invert_matrix
from pdrnav.exceptions import InvalidInputError


class KalmanFilter(StateEstimator):
    """
    Linear Kalman filter.

    Attributes:
        F: State transition matrix A (n×n).
        Q: Process noise covariance (n×n).
        H: Measurement matrix (m×n).
        R: Measurement noise covariance (m×m).
        state: Current state estimate x (n,).
        covariance: Current state covariance P (n×n).

    Example:
        >>> kf = KalmanFilter.with_dimensions(2, 1)
        >>> kf.set_transition(np.array([[1.0, 1.0], [0.0, 1.0]]))
        >>> kf.set_state(np.array([0.0, 1.0]))
        >>> kf.predict()
        >>> kf.state
        array([1., 1.])
    """

    def __init__(
        self,
        F: np.ndarray,
        Q: np.ndarray,
        H: np.ndarray,
        R: np.ndarray,
        x0: Optional[np.ndarray] = None,
        P0: Optional[np.ndarray] = None,
    ):
        """
        Args:
            F: State transition matrix (n×n).
            Q: Process noise covariance (n×n).
            H: Measurement matrix (m×n).
            R: Measurement noise covariance (m×m).
            x0: Initial state (n,). Defaults to zeros.
            P0: Initial covariance (n×n). Defaults to identity.

        Raises:
            InvalidInputError: If any dimension is inconsistent.
        """
        F = np.asarray(F, dtype=float)
        if F.ndim != 2 or F.shape[0] != F.shape[1] or F.shape[0] == 0:
            raise InvalidInputError(f"F must be a non-empty square matrix, got shape {F.shape}")
        n = F.shape[0]

        H = np.asarray(H, dtype=float)
        if H.ndim != 2 or H.shape[1] != n or H.shape[0] == 0:
            raise InvalidInputError(f"H must have shape (m, {n}), got {H.shape}")
        m = H.shape[0]

        super().__init__(n)
        self.measurement_dim = m

        self.F = _checked(F, (n, n), "F")
        self.Q = _checked(Q, (n, n), "Q")
        self.H = H.copy()
        self.R = _checked(R, (m, m), "R")
        self.state = np.zeros(n) if x0 is None else _checked(x0, (n,), "x0")
        self.covariance = np.eye(n) if P0 is None else _checked(P0, (n, n), "P0")

    @classmethod
    def with_dimensions(cls, state_dim: int, measurement_dim: int) -> "KalmanFilter":
        """
        Filter with default matrices: A = I, P = I, Q = 0, R = I, H = 0, x = 0.
        """
        if state_dim < 1 or measurement_dim < 1:
            raise InvalidInputError(
                f"Dimensions must be positive, got state_dim={state_dim}, "
                f"measurement_dim={measurement_dim}"
            )
        return cls(
            F=np.eye(state_dim),
            Q=np.zeros((state_dim, state_dim)),
            H=np.zeros((measurement_dim, state_dim)),
            R=np.eye(measurement_dim),
        )

    # ------------------------------------------------------------------
    # Validated setters
    # ------------------------------------------------------------------

    def set_state(self, x: np.ndarray, P: Optional[np.ndarray] = None) -> None:
        """Replace the state (and optionally the covariance)."""
        x = _checked(x, (self.state_dim,), "x")
        if P is not None:
            self.covariance = _checked(P, (self.state_dim, self.state_dim), "P")
        self.state = x

    def set_covariance(self, P: np.ndarray) -> None:
        self.covariance = _checked(P, (self.state_dim, self.state_dim), "P")

    def set_transition(self, F: np.ndarray) -> None:
        self.F = _checked(F, (self.state_dim, self.state_dim), "F")

    def set_process_noise(self, Q: np.ndarray) -> None:
        self.Q = _checked(Q, (self.state_dim, self.state_dim), "Q")

    def set_measurement_matrix(self, H: np.ndarray) -> None:
        self.H = _checked(H, (self.measurement_dim, self.state_dim), "H")

    def set_measurement_noise(self, R: np.ndarray) -> None:
        self.R = _checked(R, (self.measurement_dim, self.measurement_dim), "R")

    # ------------------------------------------------------------------
    # Linear steps
    # ------------------------------------------------------------------

    def predict(self, u: Optional[np.ndarray] = None) -> None:
        """
        Time update x <- A x (+ u), P <- A P A^T + Q.

        Args:
            u: Optional additive control vector (n,).
        """
        self.state = self.F @ self.state
        if u is not None:
            self.state = self.state + _checked(u, (self.state_dim,), "u")
        self.covariance = self.F @ self.covariance @ self.F.T + self.Q

    def update(self, z: np.ndarray) -> None:
        """
        Measurement update with the linear model z = H x + v.

        Raises:
            InvalidInputError: If z does not have shape (m,).
            SingularMatrixError: If H P H^T + R cannot be inverted.
        """
        z = _checked(z, (self.measurement_dim,), "z")
        self._correct(z - self.H @ self.state, self.H, self.R)

    # ------------------------------------------------------------------
    # Externally linearized steps
    # ------------------------------------------------------------------

    def predict_nonlinear(
        self,
        transition: Callable[[np.ndarray], np.ndarray],
        jacobian: Callable[[np.ndarray], np.ndarray],
    ) -> None:
        """
        Time update with a nonlinear transition x <- f(x).

        The Jacobian is evaluated at the pre-prediction state and replaces A
        in the covariance propagation.
        """
        x_pre = self.state.copy()
        F = _checked(jacobian(x_pre), (self.state_dim, self.state_dim), "jacobian")
        x_new = _checked(transition(x_pre), (self.state_dim,), "transition(x)")

        self.state = x_new
        self.covariance = F @ self.covariance @ F.T + self.Q

    def update_nonlinear(self, z: np.ndarray, h: np.ndarray, H: np.ndarray) -> None:
        """
        Measurement update around a predicted measurement.

        Args:
            z: Measurement (m,).
            h: Predicted measurement h(x) at the current state (m,).
            H: Jacobian of h at the current state (m×n).
        """
        m = self.measurement_dim
        z = _checked(z, (m,), "z")
        h = _checked(h, (m,), "h")
        H = _checked(H, (m, self.state_dim), "H")
        self._correct(z - h, H, self.R)

    def get_innovation(self, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Innovation y = z - H x and its covariance S = H P H^T + R.
        """
        z = _checked(z, (self.measurement_dim,), "z")
        innovation = z - self.H @ self.state
        innovation_cov = self.H @ self.covariance @ self.H.T + self.R
        return innovation, innovation_cov

    def _correct(self, innovation: np.ndarray, H: np.ndarray, R: np.ndarray) -> None:
        S = H @ self.covariance @ H.T + R
        # Raises before any state change
        S_inv = invert_matrix(S)

        K = self.covariance @ H.T @ S_inv
        self.state = self.state + K @ innovation
        P = (np.eye(self.state_dim) - K @ H) @ self.covariance
        # Round-off makes (I - K H) P drift from symmetric
        self.covariance = 0.5 * (P + P.T)


def _checked(value: np.ndarray, shape: Tuple[int, ...], name: str) -> np.ndarray:
    arr = np.array(value, dtype=float)
    if arr.shape != shape:
        raise InvalidInputError(f"{name} must have shape {shape}, got {arr.shape}")
    return arr
