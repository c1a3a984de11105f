"""
Extended Kalman Filter built on the shared Kalman algebra.

Nonlinear models:
    x_k = f(x_{k-1}, u_k, dt) + w
    z_k = h(x_k) + v

The process Jacobian is evaluated at the pre-prediction state, the
measurement Jacobian at the predicted state. Gain and covariance updates are
those of KalmanFilter (P <- (I - K H) P), including the singular innovation
covariance check.
"""

from typing import Callable, Optional, Tuple

import numpy as np

from pdrnav.estimators.kalman_filter import KalmanFilter


class ExtendedKalmanFilter(KalmanFilter):
    """
    Extended Kalman Filter with user-supplied models and Jacobians.

    Attributes:
        process_model: f(x, u, dt) -> x_next
        process_jacobian: F(x, u, dt) -> ∂f/∂x (n×n)
        measurement_model: h(x) -> z_pred (m,)
        measurement_jacobian: H(x) -> ∂h/∂x (m×n)
    """

    def __init__(
        self,
        process_model: Callable[[np.ndarray, Optional[np.ndarray], float], np.ndarray],
        process_jacobian: Callable[[np.ndarray, Optional[np.ndarray], float], np.ndarray],
        measurement_model: Callable[[np.ndarray], np.ndarray],
        measurement_jacobian: Callable[[np.ndarray], np.ndarray],
        Q: np.ndarray,
        R: np.ndarray,
        x0: np.ndarray,
        P0: Optional[np.ndarray] = None,
    ):
        """
        Args:
            process_model: Nonlinear state transition f(x, u, dt).
            process_jacobian: Jacobian of f with respect to x.
            measurement_model: Nonlinear measurement function h(x).
            measurement_jacobian: Jacobian of h with respect to x.
            Q: Process noise covariance (n×n).
            R: Measurement noise covariance (m×m).
            x0: Initial state (n,).
            P0: Initial covariance (n×n). Defaults to identity.

        Raises:
            InvalidInputError: If dimensions are inconsistent.
        """
        x0 = np.asarray(x0, dtype=float)
        n = x0.shape[0]
        m = np.asarray(R).shape[0]
        super().__init__(
            F=np.eye(n),
            Q=Q,
            H=np.zeros((m, n)),
            R=R,
            x0=x0,
            P0=P0,
        )
        self.process_model = process_model
        self.process_jacobian = process_jacobian
        self.measurement_model = measurement_model
        self.measurement_jacobian = measurement_jacobian

    def predict(self, u: Optional[np.ndarray] = None, dt: float = 1.0) -> None:
        """
        x <- f(x, u, dt), P <- F P F^T + Q with F evaluated before propagation.
        """
        self.predict_nonlinear(
            lambda x: self.process_model(x, u, dt),
            lambda x: self.process_jacobian(x, u, dt),
        )

    def update(self, z: np.ndarray) -> None:
        """
        Correct with z against h(x) linearized at the predicted state.

        Raises:
            SingularMatrixError: If the innovation covariance is singular.
        """
        self.update_nonlinear(
            z,
            self.measurement_model(self.state),
            self.measurement_jacobian(self.state),
        )

    def get_innovation(self, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Innovation z - h(x) and its covariance H P H^T + R."""
        z = np.asarray(z, dtype=float)
        H = np.asarray(self.measurement_jacobian(self.state), dtype=float)
        innovation = z - self.measurement_model(self.state)
        return innovation, H @ self.covariance @ H.T + self.R
