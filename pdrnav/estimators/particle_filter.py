"""
Particle filter for position tracking with map constraints.

Each particle holds a state vector whose first two components are
(north, east) in meters. The filter is driven step by step:

    predict(motion_model)   x_i <- motion_model(x_i) + w_i,  w_i ~ N(0, diag(Q))
    update(z, constraint)   w_i <- w_i * p(z | x_i) * (0.01 if off-map)
    resample()              systematic resampling, uniform weights
    estimate()              weighted mean of the particles

The measurement likelihood is an unnormalized Gaussian on north/east with
independent variances taken from the measurement-noise matrix diagonal:

    p(z | x) = exp(-(dn² / (2 R_nn) + de² / (2 R_ee)))

Weights always sum to one after update(). If every weight underflows to
zero, they are reset to uniform and the collapse is logged; this is not an
error condition.
"""

import logging
from typing import Callable, Optional, Tuple

import numpy as np

from pdrnav.estimators.base import StateEstimator
from pdrnav.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

MAP_PENALTY = 0.01

MotionModel = Callable[[np.ndarray], np.ndarray]
PositionConstraint = Callable[[float, float], bool]


class ParticleFilter(StateEstimator):
    """
    Particle filter over an n-dimensional state with (north, east) first.

    Attributes:
        n_particles: Number of particles N.
        particles: Particle states (N, state_dim).
        weights: Normalized particle weights (N,).
        process_noise: Process noise covariance (state_dim × state_dim); the
            square roots of its diagonal are the per-dimension noise stds.
        measurement_noise: Measurement noise covariance (2×2) on north/east.

    Example:
        >>> pf = ParticleFilter(100, 2, rng=np.random.default_rng(0))
        >>> pf.initialize(np.array([0.0, 0.0]), 0.5)
        >>> pf.predict(lambda x: x + np.array([0.7, 0.0]))
        >>> pf.update(np.array([0.7, 0.0]))
        >>> pf.resample()
    """

    def __init__(
        self,
        n_particles: int,
        state_dim: int = 2,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            n_particles: Number of particles, >= 1.
            state_dim: State dimension, >= 2 (north and east come first).
            rng: Random generator. Defaults to a fresh default_rng().

        Raises:
            InvalidInputError: If n_particles < 1 or state_dim < 2.
        """
        if n_particles < 1:
            raise InvalidInputError(f"n_particles must be >= 1, got {n_particles}")
        if state_dim < 2:
            raise InvalidInputError(f"state_dim must be >= 2 (north, east), got {state_dim}")

        super().__init__(state_dim)
        self.n_particles = n_particles
        self.rng = rng if rng is not None else np.random.default_rng()

        self.particles = np.zeros((n_particles, state_dim))
        self.weights = np.full(n_particles, 1.0 / n_particles)
        self.process_noise = np.eye(state_dim) * 0.01
        self.measurement_noise = np.eye(2)
        self._update_state_estimate()

    def initialize(self, state: np.ndarray, noise_std: float) -> None:
        """
        Scatter the particles around `state` with isotropic Gaussian noise.

        Args:
            state: Initial state (state_dim,).
            noise_std: Standard deviation of the scatter, per dimension.
        """
        state = np.asarray(state, dtype=float)
        if state.shape != (self.state_dim,):
            raise InvalidInputError(
                f"state must have shape ({self.state_dim},), got {state.shape}"
            )
        if noise_std < 0:
            raise InvalidInputError(f"noise_std must be non-negative, got {noise_std}")

        self.particles = state + noise_std * self.rng.standard_normal(
            (self.n_particles, self.state_dim)
        )
        self.weights = np.full(self.n_particles, 1.0 / self.n_particles)
        self._update_state_estimate()

    def set_process_noise(self, Q: np.ndarray) -> None:
        Q = np.array(Q, dtype=float)
        if Q.shape != (self.state_dim, self.state_dim):
            raise InvalidInputError(
                f"Process noise must have shape ({self.state_dim}, {self.state_dim}), "
                f"got {Q.shape}"
            )
        if np.any(np.diag(Q) < 0):
            raise InvalidInputError("Process noise diagonal must be non-negative")
        self.process_noise = Q

    def set_measurement_noise(self, R: np.ndarray) -> None:
        R = np.array(R, dtype=float)
        if R.shape != (2, 2):
            raise InvalidInputError(f"Measurement noise must have shape (2, 2), got {R.shape}")
        if R[0, 0] <= 0 or R[1, 1] <= 0:
            raise InvalidInputError("Measurement noise variances must be positive")
        self.measurement_noise = R

    def predict(self, motion_model: MotionModel) -> None:
        """
        Propagate every particle through motion_model and add process noise.

        Args:
            motion_model: Function x -> x_next applied per particle.
        """
        propagated = np.array([motion_model(p) for p in self.particles], dtype=float)
        if propagated.shape != self.particles.shape:
            raise InvalidInputError(
                f"motion_model must return shape ({self.state_dim},) per particle"
            )

        noise_std = np.sqrt(np.diag(self.process_noise))
        self.particles = propagated + self.rng.standard_normal(propagated.shape) * noise_std
        self._update_state_estimate()

    def update(
        self,
        z: np.ndarray,
        constraint: Optional[PositionConstraint] = None,
    ) -> None:
        """
        Reweight particles against a (north, east) measurement.

        Args:
            z: Measured position [north, east].
            constraint: Optional predicate valid(north, east). Particles where
                it returns False keep MAP_PENALTY of their likelihood.
        """
        z = np.asarray(z, dtype=float)
        if z.shape != (2,):
            raise InvalidInputError(f"measurement must have shape (2,), got {z.shape}")

        d_north = z[0] - self.particles[:, 0]
        d_east = z[1] - self.particles[:, 1]
        likelihood = np.exp(
            -(
                d_north**2 / (2.0 * self.measurement_noise[0, 0])
                + d_east**2 / (2.0 * self.measurement_noise[1, 1])
            )
        )

        if constraint is not None:
            valid = np.array(
                [constraint(n, e) for n, e in self.particles[:, :2]], dtype=bool
            )
            likelihood = np.where(valid, likelihood, likelihood * MAP_PENALTY)

        weights = self.weights * likelihood
        total = weights.sum()
        if total > 0 and np.isfinite(total):
            self.weights = weights / total
        else:
            logger.debug("Particle weights collapsed, resetting to uniform")
            self.weights = np.full(self.n_particles, 1.0 / self.n_particles)

        self._update_state_estimate()

    def resample(self) -> None:
        """
        Systematic resampling.

        One offset u0 ~ U[0, 1/N) is drawn and the cumulative weights are
        walked with stride 1/N. The particle count is preserved and the
        weights become uniform.
        """
        n = self.n_particles
        cdf = np.cumsum(self.weights)
        u = self.rng.uniform(0.0, 1.0 / n)

        indices = np.empty(n, dtype=int)
        j = 0
        for i in range(n):
            while j < n - 1 and u > cdf[j]:
                j += 1
            indices[i] = j
            u += 1.0 / n

        self.particles = self.particles[indices].copy()
        self.weights = np.full(n, 1.0 / n)
        self._update_state_estimate()

    def estimate(self) -> np.ndarray:
        """Weighted mean of the particles."""
        return self.state.copy()

    def effective_sample_size(self) -> float:
        """N_eff = 1 / Σ w_i²."""
        return float(1.0 / np.sum(self.weights**2))

    def get_particles(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.particles.copy(), self.weights.copy()

    def _update_state_estimate(self) -> None:
        self.state = self.weights @ self.particles
        diff = self.particles - self.state
        self.covariance = (self.weights[:, np.newaxis] * diff).T @ diff
