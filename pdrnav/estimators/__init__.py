"""
Recursive state estimators used by the PDR pipeline.

Available estimators:
    - Kalman Filter (KF) with linear and externally linearized updates
    - Extended Kalman Filter (EKF)
    - Particle Filter (PF) with map-constrained weighting
"""

from pdrnav.estimators.base import StateEstimator
from pdrnav.estimators.linalg import PIVOT_TOLERANCE, invert_matrix
from pdrnav.estimators.kalman_filter import KalmanFilter
from pdrnav.estimators.extended_kalman_filter import ExtendedKalmanFilter
from pdrnav.estimators.particle_filter import MAP_PENALTY, ParticleFilter

__all__ = [
    "StateEstimator",
    # Linear algebra
    "invert_matrix",
    "PIVOT_TOLERANCE",
    # Kalman filters
    "KalmanFilter",
    "ExtendedKalmanFilter",
    # Particle filter
    "ParticleFilter",
    "MAP_PENALTY",
]
