"""
Base class for recursive state estimators.

Every filter instance owns its state vector and covariance. Instances are
mutated in place by predict/update and must not be shared between
independent navigation runs.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np


class StateEstimator(ABC):
    """Abstract base class for recursive state estimators."""

    def __init__(self, state_dim: int):
        """
        Args:
            state_dim: Dimension of the state vector.
        """
        self.state_dim = state_dim
        self.state: Optional[np.ndarray] = None
        self.covariance: Optional[np.ndarray] = None

    @abstractmethod
    def predict(self, *args, **kwargs) -> None:
        """Time update."""

    @abstractmethod
    def update(self, z: np.ndarray, *args, **kwargs) -> None:
        """Measurement update."""

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Copies of the current state estimate and covariance.

        Raises:
            RuntimeError: If the estimator has not been initialized.
        """
        if self.state is None or self.covariance is None:
            raise RuntimeError("Estimator not initialized.")
        return self.state.copy(), self.covariance.copy()
