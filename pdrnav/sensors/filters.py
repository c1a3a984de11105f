"""
Digital low-pass filters for acceleration signals.

Two causal, stateful filters are provided:

    - LowPassFilter: single-pole exponential smoother
          y[n] = α x[n] + (1 - α) y[n-1],   y[0] = x[0]
    - FIRFilter: Hamming-windowed-sinc FIR low-pass with unit DC gain,
      applied as a circular-buffer convolution with zeroed history.

Both keep history between calls. Use reset() (or a new instance) before
filtering an unrelated recording.
"""

from typing import Optional, Sequence

import numpy as np
from scipy import signal

from pdrnav.exceptions import InvalidInputError


class LowPassFilter:
    """
    Single-pole exponential low-pass filter.

    Args:
        alpha: Smoothing factor in [0, 1]. 1 passes the input through,
            0 holds the first sample forever.

    Raises:
        InvalidInputError: If alpha is outside [0, 1].

    Example:
        >>> lpf = LowPassFilter(0.5)
        >>> lpf.filter(np.array([2.0, 0.0, 0.0]))
        array([2. , 1. , 0.5])
    """

    def __init__(self, alpha: float):
        self._alpha = self._validate_alpha(alpha)
        self._previous: Optional[float] = None

    @classmethod
    def from_frequency(cls, cutoff_hz: float, sample_rate_hz: float) -> "LowPassFilter":
        """
        Build from a cutoff frequency with the RC relation.

            RC = 1 / (2π f_c),  dt = 1 / f_s,  α = dt / (RC + dt)
        """
        if cutoff_hz <= 0 or sample_rate_hz <= 0:
            raise InvalidInputError(
                f"cutoff_hz and sample_rate_hz must be positive, got {cutoff_hz}, {sample_rate_hz}"
            )
        rc = 1.0 / (2.0 * np.pi * cutoff_hz)
        dt = 1.0 / sample_rate_hz
        return cls(dt / (rc + dt))

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = self._validate_alpha(value)

    def filter_sample(self, x: float) -> float:
        if self._previous is None:
            self._previous = float(x)
        else:
            self._previous = self._alpha * x + (1.0 - self._alpha) * self._previous
        return self._previous

    def filter(self, x: Sequence[float]) -> np.ndarray:
        return np.array([self.filter_sample(v) for v in np.asarray(x, dtype=float)])

    def reset(self) -> None:
        self._previous = None

    @staticmethod
    def _validate_alpha(alpha: float) -> float:
        if not 0.0 <= alpha <= 1.0:
            raise InvalidInputError(f"alpha must be in [0, 1], got {alpha}")
        return float(alpha)


class FIRFilter:
    """
    Finite impulse response filter with circular-buffer history.

    Args:
        coefficients: Tap weights b[0..order], shape (order + 1,).

    Example:
        >>> fir = FIRFilter.create_low_pass(order=10, cutoff=0.06)
        >>> round(float(fir.coefficients.sum()), 12)
        1.0
    """

    def __init__(self, coefficients: Sequence[float]):
        coefficients = np.asarray(coefficients, dtype=float)
        if coefficients.ndim != 1 or coefficients.size == 0:
            raise InvalidInputError(
                f"coefficients must be a non-empty 1D array, got shape {coefficients.shape}"
            )
        self._coefficients = coefficients.copy()
        self._buffer = np.zeros(coefficients.size)
        self._index = 0

    @classmethod
    def create_low_pass(cls, order: int, cutoff: float) -> "FIRFilter":
        """
        Hamming-windowed-sinc low-pass design.

        Args:
            order: Filter order; the filter has order + 1 taps.
            cutoff: Cutoff frequency normalized to Nyquist, in (0, 1).

        Returns:
            FIRFilter whose taps sum to one (unit DC gain).

        Notes:
            This approximates a least-squares FIR design of the same order;
            the responses are close but not bit-identical.
        """
        if order < 1:
            raise InvalidInputError(f"order must be >= 1, got {order}")
        if not 0.0 < cutoff < 1.0:
            raise InvalidInputError(f"cutoff must be in (0, 1), got {cutoff}")

        taps = signal.firwin(order + 1, cutoff, window="hamming", scale=False)
        return cls(taps / taps.sum())

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients.copy()

    @property
    def order(self) -> int:
        return self._coefficients.size - 1

    def process_sample(self, x: float) -> float:
        """Push one sample and return y[n] = Σ b[k] x[n-k]."""
        n = self._coefficients.size
        self._buffer[self._index] = x
        # buffer[(index - k) mod n] holds x[n - k]
        history = self._buffer[(self._index - np.arange(n)) % n]
        y = float(self._coefficients @ history)
        self._index = (self._index + 1) % n
        return y

    def process(self, x: Sequence[float]) -> np.ndarray:
        return np.array([self.process_sample(v) for v in np.asarray(x, dtype=float)])

    def reset(self) -> None:
        self._buffer[:] = 0.0
        self._index = 0
