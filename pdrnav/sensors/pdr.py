"""
Step detection and step length estimation for pedestrian dead reckoning.

Signal chain:
    1. Gravity removal: the gravity vector (0, 0, g) of the navigation frame
       is expressed in the body frame with the device attitude and subtracted
       from the accelerometer reading.
    2. Magnitude of the remaining linear acceleration, signed by its
       component along gravity so that the gait signal oscillates around 0.
    3. FIR low-pass (order 10, cutoff 0.06 by default).
    4. Peak/valley state machine on the first difference of the filtered
       signal; one step per peak/valley pair.
    5. Step length from the peak/valley features of each step with the
       Weinberg, Scarlet or Kim model, clamped to [0.3, 1.0] m.

Peak/valley rules:
    - peak:   slope changes + -> - and the sample is above +threshold
    - valley: slope changes - -> + and the sample is below -threshold
    - two peaks (or two valleys) in a row without the opposite extremum in
      between are merged: only the higher peak (lower valley) survives
    - step count = min(#peaks, #valleys)

Flat, short or sub-threshold signals simply yield zero steps.
"""

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pdrnav.coords.rotations import euler_to_rotation_matrix
from pdrnav.exceptions import InvalidInputError
from pdrnav.sensors.filters import FIRFilter
from pdrnav.utils.angles import GRAVITY

DEFAULT_FILTER_ORDER = 10
DEFAULT_FILTER_CUTOFF = 0.06
DEFAULT_STEP_THRESHOLD = 0.5
DEFAULT_K = 0.5
MIN_STEP_LENGTH = 0.3
MAX_STEP_LENGTH = 1.0


# ---------------------------------------------------------------------------
# Gravity removal and magnitude
# ---------------------------------------------------------------------------

def remove_gravity(
    accel_body: np.ndarray,
    orientation_rad: np.ndarray,
    g: float = GRAVITY,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Subtract gravity from body-frame accelerometer samples.

    For every sample the body-to-navigation DCM is built from
    [roll, pitch, yaw] and the navigation gravity (0, 0, g) is mapped into
    the body frame with its transpose:

        g_body = C_n^b (0, 0, g)^T,    a_lin = a_body - g_body

    Args:
        accel_body: Accelerometer samples, shape (N, 3). Units: m/s².
        orientation_rad: [roll, pitch, yaw] per sample, shape (N, 3). Units: rad.
        g: Gravity magnitude. Default: 9.81 m/s².

    Returns:
        Tuple (linear_accel, gravity_body), both shape (N, 3).

    Raises:
        InvalidInputError: If the arrays are not (N, 3) with equal N.
    """
    accel_body = np.asarray(accel_body, dtype=float)
    orientation_rad = np.asarray(orientation_rad, dtype=float)
    if accel_body.ndim != 2 or accel_body.shape[1] != 3:
        raise InvalidInputError(f"accel_body must have shape (N, 3), got {accel_body.shape}")
    if orientation_rad.shape != accel_body.shape:
        raise InvalidInputError(
            f"orientation_rad must have shape {accel_body.shape}, got {orientation_rad.shape}"
        )

    g_nav = np.array([0.0, 0.0, g])
    gravity_body = np.array(
        [euler_to_rotation_matrix(r, p, y).T @ g_nav for r, p, y in orientation_rad]
    ).reshape(-1, 3)

    return accel_body - gravity_body, gravity_body


def linear_accel_magnitude(
    linear_accel: np.ndarray,
    gravity_body: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Per-sample magnitude of the linear acceleration.

    With gravity_body given, each magnitude carries the sign of the linear
    acceleration's component along gravity, so pushing up off the floor is
    positive and the free-fall phase of a step is negative. Without it the
    plain Euclidean norm (always >= 0) is returned.

    Args:
        linear_accel: Gravity-free acceleration, shape (N, 3).
        gravity_body: Gravity in the body frame, shape (N, 3). Optional.

    Returns:
        Magnitudes, shape (N,).
    """
    linear_accel = np.asarray(linear_accel, dtype=float)
    if linear_accel.ndim != 2 or linear_accel.shape[1] != 3:
        raise InvalidInputError(
            f"linear_accel must have shape (N, 3), got {linear_accel.shape}"
        )

    magnitude = np.linalg.norm(linear_accel, axis=1)
    if gravity_body is None:
        return magnitude

    gravity_body = np.asarray(gravity_body, dtype=float)
    if gravity_body.shape != linear_accel.shape:
        raise InvalidInputError(
            f"gravity_body must have shape {linear_accel.shape}, got {gravity_body.shape}"
        )
    vertical = np.einsum("ij,ij->i", linear_accel, gravity_body)
    return np.where(vertical < 0.0, -magnitude, magnitude)


# ---------------------------------------------------------------------------
# Peak / valley detection
# ---------------------------------------------------------------------------

class PeakValleyDetector:
    """
    Peak/valley state machine over a filtered acceleration signal.

    Args:
        threshold: Peaks must exceed +threshold, valleys must be below
            -threshold. Default: 0.5.

    Example:
        >>> t = np.arange(200)
        >>> detector = PeakValleyDetector(0.5)
        >>> detector.detect(2.0 * np.sin(2 * np.pi * t / 20))
        10
    """

    def __init__(self, threshold: float = DEFAULT_STEP_THRESHOLD):
        if threshold < 0:
            raise InvalidInputError(f"threshold must be non-negative, got {threshold}")
        self.threshold = float(threshold)
        self._peaks: List[Tuple[int, float]] = []
        self._valleys: List[Tuple[int, float]] = []
        self._length = 0

    def detect(self, data: Sequence[float]) -> int:
        """
        Scan a signal and return the number of steps.

        Previous results are discarded. Fewer than three samples give no
        extrema.
        """
        data = np.asarray(data, dtype=float)
        if data.ndim != 1:
            raise InvalidInputError(f"data must be 1D, got shape {data.shape}")

        self._peaks, self._valleys = [], []
        self._length = data.size
        if data.size < 3:
            return 0

        slope = np.diff(data)
        last_kind = None
        for i in range(1, slope.size):
            if slope[i - 1] > 0 and slope[i] < 0 and data[i] > self.threshold:
                if last_kind == "peak":
                    if data[i] > self._peaks[-1][1]:
                        self._peaks[-1] = (i, float(data[i]))
                else:
                    self._peaks.append((i, float(data[i])))
                last_kind = "peak"
            elif slope[i - 1] < 0 and slope[i] > 0 and data[i] < -self.threshold:
                if last_kind == "valley":
                    if data[i] < self._valleys[-1][1]:
                        self._valleys[-1] = (i, float(data[i]))
                else:
                    self._valleys.append((i, float(data[i])))
                last_kind = "valley"

        return self.step_count

    @property
    def step_count(self) -> int:
        return min(len(self._peaks), len(self._valleys))

    @property
    def peak_indices(self) -> np.ndarray:
        return np.array([i for i, _ in self._peaks], dtype=int)

    @property
    def peak_values(self) -> np.ndarray:
        return np.array([v for _, v in self._peaks], dtype=float)

    @property
    def valley_indices(self) -> np.ndarray:
        return np.array([i for i, _ in self._valleys], dtype=int)

    @property
    def valley_values(self) -> np.ndarray:
        return np.array([v for _, v in self._valleys], dtype=float)

    def flags(self, length: Optional[int] = None) -> np.ndarray:
        """
        Dense peak/valley marker array.

        Returns:
            Array of shape (length, 2): column 0 holds the peak value at each
            peak index, column 1 the valley value at each valley index, zeros
            elsewhere. length defaults to the last scanned signal length.
        """
        length = self._length if length is None else length
        flags = np.zeros((length, 2))
        for i, value in self._peaks:
            if i < length:
                flags[i, 0] = value
        for i, value in self._valleys:
            if i < length:
                flags[i, 1] = value
        return flags

    def step_pairs(self) -> List[Tuple[int, int]]:
        """
        (valley_index, peak_index) per step with valley_index <= peak_index.

        The i-th peak is paired with the i-th valley; when the peak comes
        first the two indices are swapped.
        """
        pairs = []
        for k in range(self.step_count):
            p, v = self._peaks[k][0], self._valleys[k][0]
            pairs.append((min(p, v), max(p, v)))
        return pairs


class StepDetector:
    """
    FIR low-pass followed by the peak/valley detector.

    Args:
        order: FIR order. Default: 10.
        cutoff: FIR cutoff normalized to Nyquist. Default: 0.06.
        threshold: Peak/valley threshold. Default: 0.5.
    """

    def __init__(
        self,
        order: int = DEFAULT_FILTER_ORDER,
        cutoff: float = DEFAULT_FILTER_CUTOFF,
        threshold: float = DEFAULT_STEP_THRESHOLD,
    ):
        self.fir = FIRFilter.create_low_pass(order, cutoff)
        self.detector = PeakValleyDetector(threshold)
        self._filtered: Optional[np.ndarray] = None

    @property
    def threshold(self) -> float:
        return self.detector.threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        self.detector = PeakValleyDetector(value)

    def detect_steps(self, magnitude: Sequence[float]) -> int:
        """Filter an acceleration magnitude signal and count steps."""
        self.fir.reset()
        self._filtered = self.fir.process(magnitude)
        return self.detector.detect(self._filtered)

    def detect_steps_from_vectors(self, accel: np.ndarray, gravity: np.ndarray) -> int:
        """
        Count steps from accelerometer and body-frame gravity vectors.

        Args:
            accel: Accelerometer samples, shape (N, 3).
            gravity: Gravity in the body frame per sample, shape (N, 3).
        """
        accel = np.asarray(accel, dtype=float)
        gravity = np.asarray(gravity, dtype=float)
        if accel.shape != gravity.shape:
            raise InvalidInputError(
                f"accel and gravity must have equal shapes, got {accel.shape} and {gravity.shape}"
            )
        return self.detect_steps(linear_accel_magnitude(accel - gravity, gravity))

    @property
    def filtered_signal(self) -> np.ndarray:
        if self._filtered is None:
            raise RuntimeError("No signal processed yet. Call detect_steps() first.")
        return self._filtered.copy()

    @property
    def step_count(self) -> int:
        return self.detector.step_count

    def flags(self) -> np.ndarray:
        return self.detector.flags()

    def step_pairs(self) -> List[Tuple[int, int]]:
        return self.detector.step_pairs()


# ---------------------------------------------------------------------------
# Step length
# ---------------------------------------------------------------------------

class StepLengthModel(enum.Enum):
    """Empirical step length models."""

    WEINBERG = "weinberg"
    SCARLET = "scarlet"
    KIM = "kim"


@dataclass(frozen=True)
class StepFeatures:
    """
    Acceleration features of one step.

    Attributes:
        valley_index: Start of the step window (inclusive).
        peak_index: End of the step window (inclusive).
        peak: Peak value of the filtered signal.
        valley: Valley depth, |valley value|.
        mean: Mean of the filtered signal over [valley_index, peak_index].
    """

    valley_index: int
    peak_index: int
    peak: float
    valley: float
    mean: float

    @property
    def swing(self) -> float:
        """Difference between peak value and valley depth, |peak - |valley||."""
        return abs(self.peak - self.valley)


def extract_step_features(filtered: np.ndarray, detector: PeakValleyDetector) -> List[StepFeatures]:
    """Peak, valley depth and window mean for every detected step."""
    filtered = np.asarray(filtered, dtype=float)
    peaks, valleys = detector.peak_values, detector.valley_values

    features = []
    for k, (lo, hi) in enumerate(detector.step_pairs()):
        features.append(
            StepFeatures(
                valley_index=lo,
                peak_index=hi,
                peak=float(peaks[k]),
                valley=float(abs(valleys[k])),
                mean=float(np.mean(filtered[lo:hi + 1])),
            )
        )
    return features


def adaptive_k(peak_values: Sequence[float]) -> float:
    """
    Calibrated K from the mean peak value: K = 0.087 * mean_peak + 0.5.
    """
    peak_values = np.asarray(peak_values, dtype=float)
    if peak_values.size == 0:
        return DEFAULT_K
    return 0.087 * float(np.mean(peak_values)) + 0.5


def clamp_step_length(
    length: float,
    min_length: float = MIN_STEP_LENGTH,
    max_length: float = MAX_STEP_LENGTH,
) -> float:
    """Clip into [min_length, max_length]; NaN and inf map to min_length."""
    if not np.isfinite(length):
        return min_length
    return float(np.clip(length, min_length, max_length))


def step_length(
    features: StepFeatures,
    k: float = DEFAULT_K,
    model: StepLengthModel = StepLengthModel.WEINBERG,
    min_length: float = MIN_STEP_LENGTH,
    max_length: float = MAX_STEP_LENGTH,
) -> float:
    """
    Step length of one step in meters.

    Models:
        WEINBERG: L = K * (swing - 1.5)^(1/4)
        SCARLET:  L = K * (mean - valley) / swing
        KIM:      L = K * mean^(1/3)

    valley is the valley depth |valley value| and swing is |peak - valley|.
    A step whose peak and valley depth are equal has swing 0; Weinberg and
    Scarlet are undefined there and fall back to min_length.

    Returns:
        Clamped step length in [min_length, max_length].

    Example:
        >>> f = StepFeatures(0, 10, peak=2.5, valley=0.5, mean=1.0)
        >>> round(step_length(f), 3)
        0.42
    """
    with np.errstate(invalid="ignore", divide="ignore"):
        if model is StepLengthModel.WEINBERG:
            raw = k * np.power(features.swing - 1.5, 0.25)
        elif model is StepLengthModel.SCARLET:
            raw = k * np.divide(features.mean - features.valley, features.swing)
        elif model is StepLengthModel.KIM:
            raw = k * np.cbrt(features.mean)
        else:
            raise InvalidInputError(f"Unknown step length model: {model!r}")

    return clamp_step_length(float(raw), min_length, max_length)


def estimate_step_lengths(
    filtered: np.ndarray,
    detector: PeakValleyDetector,
    k: float = DEFAULT_K,
    model: StepLengthModel = StepLengthModel.WEINBERG,
    min_length: float = MIN_STEP_LENGTH,
    max_length: float = MAX_STEP_LENGTH,
    adaptive: bool = False,
) -> np.ndarray:
    """
    Step lengths for every step found by `detector` on `filtered`.

    Args:
        filtered: The filtered signal the detector scanned, shape (N,).
        detector: Detector holding the peaks and valleys.
        k: Model constant. Ignored when adaptive is True.
        model: Step length model.
        min_length, max_length: Clamp bounds in meters.
        adaptive: Use K = 0.087 * mean_peak + 0.5 instead of k.

    Returns:
        Step lengths in meters, shape (step_count,).
    """
    if min_length > max_length:
        raise InvalidInputError(
            f"min_length must not exceed max_length, got {min_length} > {max_length}"
        )
    if adaptive:
        k = adaptive_k(detector.peak_values[:detector.step_count])

    features = extract_step_features(filtered, detector)
    return np.array(
        [step_length(f, k, model, min_length, max_length) for f in features],
        dtype=float,
    )


def total_distance(step_lengths: Sequence[float]) -> float:
    return float(np.sum(step_lengths))


def pdr_step_update(north: float, east: float, length: float, heading: float) -> Tuple[float, float]:
    """
    Advance a north/east position by one step.

        north' = north + L cos(θ),   east' = east + L sin(θ)

    Args:
        north, east: Current position in meters.
        length: Step length in meters.
        heading: Step heading in radians, 0 = north, π/2 = east.
    """
    return north + length * np.cos(heading), east + length * np.sin(heading)
