"""
Map-aided heading estimation.

The raw device heading drifts and jitters while walking down a corridor.
Heading estimation runs in three stages:

    1. Unwrap the heading trace (degrees) so it has no ±180° jumps.
    2. Detect corners: samples where |yaw rate| exceeds a threshold,
       collapsed into (start, end) index intervals.
    3. Segment-wise Kalman smoothing. Between corners a 2-state filter
       [heading, rate] with A = [[1, 1], [0, 1]] and H = I is pulled toward
       the known corridor direction of the current segment. Inside a corner
       interval the unwrapped heading passes through unfiltered.

Corridor directions are building-specific calibration values; the defaults
(128.5°, 90°, 0°) describe the reference walk and are meant to be overridden
through PDRConfig.reference_headings_deg.
"""

from typing import Optional, Sequence

import numpy as np

from pdrnav.estimators.kalman_filter import KalmanFilter
from pdrnav.exceptions import InvalidInputError
from pdrnav.utils.angles import unwrap_degrees

DEFAULT_CORNER_THRESHOLD = 1.0
DEFAULT_REFERENCE_HEADINGS_DEG = (128.5, 90.0, 0.0)

HEADING_TRANSITION = np.array([[1.0, 1.0], [0.0, 1.0]])
HEADING_PROCESS_NOISE = np.diag([0.0025, 0.01])


class CornerDetector:
    """
    Turn detection from the gyroscope yaw rate.

    Args:
        threshold: |yaw rate| above this value marks a turning sample.

    Example:
        >>> rate = np.zeros(10)
        >>> rate[3:6] = 2.0
        >>> rate[8] = 2.0
        >>> CornerDetector(1.0).detect(rate)
        array([[3, 5],
               [8, 8]])
    """

    def __init__(self, threshold: float = DEFAULT_CORNER_THRESHOLD):
        if threshold < 0:
            raise InvalidInputError(f"threshold must be non-negative, got {threshold}")
        self.threshold = float(threshold)
        self.corners = np.zeros((0, 2), dtype=int)

    def detect(self, yaw_rate: Sequence[float]) -> np.ndarray:
        """
        Corner intervals of a yaw-rate trace.

        Returns:
            Integer array of shape (K, 2) with inclusive [start, end] rows in
            ascending order. Contiguous flagged runs form one interval; an
            isolated flag gives start == end. K is 0 when nothing is flagged.
        """
        yaw_rate = np.asarray(yaw_rate, dtype=float)
        if yaw_rate.ndim != 1:
            raise InvalidInputError(f"yaw_rate must be 1D, got shape {yaw_rate.shape}")

        flagged = np.flatnonzero(np.abs(yaw_rate) > self.threshold)
        if flagged.size == 0:
            self.corners = np.zeros((0, 2), dtype=int)
            return self.corners.copy()

        gaps = np.flatnonzero(np.diff(flagged) > 1)
        starts = flagged[np.concatenate(([0], gaps + 1))]
        ends = flagged[np.concatenate((gaps, [flagged.size - 1]))]
        self.corners = np.column_stack((starts, ends)).astype(int)
        return self.corners.copy()

    def is_in_corner(self, index: int) -> bool:
        """True if sample `index` lies inside a corner of the last detect() call."""
        return bool(np.any((self.corners[:, 0] <= index) & (index <= self.corners[:, 1])))

    @staticmethod
    def corner_mask(corners: np.ndarray, length: int) -> np.ndarray:
        """Boolean mask of length `length`, True inside any corner interval."""
        mask = np.zeros(length, dtype=bool)
        for start, end in corners:
            mask[start:end + 1] = True
        return mask


class HeadingEstimator:
    """
    Unwrap, corner detection and segment-wise Kalman smoothing of heading.

    Args:
        threshold: Corner-detection threshold on |yaw rate|.
        reference_headings_deg: Corridor heading per segment in degrees.
            Segment k (after k corners) uses entry min(k, len - 1).

    Attributes:
        unwrapped_heading_deg: Unwrapped input heading of the last run.
        filtered_heading: Output heading of the last run in radians.
        corners: Corner intervals of the last run, shape (K, 2).
    """

    def __init__(
        self,
        threshold: float = DEFAULT_CORNER_THRESHOLD,
        reference_headings_deg: Sequence[float] = DEFAULT_REFERENCE_HEADINGS_DEG,
    ):
        if len(reference_headings_deg) == 0:
            raise InvalidInputError("reference_headings_deg must not be empty")
        self.corner_detector = CornerDetector(threshold)
        self.reference_headings_deg = tuple(float(h) for h in reference_headings_deg)
        self.unwrapped_heading_deg: Optional[np.ndarray] = None
        self.filtered_heading: Optional[np.ndarray] = None
        self.corners = np.zeros((0, 2), dtype=int)

    @property
    def threshold(self) -> float:
        return self.corner_detector.threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        self.corner_detector = CornerDetector(value)

    def reference_heading(self, segment: int) -> float:
        return self.reference_headings_deg[min(segment, len(self.reference_headings_deg) - 1)]

    def estimate(self, heading_deg: Sequence[float], yaw_rate: Sequence[float]) -> np.ndarray:
        """
        Smoothed heading trace.

        Args:
            heading_deg: Raw device heading in degrees, shape (N,).
            yaw_rate: Gyroscope z-axis rate, shape (N,).

        Returns:
            Heading in radians, shape (N,). Without any corner this is the
            unwrapped input converted to radians.

        Raises:
            InvalidInputError: If the two inputs differ in length.
        """
        heading_deg = np.asarray(heading_deg, dtype=float)
        yaw_rate = np.asarray(yaw_rate, dtype=float)
        if heading_deg.shape != yaw_rate.shape or heading_deg.ndim != 1:
            raise InvalidInputError(
                f"heading_deg and yaw_rate must be 1D with equal length, got "
                f"{heading_deg.shape} and {yaw_rate.shape}"
            )

        unwrapped = unwrap_degrees(heading_deg)
        corners = self.corner_detector.detect(yaw_rate)
        self.unwrapped_heading_deg = unwrapped
        self.corners = corners

        if corners.shape[0] == 0:
            self.filtered_heading = np.deg2rad(unwrapped)
            return self.filtered_heading.copy()

        in_corner = CornerDetector.corner_mask(corners, unwrapped.size)
        # Corner k ends -> segment k + 1 starts
        segment_starts = {int(end): k + 1 for k, end in enumerate(corners[:, 1])}

        reference = self.reference_heading(0)
        kf = KalmanFilter(
            F=HEADING_TRANSITION,
            Q=HEADING_PROCESS_NOISE,
            H=np.eye(2),
            R=np.diag([1.0, np.sqrt(np.var(yaw_rate))]),
            x0=np.array([reference, yaw_rate[0]]),
        )

        filtered_deg = np.empty_like(unwrapped)
        for i in range(unwrapped.size):
            if i in segment_starts:
                reference = self.reference_heading(segment_starts[i])
                kf.set_state(np.array([reference, yaw_rate[i]]))

            if in_corner[i]:
                filtered_deg[i] = unwrapped[i]
                continue

            kf.predict()
            kf.update(np.array([reference, yaw_rate[i]]))
            filtered_deg[i] = kf.state[0]

        self.filtered_heading = np.deg2rad(filtered_deg)
        return self.filtered_heading.copy()
