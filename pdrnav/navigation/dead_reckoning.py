"""
Step-and-heading dead reckoning.

PDRNavigator runs the complete pipeline over one recording:

    accel, orientation --> gravity removal --> signed magnitude --> FIR
        --> peak/valley steps --> step lengths
    yaw, gyro z --> unwrap --> corners --> segment-wise Kalman heading
    steps + heading --> per-step orientation --> north/east trace

Per-step orientation is the median filtered heading over the step window
[valley, peak]. When the median changes by less than the heading-change
threshold (5° by default) from the previous step, the previous orientation
is reused; genuine turns exceed it and are tracked.

Position update per step i:
    north[i+1] = north[i] + L[i] cos(θ[i])
    east[i+1]  = east[i]  + L[i] sin(θ[i])
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from pdrnav.coords.rotations import quat_to_euler
from pdrnav.exceptions import InvalidInputError
from pdrnav.navigation.types import NavigationResult, PDRConfig
from pdrnav.sensors.attitude import AttitudeEstimator
from pdrnav.sensors.heading import HeadingEstimator
from pdrnav.sensors.pdr import (
    StepDetector,
    StepLengthModel,
    estimate_step_lengths,
    linear_accel_magnitude,
    remove_gravity,
)
from pdrnav.sensors.types import SensorData
from pdrnav.utils.angles import median

logger = logging.getLogger(__name__)


def step_orientations(
    heading: np.ndarray,
    step_windows: Sequence[Tuple[int, int]],
    change_threshold_deg: float = 5.0,
) -> np.ndarray:
    """
    One heading per step from a per-sample heading trace.

    Args:
        heading: Filtered heading in radians, shape (N,).
        step_windows: (valley_index, peak_index) per step, inclusive.
        change_threshold_deg: Median changes below this keep the previous
            step's orientation.

    Returns:
        Step orientations in radians, shape (len(step_windows),).
    """
    heading = np.asarray(heading, dtype=float)
    threshold = np.deg2rad(change_threshold_deg)

    medians = np.array([median(heading[lo:hi + 1]) for lo, hi in step_windows])
    orientations = medians.copy()
    for i in range(1, medians.size):
        if abs(medians[i] - medians[i - 1]) < threshold:
            orientations[i] = orientations[i - 1]
    return orientations


def dead_reckon(
    step_lengths: Sequence[float],
    orientations: Sequence[float],
    initial_north: float = 0.0,
    initial_east: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Integrate step lengths and headings into north/east traces.

    Returns:
        (north, east), each of length len(step_lengths) + 1 with the initial
        position at index 0.
    """
    lengths = np.asarray(step_lengths, dtype=float)
    theta = np.asarray(orientations, dtype=float)
    if lengths.shape != theta.shape:
        raise InvalidInputError(
            f"step_lengths and orientations must match, got {lengths.shape} and {theta.shape}"
        )

    north = initial_north + np.concatenate(([0.0], np.cumsum(lengths * np.cos(theta))))
    east = initial_east + np.concatenate(([0.0], np.cumsum(lengths * np.sin(theta))))
    return north, east


class PDRNavigator:
    """
    Dead-reckoning navigator.

    Args:
        config: Pipeline parameters. Defaults to PDRConfig().

    Attributes:
        filtered_signal: Filtered acceleration magnitude of the last run.
        heading: Filtered heading (rad) of the last run.

    Example:
        >>> n = 200
        >>> accel = np.zeros((n, 3))
        >>> accel[:, 2] = 9.81 + 2.0 * np.sin(2 * np.pi * np.arange(n) / 20)
        >>> data = SensorData(accel, np.zeros((n, 3)), np.zeros((n, 3)))
        >>> result = PDRNavigator().navigate(data)
        >>> result.step_count
        9
    """

    def __init__(self, config: Optional[PDRConfig] = None):
        self.config = config if config is not None else PDRConfig()
        self.filtered_signal: Optional[np.ndarray] = None
        self.heading: Optional[np.ndarray] = None
        self._build()

    def _build(self) -> None:
        cfg = self.config
        self.step_detector = StepDetector(cfg.filter_order, cfg.filter_cutoff, cfg.step_threshold)
        self.heading_estimator = HeadingEstimator(cfg.corner_threshold, cfg.reference_headings_deg)

    def _reconfigure(self, **changes) -> None:
        self.config = self.config.with_updates(**changes)
        self._build()

    def set_step_threshold(self, threshold: float) -> None:
        self._reconfigure(step_threshold=threshold)

    def set_k(self, k: float) -> None:
        self._reconfigure(k=k)

    def set_step_length_model(self, model: StepLengthModel) -> None:
        self._reconfigure(step_length_model=model)

    def set_corner_threshold(self, threshold: float) -> None:
        self._reconfigure(corner_threshold=threshold)

    def set_initial_position(self, north: float, east: float) -> None:
        self._reconfigure(initial_north=north, initial_east=east)

    def attitude_orientation(self, data: SensorData) -> np.ndarray:
        """
        [roll, pitch, yaw] in radians with roll and pitch from the attitude
        EKF and yaw from the orientation stream.
        """
        estimator = AttitudeEstimator(dt=data.dt, gravity=self.config.gravity)
        quats = estimator.estimate(data.gyro, data.accel)
        orientation = data.orientation_rad.copy()
        if quats.shape[0]:
            euler = np.array([quat_to_euler(q) for q in quats])
            orientation[:, :2] = euler[:, :2]
        return orientation

    def navigate(self, data: SensorData) -> NavigationResult:
        """
        Run the full pipeline over one recording.

        Args:
            data: Time-aligned sensor streams (orientation in degrees).

        Returns:
            NavigationResult with one entry per detected step. A recording
            without steps yields a zero-step result at the initial position.
        """
        cfg = self.config
        if not np.isclose(data.sample_rate_hz, cfg.sample_rate_hz):
            logger.warning(
                "Sensor data sampled at %.1f Hz but configured for %.1f Hz",
                data.sample_rate_hz, cfg.sample_rate_hz,
            )

        if cfg.use_attitude_estimator:
            orientation = self.attitude_orientation(data)
        else:
            orientation = data.orientation_rad

        linear, gravity_body = remove_gravity(data.accel, orientation, cfg.gravity)
        magnitude = linear_accel_magnitude(linear, gravity_body)

        self.step_detector.detect_steps(magnitude)
        self.filtered_signal = self.step_detector.filtered_signal
        windows = self.step_detector.step_pairs()

        lengths = estimate_step_lengths(
            self.filtered_signal,
            self.step_detector.detector,
            k=cfg.k,
            model=cfg.step_length_model,
            min_length=cfg.min_step_length,
            max_length=cfg.max_step_length,
            adaptive=cfg.adaptive_k,
        )

        self.heading = self.heading_estimator.estimate(data.yaw, data.gyro[:, 2])
        orientations = step_orientations(
            self.heading, windows, cfg.heading_change_threshold_deg
        )
        north, east = dead_reckon(lengths, orientations, cfg.initial_north, cfg.initial_east)

        result = NavigationResult(
            step_lengths=lengths,
            step_orientations=orientations,
            north=north,
            east=east,
            step_indices=np.array(windows, dtype=int).reshape(-1, 2),
        )
        logger.info(
            "Detected %d steps over %d samples, distance %.2f m, %d corners",
            result.step_count, data.n_samples, result.total_distance,
            self.heading_estimator.corners.shape[0],
        )
        return result
