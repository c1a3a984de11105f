"""
Configuration and result types for PDR navigation runs.

PDRConfig collects every tunable value of the pipeline in one frozen
dataclass; loading it (from JSON, CLI flags, ...) is up to the caller.
NavigationResult is what one complete run produces and what result sinks
consume.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import numpy as np

from pdrnav.exceptions import InvalidInputError
from pdrnav.sensors.heading import DEFAULT_CORNER_THRESHOLD, DEFAULT_REFERENCE_HEADINGS_DEG
from pdrnav.sensors.pdr import (
    DEFAULT_FILTER_CUTOFF,
    DEFAULT_FILTER_ORDER,
    DEFAULT_K,
    DEFAULT_STEP_THRESHOLD,
    MAX_STEP_LENGTH,
    MIN_STEP_LENGTH,
    StepLengthModel,
)
from pdrnav.sensors.types import DEFAULT_SAMPLE_RATE_HZ
from pdrnav.utils.angles import GRAVITY


@dataclass(frozen=True)
class PDRConfig:
    """
    Tunable parameters of the PDR pipeline.

    Attributes:
        filter_order: FIR low-pass order. Default: 10.
        filter_cutoff: FIR cutoff normalized to Nyquist, in (0, 1). Default: 0.06.
        step_threshold: Peak/valley threshold in m/s². Default: 0.5.
        step_length_model: WEINBERG, SCARLET or KIM. Default: WEINBERG.
        k: Step length model constant. Default: 0.5.
        min_step_length: Lower clamp in meters. Default: 0.3.
        max_step_length: Upper clamp in meters. Default: 1.0.
        adaptive_k: Calibrate K from the mean peak value. Default: False.
        corner_threshold: |yaw rate| marking a turn. Default: 1.0.
        heading_change_threshold_deg: Step-to-step heading changes below this
            reuse the previous step orientation. Default: 5°.
        reference_headings_deg: Corridor headings per segment.
            Default: (128.5, 90.0, 0.0).
        sample_rate_hz: Sensor sampling rate. Default: 50 Hz.
        gravity: Gravity magnitude. Default: 9.81 m/s².
        initial_north: Start position north in meters. Default: 0.
        initial_east: Start position east in meters. Default: 0.
        use_attitude_estimator: Take roll/pitch for gravity removal from the
            attitude EKF instead of the orientation stream. Default: False.
        n_particles: Particle count. Default: 100.
        initial_noise: Std of the initial particle scatter, meters. Default: 0.5.
        process_noise_std: Per-step particle noise std, meters. Default: 0.1.
        measurement_noise_var: North/east measurement variance, m². Default: 1.0.
        resample_threshold: Resample when N_eff < threshold * N. Default: 0.5.
        snapping_distance: Map matcher wall snapping distance, meters. Default: 1.0.
        wall_clearance: Positions closer to a wall are invalid. Default: 0.3 m.
        random_seed: Seed for the particle filter, None for entropy. Default: None.

    Example:
        >>> cfg = PDRConfig(step_length_model=StepLengthModel.KIM, k=0.6)
        >>> cfg.with_updates(initial_north=40.0).initial_north
        40.0
    """

    filter_order: int = DEFAULT_FILTER_ORDER
    filter_cutoff: float = DEFAULT_FILTER_CUTOFF
    step_threshold: float = DEFAULT_STEP_THRESHOLD
    step_length_model: StepLengthModel = StepLengthModel.WEINBERG
    k: float = DEFAULT_K
    min_step_length: float = MIN_STEP_LENGTH
    max_step_length: float = MAX_STEP_LENGTH
    adaptive_k: bool = False
    corner_threshold: float = DEFAULT_CORNER_THRESHOLD
    heading_change_threshold_deg: float = 5.0
    reference_headings_deg: Tuple[float, ...] = DEFAULT_REFERENCE_HEADINGS_DEG
    sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ
    gravity: float = GRAVITY
    initial_north: float = 0.0
    initial_east: float = 0.0
    use_attitude_estimator: bool = False
    n_particles: int = 100
    initial_noise: float = 0.5
    process_noise_std: float = 0.1
    measurement_noise_var: float = 1.0
    resample_threshold: float = 0.5
    snapping_distance: float = 1.0
    wall_clearance: float = 0.3
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.step_length_model, str):
            object.__setattr__(
                self, "step_length_model", _parse_model(self.step_length_model)
            )
        if not isinstance(self.step_length_model, StepLengthModel):
            raise InvalidInputError(
                f"step_length_model must be a StepLengthModel, got {self.step_length_model!r}"
            )
        object.__setattr__(
            self, "reference_headings_deg", tuple(float(h) for h in self.reference_headings_deg)
        )

        if self.filter_order < 1:
            raise InvalidInputError(f"filter_order must be >= 1, got {self.filter_order}")
        if not 0.0 < self.filter_cutoff < 1.0:
            raise InvalidInputError(f"filter_cutoff must be in (0, 1), got {self.filter_cutoff}")
        for name in ("step_threshold", "corner_threshold", "heading_change_threshold_deg",
                     "initial_noise", "process_noise_std", "snapping_distance",
                     "wall_clearance"):
            if getattr(self, name) < 0:
                raise InvalidInputError(f"{name} must be non-negative, got {getattr(self, name)}")
        for name in ("sample_rate_hz", "gravity", "measurement_noise_var", "k"):
            if getattr(self, name) <= 0:
                raise InvalidInputError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 < self.min_step_length <= self.max_step_length:
            raise InvalidInputError(
                f"Need 0 < min_step_length <= max_step_length, got "
                f"{self.min_step_length}, {self.max_step_length}"
            )
        if not self.reference_headings_deg:
            raise InvalidInputError("reference_headings_deg must not be empty")
        if self.n_particles < 1:
            raise InvalidInputError(f"n_particles must be >= 1, got {self.n_particles}")
        if not 0.0 <= self.resample_threshold <= 1.0:
            raise InvalidInputError(
                f"resample_threshold must be in [0, 1], got {self.resample_threshold}"
            )

    @property
    def dt(self) -> float:
        return 1.0 / self.sample_rate_hz

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "PDRConfig":
        """
        Build a config from plain values, e.g. a parsed JSON object.

        Raises:
            InvalidInputError: On unknown keys or invalid values.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidInputError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(values))

    def to_dict(self) -> dict:
        values = dataclasses.asdict(self)
        values["step_length_model"] = self.step_length_model.value
        values["reference_headings_deg"] = list(self.reference_headings_deg)
        return values

    def with_updates(self, **changes: Any) -> "PDRConfig":
        return dataclasses.replace(self, **changes)


def _parse_model(name: str) -> StepLengthModel:
    try:
        return StepLengthModel(name.lower())
    except ValueError:
        try:
            return StepLengthModel[name.upper()]
        except KeyError:
            raise InvalidInputError(f"Unknown step length model: {name!r}") from None


@dataclass(frozen=True)
class NavigationResult:
    """
    Output of one navigation run.

    Attributes:
        step_lengths: Length of every step in meters, shape (S,).
        step_orientations: Heading of every step in radians, shape (S,).
        north: North coordinate trace, shape (S + 1,); index 0 is the start.
        east: East coordinate trace, shape (S + 1,).
        step_indices: (valley_index, peak_index) sample window per step,
            shape (S, 2). Optional.
    """

    step_lengths: np.ndarray
    step_orientations: np.ndarray
    north: np.ndarray
    east: np.ndarray
    step_indices: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        lengths = np.array(self.step_lengths, dtype=float).reshape(-1)
        orientations = np.array(self.step_orientations, dtype=float).reshape(-1)
        north = np.array(self.north, dtype=float).reshape(-1)
        east = np.array(self.east, dtype=float).reshape(-1)

        n = lengths.size
        if orientations.size != n:
            raise InvalidInputError(
                f"step_orientations must have {n} entries, got {orientations.size}"
            )
        if north.size != n + 1 or east.size != n + 1:
            raise InvalidInputError(
                f"north/east traces must have {n + 1} entries, got {north.size}, {east.size}"
            )

        if self.step_indices is None:
            indices = np.zeros((n, 2), dtype=int)
        else:
            indices = np.array(self.step_indices, dtype=int).reshape(-1, 2)
            if indices.shape[0] != n:
                raise InvalidInputError(
                    f"step_indices must have {n} rows, got {indices.shape[0]}"
                )

        for name, arr in (("step_lengths", lengths), ("step_orientations", orientations),
                          ("north", north), ("east", east), ("step_indices", indices)):
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def step_count(self) -> int:
        return int(self.step_lengths.size)

    @property
    def total_distance(self) -> float:
        return float(np.sum(self.step_lengths))

    @property
    def positions(self) -> np.ndarray:
        """North/east trace as shape (S + 1, 2)."""
        return np.column_stack((self.north, self.east))

    @property
    def final_position(self) -> Tuple[float, float]:
        return float(self.north[-1]), float(self.east[-1])

    def summary(self) -> str:
        north, east = self.final_position
        lines = [
            "PDR Navigation Result",
            f"  Steps:          {self.step_count}",
            f"  Total distance: {self.total_distance:.2f} m",
            f"  Start:          N {self.north[0]:.2f} m, E {self.east[0]:.2f} m",
            f"  End:            N {north:.2f} m, E {east:.2f} m",
        ]
        if self.step_count:
            lines.append(f"  Mean step:      {np.mean(self.step_lengths):.3f} m")
        return "\n".join(lines)
