"""
Sensor data container for the PDR pipeline.

A recording is three time-aligned streams sampled at one fixed rate:
    - accelerometer: specific force in the body frame, m/s², shape (N, 3)
    - gyroscope: angular rate in the body frame, shape (N, 3)
    - orientation: device roll, pitch and yaw in degrees, shape (N, 3)

Sample i is taken at time i / sample_rate_hz.

Gyroscope units (rad/s or deg/s) are whatever the data source delivered;
the corner threshold in PDRConfig has to be chosen to match.
"""

from dataclasses import dataclass, field

import numpy as np

from pdrnav.exceptions import InvalidInputError

DEFAULT_SAMPLE_RATE_HZ = 50.0


@dataclass(frozen=True)
class SensorData:
    """
    Time-aligned accelerometer, gyroscope and orientation samples.

    Attributes:
        accel: Body-frame specific force, shape (N, 3). Units: m/s².
        gyro: Body-frame angular rate, shape (N, 3).
        orientation: [roll, pitch, yaw] per sample, shape (N, 3). Units: degrees.
        sample_rate_hz: Sampling rate. Default: 50 Hz.

    Raises:
        InvalidInputError: If the three streams differ in length or are not
            (N, 3), or the sampling rate is not positive.

    Example:
        >>> n = 100
        >>> data = SensorData(
        ...     accel=np.tile([0.0, 0.0, 9.81], (n, 1)),
        ...     gyro=np.zeros((n, 3)),
        ...     orientation=np.zeros((n, 3)),
        ... )
        >>> data.n_samples
        100
    """

    accel: np.ndarray
    gyro: np.ndarray
    orientation: np.ndarray
    sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ
    meta: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        streams = {}
        for name in ("accel", "gyro", "orientation"):
            arr = np.asarray(getattr(self, name), dtype=np.float64)
            if arr.ndim != 2 or arr.shape[1] != 3:
                raise InvalidInputError(
                    f"SensorData.{name} must have shape (N, 3), got {arr.shape}"
                )
            streams[name] = arr

        lengths = {name: arr.shape[0] for name, arr in streams.items()}
        if len(set(lengths.values())) != 1:
            raise InvalidInputError(f"Sensor streams must have equal length, got {lengths}")

        if self.sample_rate_hz <= 0:
            raise InvalidInputError(
                f"sample_rate_hz must be positive, got {self.sample_rate_hz}"
            )

        for name, arr in streams.items():
            object.__setattr__(self, name, arr)

    @classmethod
    def from_components(
        cls,
        acc_x, acc_y, acc_z,
        gyro_x, gyro_y, gyro_z,
        roll, pitch, yaw,
        sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ,
    ) -> "SensorData":
        """Build from nine 1D sequences of equal length."""
        columns = [acc_x, acc_y, acc_z, gyro_x, gyro_y, gyro_z, roll, pitch, yaw]
        columns = [np.asarray(c, dtype=np.float64) for c in columns]
        lengths = {c.shape for c in columns}
        if len(lengths) != 1 or columns[0].ndim != 1:
            raise InvalidInputError(
                f"All component arrays must be 1D with equal length, got shapes "
                f"{[c.shape for c in columns]}"
            )
        return cls(
            accel=np.column_stack(columns[0:3]),
            gyro=np.column_stack(columns[3:6]),
            orientation=np.column_stack(columns[6:9]),
            sample_rate_hz=sample_rate_hz,
        )

    @property
    def n_samples(self) -> int:
        return self.accel.shape[0]

    @property
    def dt(self) -> float:
        return 1.0 / self.sample_rate_hz

    @property
    def time(self) -> np.ndarray:
        """Sample times i / sample_rate_hz in seconds, shape (N,)."""
        return np.arange(self.n_samples) / self.sample_rate_hz

    @property
    def orientation_rad(self) -> np.ndarray:
        return np.deg2rad(self.orientation)

    @property
    def roll(self) -> np.ndarray:
        return self.orientation[:, 0]

    @property
    def pitch(self) -> np.ndarray:
        return self.orientation[:, 1]

    @property
    def yaw(self) -> np.ndarray:
        return self.orientation[:, 2]
