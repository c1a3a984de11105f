"""
Sensor sources and result sinks for the navigation pipeline.

The navigation core never touches files. It consumes a SensorSource
(anything with ``load(sample_rate_hz) -> SensorData``) and hands its
NavigationResult to a ResultSink (anything with ``write(result)``).

Text format of a recording directory:
    acc.txt   ax ay az            (m/s²)
    gyr.txt   gx gy gz
    ori.txt   yaw roll pitch      (degrees)

Whitespace-separated columns, one row per sample, lines starting with '%'
are comments. All three files must have the same number of rows.
"""

import logging
from pathlib import Path
from typing import List, Protocol, Union

import numpy as np

from pdrnav.exceptions import InvalidInputError
from pdrnav.navigation.types import NavigationResult
from pdrnav.sensors.types import DEFAULT_SAMPLE_RATE_HZ, SensorData

logger = logging.getLogger(__name__)

ACCEL_FILE = "acc.txt"
GYRO_FILE = "gyr.txt"
ORIENTATION_FILE = "ori.txt"

RESULT_COLUMNS = "Step, North (m), East (m), StepLength (m), Orientation (rad)"


class SensorSource(Protocol):
    def load(self, sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> SensorData:
        ...


class ResultSink(Protocol):
    def write(self, result: NavigationResult) -> None:
        ...


class ArraySensorSource:
    """In-memory source over (N, 3) accel, gyro and orientation arrays."""

    def __init__(self, accel: np.ndarray, gyro: np.ndarray, orientation: np.ndarray):
        self.accel = np.asarray(accel, dtype=float)
        self.gyro = np.asarray(gyro, dtype=float)
        self.orientation = np.asarray(orientation, dtype=float)

    def load(self, sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> SensorData:
        return SensorData(self.accel, self.gyro, self.orientation, sample_rate_hz)


class TextSensorSource:
    """
    Recording directory with acc.txt, gyr.txt and ori.txt.

    Args:
        directory: Path to the recording directory.

    Example:
        >>> source = TextSensorSource("data/walk_01")
        >>> data = source.load(50.0)  # doctest: +SKIP
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _read(self, name: str) -> np.ndarray:
        path = self.directory / name
        values = np.loadtxt(path, comments="%", ndmin=2)
        if values.shape[1] < 3:
            raise InvalidInputError(f"{path} must have at least 3 columns, got {values.shape[1]}")
        return values[:, :3]

    def load(self, sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ) -> SensorData:
        """
        Raises:
            FileNotFoundError: If a file is missing.
            InvalidInputError: If the files differ in row count.
        """
        accel = self._read(ACCEL_FILE)
        gyro = self._read(GYRO_FILE)
        ori = self._read(ORIENTATION_FILE)

        rows = {ACCEL_FILE: accel.shape[0], GYRO_FILE: gyro.shape[0], ORIENTATION_FILE: ori.shape[0]}
        if len(set(rows.values())) != 1:
            raise InvalidInputError(f"Sensor files have different row counts: {rows}")

        # ori.txt column order is yaw, roll, pitch
        orientation = ori[:, [1, 2, 0]]
        logger.info("Loaded %d samples from %s", accel.shape[0], self.directory)
        return SensorData(accel, gyro, orientation, sample_rate_hz, meta={"source": str(self.directory)})


def save_sensor_data(data: SensorData, directory: Union[str, Path]) -> Path:
    """Write a recording in the TextSensorSource layout."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    np.savetxt(directory / ACCEL_FILE, data.accel, fmt="%.6f", header="ax ay az", comments="% ")
    np.savetxt(directory / GYRO_FILE, data.gyro, fmt="%.6f", header="gx gy gz", comments="% ")
    np.savetxt(
        directory / ORIENTATION_FILE,
        data.orientation[:, [2, 0, 1]],
        fmt="%.6f",
        header="yaw roll pitch",
        comments="% ",
    )
    return directory


class MemoryResultSink:
    """Keeps every written result in `results`."""

    def __init__(self):
        self.results: List[NavigationResult] = []

    def write(self, result: NavigationResult) -> None:
        self.results.append(result)


class TextResultSink:
    """
    Comma-separated result table.

    Layout::

        # PDR Navigation Results
        # Step Count: 2
        # Total Distance: 1.2000 m
        # Format: Step, North (m), East (m), StepLength (m), Orientation (rad)
        0, 0.0000, 0.0000, 0.0000, 0.0000
        1, 0.6000, 0.0000, 0.6000, 0.0000
        ...

    Row 0 is the start position with zero length and orientation.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write(self, result: NavigationResult) -> None:
        steps = np.arange(result.step_count + 1)
        lengths = np.concatenate(([0.0], result.step_lengths))
        orientations = np.concatenate(([0.0], result.step_orientations))
        table = np.column_stack((steps, result.north, result.east, lengths, orientations))

        header = "\n".join(
            [
                "PDR Navigation Results",
                f"Step Count: {result.step_count}",
                f"Total Distance: {result.total_distance:.4f} m",
                f"Format: {RESULT_COLUMNS}",
            ]
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(
            self.path,
            table,
            fmt=["%d", "%.4f", "%.4f", "%.4f", "%.4f"],
            delimiter=", ",
            header=header,
            comments="# ",
        )
        logger.info("Wrote %d steps to %s", result.step_count, self.path)


def read_navigation_result(path: Union[str, Path]) -> NavigationResult:
    """Load a table written by TextResultSink."""
    table = np.loadtxt(path, delimiter=",", comments="#", ndmin=2)
    if table.shape[0] == 0 or table.shape[1] != 5:
        raise InvalidInputError(f"{path} is not a navigation result table")
    return NavigationResult(
        step_lengths=table[1:, 3],
        step_orientations=table[1:, 4],
        north=table[:, 1],
        east=table[:, 2],
    )
