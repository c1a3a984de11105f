"""
Unit tests for sensor sources and result sinks.

Tests cover:
    - In-memory and text-file sensor sources
    - Recording directory layout (ori.txt column order)
    - Result table writing and reading
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pdrnav.data import (
    ACCEL_FILE,
    GYRO_FILE,
    ORIENTATION_FILE,
    ArraySensorSource,
    MemoryResultSink,
    TextResultSink,
    TextSensorSource,
    read_navigation_result,
    save_sensor_data,
)
from pdrnav.exceptions import InvalidInputError
from pdrnav.navigation import NavigationResult
from pdrnav.sensors import SensorData


def make_data(n: int = 6) -> SensorData:
    rng = np.random.default_rng(1)
    orientation = np.column_stack((np.full(n, 1.5), np.full(n, -2.0), np.linspace(0.0, 50.0, n)))
    return SensorData(rng.normal(size=(n, 3)), rng.normal(size=(n, 3)), orientation)


@pytest.fixture
def tmp_dir(request, tmp_path):
    request.cls.tmp_dir = tmp_path


@pytest.mark.usefixtures("tmp_dir")
class TestSensorSources(unittest.TestCase):
    """ArraySensorSource and TextSensorSource."""

    def test_array_source(self) -> None:
        """Arrays are wrapped at the requested rate."""
        data = make_data()
        loaded = ArraySensorSource(data.accel, data.gyro, data.orientation).load(100.0)
        assert loaded.sample_rate_hz == 100.0
        assert_allclose(loaded.accel, data.accel)

    def test_text_round_trip(self) -> None:
        """A saved recording loads back with the same streams."""
        data = make_data()
        save_sensor_data(data, self.tmp_dir / "walk")
        loaded = TextSensorSource(self.tmp_dir / "walk").load()

        assert_allclose(loaded.accel, data.accel, atol=1e-6)
        assert_allclose(loaded.gyro, data.gyro, atol=1e-6)
        assert_allclose(loaded.orientation, data.orientation, atol=1e-6)
        assert loaded.meta["source"] == str(self.tmp_dir / "walk")

    def test_orientation_file_column_order(self) -> None:
        """ori.txt stores yaw, roll, pitch."""
        save_sensor_data(make_data(), self.tmp_dir)
        raw = np.loadtxt(self.tmp_dir / ORIENTATION_FILE, comments="%")
        assert_allclose(raw[:, 1], 1.5)
        assert_allclose(raw[:, 2], -2.0)
        assert_allclose(raw[-1, 0], 50.0)

    def test_comments_and_extra_columns(self) -> None:
        """'%' lines are skipped and columns beyond three ignored."""
        (self.tmp_dir / ACCEL_FILE).write_text("% header\n1 2 3 99\n4 5 6 99\n")
        (self.tmp_dir / GYRO_FILE).write_text("0 0 0\n0 0 1\n")
        (self.tmp_dir / ORIENTATION_FILE).write_text("90 0 0\n91 0 0\n")

        data = TextSensorSource(self.tmp_dir).load()
        assert_allclose(data.accel, [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        assert_allclose(data.yaw, [90.0, 91.0])

    def test_row_count_mismatch(self) -> None:
        """Files of different lengths are rejected."""
        (self.tmp_dir / ACCEL_FILE).write_text("1 2 3\n4 5 6\n")
        (self.tmp_dir / GYRO_FILE).write_text("0 0 0\n")
        (self.tmp_dir / ORIENTATION_FILE).write_text("0 0 0\n0 0 0\n")
        with pytest.raises(InvalidInputError, match="different row counts"):
            TextSensorSource(self.tmp_dir).load()

    def test_too_few_columns(self) -> None:
        """Two-column files are rejected."""
        (self.tmp_dir / ACCEL_FILE).write_text("1 2\n")
        with pytest.raises(InvalidInputError, match="at least 3 columns"):
            TextSensorSource(self.tmp_dir).load()

    def test_missing_file(self) -> None:
        """A missing recording file raises."""
        with pytest.raises(OSError):
            TextSensorSource(self.tmp_dir / "nowhere").load()


@pytest.mark.usefixtures("tmp_dir")
class TestResultSinks(unittest.TestCase):
    """MemoryResultSink, TextResultSink and read_navigation_result."""

    def make_result(self) -> NavigationResult:
        return NavigationResult(
            step_lengths=[0.6, 0.7],
            step_orientations=[0.0, np.pi / 2],
            north=[1.0, 1.6, 1.6],
            east=[2.0, 2.0, 2.7],
        )

    def test_memory_sink(self) -> None:
        """Results are collected in order."""
        sink = MemoryResultSink()
        result = self.make_result()
        sink.write(result)
        assert sink.results == [result]

    def test_text_sink_layout(self) -> None:
        """Header lines, then one row per position starting with the start."""
        path = self.tmp_dir / "out" / "result.txt"
        TextResultSink(path).write(self.make_result())
        lines = path.read_text().splitlines()

        assert lines[0] == "# PDR Navigation Results"
        assert lines[1] == "# Step Count: 2"
        assert lines[2] == "# Total Distance: 1.3000 m"
        assert lines[3].startswith("# Format: Step, North (m)")
        assert lines[4] == "0, 1.0000, 2.0000, 0.0000, 0.0000"
        assert lines[6] == "2, 1.6000, 2.7000, 0.7000, 1.5708"

    def test_text_round_trip(self) -> None:
        """Tables read back into an equivalent result."""
        path = self.tmp_dir / "result.txt"
        TextResultSink(path).write(self.make_result())
        loaded = read_navigation_result(path)

        assert loaded.step_count == 2
        assert_allclose(loaded.north, [1.0, 1.6, 1.6])
        assert_allclose(loaded.step_orientations, [0.0, np.pi / 2], atol=1e-4)

    def test_empty_result_round_trip(self) -> None:
        """A zero-step result writes and reads a single start row."""
        path = self.tmp_dir / "empty.txt"
        TextResultSink(path).write(NavigationResult([], [], [0.0], [0.0]))
        assert read_navigation_result(path).step_count == 0

    def test_read_rejects_other_tables(self) -> None:
        """Tables with the wrong column count are rejected."""
        path = self.tmp_dir / "bad.txt"
        path.write_text("1, 2, 3\n")
        with pytest.raises(InvalidInputError, match="not a navigation result"):
            read_navigation_result(path)


if __name__ == "__main__":
    unittest.main()
