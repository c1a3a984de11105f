"""
Unit tests for the SensorData container.

Tests cover:
    - Construction and shape validation
    - Component constructor
    - Derived time base and orientation accessors
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pdrnav.exceptions import InvalidInputError
from pdrnav.sensors import SensorData


def make_data(n: int = 10, rate: float = 50.0) -> SensorData:
    orientation = np.column_stack((np.full(n, 10.0), np.full(n, -5.0), np.linspace(0.0, 90.0, n)))
    return SensorData(np.tile([0.0, 0.0, 9.81], (n, 1)), np.zeros((n, 3)), orientation, rate)


class TestSensorData(unittest.TestCase):
    """SensorData construction and accessors."""

    def test_basic_properties(self) -> None:
        """Sample count, interval and time base."""
        data = make_data(10, 50.0)
        assert data.n_samples == 10
        self.assertAlmostEqual(data.dt, 0.02)
        assert_allclose(data.time, np.arange(10) * 0.02)
        assert data.accel.dtype == np.float64

    def test_orientation_accessors(self) -> None:
        """Columns are roll, pitch, yaw in degrees."""
        data = make_data(5)
        assert_allclose(data.roll, 10.0)
        assert_allclose(data.pitch, -5.0)
        assert_allclose(data.yaw, [0.0, 22.5, 45.0, 67.5, 90.0])
        assert_allclose(data.orientation_rad[:, 2], np.deg2rad(data.yaw))

    def test_from_components(self) -> None:
        """Nine 1D sequences are stacked column-wise."""
        n = 4
        ones, zeros = np.ones(n), np.zeros(n)
        data = SensorData.from_components(
            ones, 2 * ones, 3 * ones, zeros, zeros, 0.1 * ones, zeros, zeros, 45 * ones,
            sample_rate_hz=100.0,
        )
        assert_allclose(data.accel[0], [1.0, 2.0, 3.0])
        assert_allclose(data.gyro[:, 2], 0.1)
        assert_allclose(data.yaw, 45.0)
        assert data.sample_rate_hz == 100.0

    def test_from_components_length_mismatch(self) -> None:
        """Components of different lengths are rejected."""
        with pytest.raises(InvalidInputError, match="equal length"):
            SensorData.from_components(*([np.zeros(3)] * 8 + [np.zeros(4)]))

    def test_stream_validation(self) -> None:
        """Mismatched stream lengths, bad shapes and bad rates are rejected."""
        with pytest.raises(InvalidInputError, match="equal length"):
            SensorData(np.zeros((5, 3)), np.zeros((4, 3)), np.zeros((5, 3)))
        with pytest.raises(InvalidInputError, match=r"SensorData.gyro must have shape"):
            SensorData(np.zeros((5, 3)), np.zeros((5, 2)), np.zeros((5, 3)))
        with pytest.raises(InvalidInputError, match="sample_rate_hz"):
            SensorData(np.zeros((5, 3)), np.zeros((5, 3)), np.zeros((5, 3)), sample_rate_hz=0.0)

    def test_empty_recording(self) -> None:
        """Zero samples are allowed."""
        data = SensorData(np.zeros((0, 3)), np.zeros((0, 3)), np.zeros((0, 3)))
        assert data.n_samples == 0
        assert data.time.shape == (0,)


if __name__ == "__main__":
    unittest.main()
