"""
Unit tests for LowPassFilter and FIRFilter.

Tests cover:
    - Exponential smoothing recursion and alpha validation
    - FIR low-pass design (unit DC gain, symmetric taps)
    - Circular-buffer convolution against scipy.signal.lfilter
    - State kept between calls and cleared by reset()
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import signal

from pdrnav.exceptions import InvalidInputError
from pdrnav.sensors import FIRFilter, LowPassFilter


class TestLowPassFilter(unittest.TestCase):
    """Single-pole exponential smoother."""

    def test_recursion(self) -> None:
        """y[0] = x[0], y[n] = α x[n] + (1 - α) y[n-1]."""
        lpf = LowPassFilter(0.5)
        assert_allclose(lpf.filter(np.array([2.0, 0.0, 0.0, 4.0])), [2.0, 1.0, 0.5, 2.25])

    def test_alpha_extremes(self) -> None:
        """α = 1 passes through, α = 0 holds the first sample."""
        x = np.array([1.0, 5.0, -3.0])
        assert_allclose(LowPassFilter(1.0).filter(x), x)
        assert_allclose(LowPassFilter(0.0).filter(x), [1.0, 1.0, 1.0])

    def test_constant_input_passes_for_any_alpha(self) -> None:
        """A constant signal comes out unchanged for every α in [0, 1]."""
        x = np.full(25, -3.7)
        for alpha in np.linspace(0.0, 1.0, 11):
            assert_allclose(LowPassFilter(alpha).filter(x), x, rtol=1e-12, err_msg=f"alpha={alpha}")

    def test_state_kept_between_calls(self) -> None:
        """Two half-calls equal one full call; reset starts over."""
        x = np.array([1.0, 3.0, 2.0, 8.0])
        full = LowPassFilter(0.3).filter(x)

        lpf = LowPassFilter(0.3)
        split = np.concatenate((lpf.filter(x[:2]), lpf.filter(x[2:])))
        assert_allclose(split, full)

        lpf.reset()
        self.assertEqual(lpf.filter_sample(7.0), 7.0)

    def test_alpha_validation(self) -> None:
        """α outside [0, 1] is rejected in the constructor and the setter."""
        with pytest.raises(InvalidInputError, match="alpha must be in \\[0, 1\\]"):
            LowPassFilter(1.5)
        lpf = LowPassFilter(0.5)
        with pytest.raises(InvalidInputError):
            lpf.alpha = -0.1
        self.assertEqual(lpf.alpha, 0.5)

    def test_from_frequency(self) -> None:
        """α = dt / (RC + dt) with RC = 1 / (2π f_c)."""
        lpf = LowPassFilter.from_frequency(cutoff_hz=2.0, sample_rate_hz=50.0)
        rc = 1.0 / (2.0 * np.pi * 2.0)
        self.assertAlmostEqual(lpf.alpha, 0.02 / (rc + 0.02))


class TestFIRFilterDesign(unittest.TestCase):
    """Hamming-windowed-sinc low-pass."""

    def test_unit_dc_gain_and_symmetry(self) -> None:
        """order + 1 taps that sum to one and are symmetric."""
        fir = FIRFilter.create_low_pass(order=10, cutoff=0.06)
        b = fir.coefficients

        assert b.shape == (11,)
        assert fir.order == 10
        self.assertAlmostEqual(b.sum(), 1.0, places=12)
        assert_allclose(b, b[::-1], atol=1e-15)
        assert np.argmax(b) == 5

    def test_attenuates_high_frequency(self) -> None:
        """Nyquist-rate alternation is strongly attenuated; DC passes."""
        b = FIRFilter.create_low_pass(10, 0.06).coefficients
        nyquist_gain = abs(np.sum(b * (-1.0) ** np.arange(b.size)))
        assert nyquist_gain < 0.05

    def test_invalid_design(self) -> None:
        """Order and cutoff are validated."""
        with pytest.raises(InvalidInputError, match="order"):
            FIRFilter.create_low_pass(0, 0.06)
        with pytest.raises(InvalidInputError, match="cutoff"):
            FIRFilter.create_low_pass(10, 1.0)
        with pytest.raises(InvalidInputError):
            FIRFilter([])


class TestFIRFilterProcessing(unittest.TestCase):
    """Causal convolution with zeroed history."""

    def setUp(self) -> None:
        self.fir = FIRFilter.create_low_pass(10, 0.06)
        self.x = np.sin(np.arange(60) * 0.3) + 0.2 * np.cos(np.arange(60) * 2.5)

    def test_matches_lfilter(self) -> None:
        """Output equals scipy.signal.lfilter with zero initial conditions."""
        expected = signal.lfilter(self.fir.coefficients, [1.0], self.x)
        assert_allclose(self.fir.process(self.x), expected, atol=1e-12)

    def test_impulse_response(self) -> None:
        """An impulse returns the taps."""
        impulse = np.zeros(15)
        impulse[0] = 1.0
        out = self.fir.process(impulse)
        assert_allclose(out[:11], self.fir.coefficients, atol=1e-15)
        assert_allclose(out[11:], 0.0, atol=1e-15)

    def test_constant_input_settles(self) -> None:
        """After order samples a constant input comes out unchanged."""
        out = self.fir.process(np.full(20, 3.0))
        assert_allclose(out[10:], 3.0, atol=1e-12)
        assert out[0] < 3.0

    def test_streaming_and_reset(self) -> None:
        """Chunked processing equals one pass; reset clears the history."""
        full = FIRFilter(self.fir.coefficients).process(self.x)
        chunked = np.concatenate((self.fir.process(self.x[:17]), self.fir.process(self.x[17:])))
        assert_allclose(chunked, full, atol=1e-12)

        self.fir.reset()
        assert_allclose(self.fir.process(self.x), full, atol=1e-12)


if __name__ == "__main__":
    unittest.main()
