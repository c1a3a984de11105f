"""
Unit tests for the map-constrained ParticleFilter.

Tests cover:
    - Initialization scatter and seeded reproducibility
    - Prediction through a motion model
    - Gaussian likelihood weighting with the map penalty
    - Collapse to uniform weights
    - Systematic resampling and effective sample size
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pdrnav.estimators import MAP_PENALTY, ParticleFilter
from pdrnav.exceptions import InvalidInputError


def make_filter(n: int = 500, seed: int = 0) -> ParticleFilter:
    pf = ParticleFilter(n, 2, rng=np.random.default_rng(seed))
    pf.initialize(np.array([1.0, 2.0]), 0.5)
    return pf


class TestParticleFilterInit(unittest.TestCase):
    """Construction and initialization."""

    def test_initialize_scatter(self) -> None:
        """Particles are centered on the state with the requested spread."""
        pf = make_filter(5000)
        particles, weights = pf.get_particles()

        assert particles.shape == (5000, 2)
        assert_allclose(weights, np.full(5000, 1.0 / 5000))
        assert_allclose(particles.mean(axis=0), [1.0, 2.0], atol=0.05)
        assert_allclose(particles.std(axis=0), [0.5, 0.5], atol=0.05)

    def test_seeded_reproducible(self) -> None:
        """Equal seeds give equal particle clouds."""
        a, _ = make_filter(seed=7).get_particles()
        b, _ = make_filter(seed=7).get_particles()
        np.testing.assert_array_equal(a, b)

    def test_invalid_arguments(self) -> None:
        """Bad sizes and noise matrices are rejected."""
        with pytest.raises(InvalidInputError, match="n_particles"):
            ParticleFilter(0)
        with pytest.raises(InvalidInputError, match="state_dim"):
            ParticleFilter(10, 1)
        pf = make_filter(10)
        with pytest.raises(InvalidInputError, match="shape \\(2, 2\\)"):
            pf.set_measurement_noise(np.eye(3))
        with pytest.raises(InvalidInputError, match="positive"):
            pf.set_measurement_noise(np.zeros((2, 2)))
        with pytest.raises(InvalidInputError):
            pf.initialize(np.zeros(3), 0.1)


class TestParticleFilterPredict(unittest.TestCase):
    """Motion model propagation."""

    def test_noise_free_shift(self) -> None:
        """With zero process noise every particle moves by the step."""
        pf = make_filter(50)
        pf.set_process_noise(np.zeros((2, 2)))
        before, _ = pf.get_particles()

        pf.predict(lambda x: x + np.array([0.7, -0.2]))

        after, _ = pf.get_particles()
        assert_allclose(after - before, np.tile([0.7, -0.2], (50, 1)), atol=1e-12)

    def test_process_noise_spread(self) -> None:
        """Noise std is the square root of the covariance diagonal."""
        pf = ParticleFilter(4000, 2, rng=np.random.default_rng(1))
        pf.initialize(np.zeros(2), 0.0)
        pf.set_process_noise(np.diag([0.04, 0.25]))

        pf.predict(lambda x: x)

        particles, _ = pf.get_particles()
        assert_allclose(particles.std(axis=0), [0.2, 0.5], atol=0.03)


class TestParticleFilterUpdate(unittest.TestCase):
    """Likelihood weighting."""

    def setUp(self) -> None:
        self.pf = ParticleFilter(2, 2, rng=np.random.default_rng(0))
        self.pf.particles = np.array([[0.0, 0.0], [1.0, 0.0]])
        self.pf.weights = np.array([0.5, 0.5])

    def test_weights_normalized(self) -> None:
        """Weights follow the Gaussian likelihood and sum to one."""
        self.pf.update(np.array([0.0, 0.0]))

        expected = np.array([1.0, np.exp(-0.5)])
        assert_allclose(self.pf.weights, expected / expected.sum())
        self.assertAlmostEqual(self.pf.weights.sum(), 1.0)

    def test_map_penalty(self) -> None:
        """Particles failing the constraint keep 1% of their likelihood."""
        self.pf.update(np.array([0.5, 0.0]), lambda n, e: n < 0.5)

        self.assertAlmostEqual(self.pf.weights[1] / self.pf.weights[0], MAP_PENALTY)

    def test_collapse_resets_uniform(self) -> None:
        """An impossible measurement resets the weights to uniform."""
        self.pf.update(np.array([1e6, 1e6]))
        assert_allclose(self.pf.weights, [0.5, 0.5])

    def test_estimate_is_weighted_mean(self) -> None:
        """estimate() is Σ w_i x_i."""
        self.pf.update(np.array([1.0, 0.0]))
        w = self.pf.weights
        assert_allclose(self.pf.estimate(), w[0] * np.array([0.0, 0.0]) + w[1] * np.array([1.0, 0.0]))

    def test_measurement_shape(self) -> None:
        """Measurements are (north, east)."""
        with pytest.raises(InvalidInputError, match="shape \\(2,\\)"):
            self.pf.update(np.array([1.0, 2.0, 3.0]))


class TestParticleFilterResample(unittest.TestCase):
    """Systematic resampling and N_eff."""

    def test_ess_uniform(self) -> None:
        """Uniform weights give N_eff = N."""
        pf = make_filter(100)
        self.assertAlmostEqual(pf.effective_sample_size(), 100.0)

    def test_resample_degenerate(self) -> None:
        """All mass on one particle duplicates it N times."""
        pf = ParticleFilter(4, 2, rng=np.random.default_rng(2))
        pf.particles = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])
        pf.weights = np.array([0.0, 0.0, 1.0, 0.0])
        self.assertAlmostEqual(pf.effective_sample_size(), 1.0)

        pf.resample()

        particles, weights = pf.get_particles()
        assert_allclose(particles, np.tile([2.0, 2.0], (4, 1)))
        assert_allclose(weights, np.full(4, 0.25))

    def test_resample_preserves_count_and_mean(self) -> None:
        """Resampling keeps N particles and roughly the weighted mean."""
        pf = make_filter(2000, seed=4)
        pf.update(np.array([1.5, 2.0]))
        mean_before = pf.estimate()

        pf.resample()

        particles, weights = pf.get_particles()
        assert particles.shape == (2000, 2)
        assert_allclose(weights, np.full(2000, 1.0 / 2000))
        assert_allclose(pf.estimate(), mean_before, atol=0.05)


if __name__ == "__main__":
    unittest.main()
