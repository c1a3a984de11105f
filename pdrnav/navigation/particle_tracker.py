"""
Particle-filter location tracking on top of the step/heading stream.

For every step:
    1. predict: shift each particle by the step displacement
       (L cos θ, L sin θ) plus process noise
    2. measure: the dead-reckoned position, map-matched onto the floor plan
    3. update: Gaussian likelihood of the measurement, 1% weight for
       particles violating the map (MapMatcher.is_valid_position)
    4. resample when the effective sample size drops below
       resample_threshold * N

The tracker reuses the step lengths and orientations produced by
PDRNavigator, so the two strategies are interchangeable downstream.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from pdrnav.estimators.particle_filter import ParticleFilter
from pdrnav.exceptions import InvalidInputError
from pdrnav.navigation.dead_reckoning import PDRNavigator
from pdrnav.navigation.map_matching import MapMatcher
from pdrnav.navigation.types import NavigationResult, PDRConfig
from pdrnav.sensors.types import SensorData

logger = logging.getLogger(__name__)


class ParticleFilterTracker:
    """
    Map-constrained particle tracking of a walking pedestrian.

    Args:
        config: Pipeline parameters (particle count, noise, seed, ...).
        map_matcher: Floor plan. Defaults to an empty map, in which case
            every position is valid and no snapping happens.

    Attributes:
        particle_filter: Filter of the last run.
        resample_count: Number of resampling events in the last run.
    """

    def __init__(self, config: Optional[PDRConfig] = None, map_matcher: Optional[MapMatcher] = None):
        self.config = config if config is not None else PDRConfig()
        self.map_matcher = map_matcher if map_matcher is not None else MapMatcher(
            self.config.snapping_distance, self.config.wall_clearance
        )
        self.particle_filter: Optional[ParticleFilter] = None
        self.resample_count = 0

    def _new_filter(self) -> ParticleFilter:
        cfg = self.config
        pf = ParticleFilter(cfg.n_particles, 2, rng=np.random.default_rng(cfg.random_seed))
        pf.set_process_noise(np.eye(2) * cfg.process_noise_std**2)
        pf.set_measurement_noise(np.eye(2) * cfg.measurement_noise_var)
        pf.initialize(np.array([cfg.initial_north, cfg.initial_east]), cfg.initial_noise)
        return pf

    def track(
        self,
        step_lengths: Sequence[float],
        step_orientations: Sequence[float],
        step_indices: Optional[np.ndarray] = None,
    ) -> NavigationResult:
        """
        Track a step sequence.

        Args:
            step_lengths: Step lengths in meters, shape (S,).
            step_orientations: Step headings in radians, shape (S,).
            step_indices: Optional (S, 2) sample windows carried into the result.

        Returns:
            NavigationResult whose north/east trace is the particle estimate
            after each step (index 0 is the configured start position).
        """
        lengths = np.asarray(step_lengths, dtype=float)
        theta = np.asarray(step_orientations, dtype=float)
        if lengths.shape != theta.shape or lengths.ndim != 1:
            raise InvalidInputError(
                f"step_lengths and step_orientations must be 1D with equal length, got "
                f"{lengths.shape} and {theta.shape}"
            )

        cfg = self.config
        pf = self._new_filter()
        self.particle_filter = pf
        self.resample_count = 0

        north = [cfg.initial_north]
        east = [cfg.initial_east]
        dr_north, dr_east = cfg.initial_north, cfg.initial_east

        for i, (length, heading) in enumerate(zip(lengths, theta)):
            step = np.array([length * np.cos(heading), length * np.sin(heading)])
            pf.predict(lambda x, step=step: x + step)

            dr_north += step[0]
            dr_east += step[1]
            measurement = np.array(self.map_matcher.match_point(dr_north, dr_east))
            pf.update(measurement, self.map_matcher.is_valid_position)

            n_eff = pf.effective_sample_size()
            if n_eff < cfg.resample_threshold * pf.n_particles:
                logger.debug("Step %d: resampling, N_eff %.1f", i, n_eff)
                pf.resample()
                self.resample_count += 1

            estimate = pf.estimate()
            north.append(float(estimate[0]))
            east.append(float(estimate[1]))

        logger.info(
            "Tracked %d steps with %d particles, %d resampling events",
            lengths.size, pf.n_particles, self.resample_count,
        )
        return NavigationResult(
            step_lengths=lengths,
            step_orientations=theta,
            north=north,
            east=east,
            step_indices=step_indices,
        )

    def navigate(self, data: SensorData) -> NavigationResult:
        """Detect steps and heading with PDRNavigator, then track them."""
        steps = PDRNavigator(self.config).navigate(data)
        return self.track(steps.step_lengths, steps.step_orientations, steps.step_indices)
