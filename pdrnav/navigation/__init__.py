"""
Location tracking for pedestrian dead reckoning.

Two interchangeable strategies turn step events and headings into a
north/east trajectory:
    - PDRNavigator: deterministic step-and-heading integration
    - ParticleFilterTracker: particle filter with map matching as the
      observation model
"""

from pdrnav.navigation.types import NavigationResult, PDRConfig
from pdrnav.navigation.dead_reckoning import PDRNavigator, dead_reckon, step_orientations
from pdrnav.navigation.map_matching import MapMatcher, Room, Wall
from pdrnav.navigation.particle_tracker import ParticleFilterTracker

__all__ = [
    "PDRConfig",
    "NavigationResult",
    # Dead reckoning
    "PDRNavigator",
    "dead_reckon",
    "step_orientations",
    # Map matching
    "MapMatcher",
    "Room",
    "Wall",
    # Particle filter tracking
    "ParticleFilterTracker",
]
