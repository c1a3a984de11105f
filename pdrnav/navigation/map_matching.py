"""
Map matching against a floor plan of rooms and walls.

The floor plan is two kinds of static primitives in north/east meters:
    - Room: axis-aligned rectangle; points inside (boundary included) are
      left alone.
    - Wall: line segment; points outside every room are snapped onto the
      nearest wall within the snapping distance whose perpendicular foot
      lies on the segment.

is_valid_position() is the particle filter's map constraint: inside a room
is always valid, otherwise anything closer than `wall_clearance` to a wall
is invalid.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from pdrnav.exceptions import InvalidInputError

_PROJECTION_EPS = 1e-9


@dataclass(frozen=True)
class Wall:
    """Wall segment from (start_north, start_east) to (end_north, end_east)."""

    start_north: float
    start_east: float
    end_north: float
    end_east: float

    @property
    def length(self) -> float:
        return float(np.hypot(self.end_north - self.start_north, self.end_east - self.start_east))

    def projection_parameter(self, north: float, east: float) -> float:
        """
        Position t of the perpendicular foot along the wall: 0 at the start,
        1 at the end. A zero-length wall gives 0.
        """
        dn = self.end_north - self.start_north
        de = self.end_east - self.start_east
        length_sq = dn * dn + de * de
        if length_sq == 0.0:
            return 0.0
        return ((north - self.start_north) * dn + (east - self.start_east) * de) / length_sq

    def project_point(self, north: float, east: float) -> Tuple[float, float]:
        """Perpendicular foot of the point on the wall's supporting line."""
        t = self.projection_parameter(north, east)
        return (
            self.start_north + t * (self.end_north - self.start_north),
            self.start_east + t * (self.end_east - self.start_east),
        )

    def contains_projection(self, north: float, east: float) -> bool:
        t = self.projection_parameter(north, east)
        return -_PROJECTION_EPS <= t <= 1.0 + _PROJECTION_EPS

    def perpendicular_distance(self, north: float, east: float) -> float:
        """Distance to the supporting line (to the start point if zero-length)."""
        foot_north, foot_east = self.project_point(north, east)
        return float(np.hypot(north - foot_north, east - foot_east))

    def distance_to_point(self, north: float, east: float) -> float:
        """Distance to the closest point of the segment."""
        t = float(np.clip(self.projection_parameter(north, east), 0.0, 1.0))
        closest_north = self.start_north + t * (self.end_north - self.start_north)
        closest_east = self.start_east + t * (self.end_east - self.start_east)
        return float(np.hypot(north - closest_north, east - closest_east))


@dataclass(frozen=True)
class Room:
    """
    Axis-aligned room.

    Attributes:
        center_north, center_east: Room center in meters.
        width: Extent along east in meters.
        height: Extent along north in meters.
    """

    center_north: float
    center_east: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InvalidInputError(
                f"Room width and height must be non-negative, got {self.width}, {self.height}"
            )

    def contains(self, north: float, east: float) -> bool:
        return (
            abs(north - self.center_north) <= self.height / 2.0
            and abs(east - self.center_east) <= self.width / 2.0
        )


class MapMatcher:
    """
    Snap positions to walls outside of rooms.

    Args:
        snapping_distance: Walls farther away than this are ignored. Meters.
        wall_clearance: Minimum distance to a wall for a valid position
            outside rooms. Meters.

    Example:
        >>> mm = MapMatcher(snapping_distance=1.0)
        >>> mm.add_wall(0.0, 0.0, 10.0, 0.0)
        >>> mm.match_point(5.0, 0.4)
        (5.0, 0.0)
    """

    def __init__(self, snapping_distance: float = 1.0, wall_clearance: float = 0.3):
        if snapping_distance < 0 or wall_clearance < 0:
            raise InvalidInputError(
                f"snapping_distance and wall_clearance must be non-negative, got "
                f"{snapping_distance}, {wall_clearance}"
            )
        self.snapping_distance = float(snapping_distance)
        self.wall_clearance = float(wall_clearance)
        self.walls: List[Wall] = []
        self.rooms: List[Room] = []

    def add_wall(self, start_north: float, start_east: float, end_north: float, end_east: float) -> Wall:
        wall = Wall(float(start_north), float(start_east), float(end_north), float(end_east))
        self.walls.append(wall)
        return wall

    def add_room(self, center_north: float, center_east: float, width: float, height: float) -> Room:
        room = Room(float(center_north), float(center_east), float(width), float(height))
        self.rooms.append(room)
        return room

    def in_room(self, north: float, east: float) -> bool:
        return any(room.contains(north, east) for room in self.rooms)

    def match_point(self, north: float, east: float) -> Tuple[float, float]:
        """
        Map-matched position of one point.

        Inside a room the point is returned unchanged. Otherwise the point
        snaps to the nearest wall whose perpendicular foot lies on the
        segment and whose distance is below the snapping distance. If no
        wall qualifies the point is returned unchanged.
        """
        if self.in_room(north, east):
            return north, east

        best = (north, east)
        best_distance = self.snapping_distance
        for wall in self.walls:
            if not wall.contains_projection(north, east):
                continue
            distance = wall.perpendicular_distance(north, east)
            if distance < best_distance:
                best_distance = distance
                best = wall.project_point(north, east)
        return best

    def match_trajectory(
        self, north: Sequence[float], east: Sequence[float]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Map-match a north/east trace. The first point (the known start) is
        kept as is.

        Raises:
            InvalidInputError: If the traces differ in length.
        """
        north = np.asarray(north, dtype=float)
        east = np.asarray(east, dtype=float)
        if north.shape != east.shape or north.ndim != 1:
            raise InvalidInputError(
                f"north and east must be 1D with equal length, got {north.shape} and {east.shape}"
            )

        matched_north = north.copy()
        matched_east = east.copy()
        for i in range(1, north.size):
            matched_north[i], matched_east[i] = self.match_point(north[i], east[i])
        return matched_north, matched_east

    def is_valid_position(self, north: float, east: float) -> bool:
        if self.in_room(north, east):
            return True
        return all(wall.distance_to_point(north, east) >= self.wall_clearance for wall in self.walls)
