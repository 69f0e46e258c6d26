"""
Search Area Environment

PURPOSE:
    Hold the static scene of a search area: its dimensions, box buildings
    and cylindrical obstacles. Register every shape with the occupancy volume
    used for collision checking.

FEATURES:
    - Box buildings (corner position + dimensions)
    - Vertical cylinder obstacles (towers, poles, street lights)
    - Automatic occupancy volume registration
    - Reference scene layout via SearchAreaEnvironment.default()
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .occupancy import OccupancyVolume
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class Building:
    """Axis-aligned box standing on the ground."""

    position: np.ndarray     # [x, y, z] lowest corner
    dimensions: np.ndarray   # [length (x), width (y), height (z)]

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3)
        self.dimensions = np.asarray(self.dimensions, dtype=float).reshape(3)

    @property
    def max_corner(self) -> np.ndarray:
        return self.position + self.dimensions

    def footprint_contains(self, point: np.ndarray, margin: float = 0.0) -> bool:
        """True if the xy of ``point`` lies within the footprint expanded by ``margin``."""
        x, y = float(point[0]), float(point[1])
        lo, hi = self.position, self.max_corner
        return (lo[0] - margin <= x <= hi[0] + margin and
                lo[1] - margin <= y <= hi[1] + margin)


@dataclass
class CylinderObstacle:
    """Vertical cylinder from the ground up to ``height``."""

    center: np.ndarray   # [x, y]
    radius: float
    height: float

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=float).reshape(-1)[:2]


# Reference layout: [x, y, length, width, height]
DEFAULT_BUILDINGS = [
    # Tall buildings
    (50, 50, 20, 30, 40),
    (100, 80, 25, 25, 35),
    (150, 60, 15, 45, 25),
    (200, 120, 30, 30, 45),
    # Medium buildings
    (75, 150, 20, 20, 20),
    (120, 180, 15, 25, 15),
    # Small structures
    (180, 40, 10, 10, 10),
    (220, 90, 12, 12, 12),
]

# Reference layout: [x, y, radius, height]
DEFAULT_OBSTACLES = [
    # Towers and poles
    (180, 40, 3, 50),
    (90, 120, 2, 30),
    (220, 180, 4, 40),
    # Street lights
    (140, 70, 2, 20),
    (160, 150, 2, 20),
    (60, 200, 2, 20),
]


class SearchAreaEnvironment:
    """
    Static scene of the search area.

    The occupancy volume is populated as buildings and obstacles are added;
    space that no shape covers stays free.
    """

    def __init__(
        self,
        dimensions: Sequence[float] = (300.0, 300.0, 100.0),
        buildings: Sequence[Building] = (),
        obstacles: Sequence[CylinderObstacle] = (),
        resolution: float = 1.0,
        occupied_threshold: float = 0.80,
        free_threshold: float = 0.20
    ):
        """
        Initialize environment.

        Args:
            dimensions: (length, width, height) of the search area (meters)
            buildings: Box buildings to register
            obstacles: Cylinder obstacles to register
            resolution: Occupancy cell size (meters)
            occupied_threshold: Occupancy blocked threshold
            free_threshold: Occupancy traversable threshold
        """
        dims = np.asarray(dimensions, dtype=float).reshape(3)
        if np.any(dims <= 0):
            raise ValueError(f"Environment dimensions must be positive, got {dims}")
        self.dimensions = dims

        self._volume = OccupancyVolume(
            resolution=resolution,
            occupied_threshold=occupied_threshold,
            free_threshold=free_threshold,
        )
        self._buildings: List[Building] = []
        self._obstacles: List[CylinderObstacle] = []

        for building in buildings:
            self.add_building(building)
        for obstacle in obstacles:
            self.add_obstacle(obstacle)

    @classmethod
    def default(
        cls,
        dimensions: Sequence[float] = (300.0, 300.0, 100.0),
        occupied_threshold: float = 0.80,
        free_threshold: float = 0.20
    ) -> "SearchAreaEnvironment":
        """Reference scene: eight buildings and six cylindrical obstacles."""
        env = cls(dimensions, occupied_threshold=occupied_threshold, free_threshold=free_threshold)
        for x, y, length, width, height in DEFAULT_BUILDINGS:
            env.add_building(Building([x, y, 0.0], [length, width, height]))
        for x, y, radius, height in DEFAULT_OBSTACLES:
            env.add_obstacle(CylinderObstacle([x, y], radius, height))
        return env

    def add_building(self, building: Building) -> int:
        """
        Add a building and mark its volume occupied.

        Returns:
            Number of occupancy cells marked
        """
        self._buildings.append(building)
        count = self._volume.mark_box(building.position, building.max_corner)
        logger.debug(f"Building at {building.position.tolist()} size {building.dimensions.tolist()}: "
                     f"{count} cells")
        return count

    def add_obstacle(self, obstacle: CylinderObstacle) -> int:
        """
        Add a cylinder obstacle and mark its volume occupied.

        Returns:
            Number of occupancy cells marked
        """
        self._obstacles.append(obstacle)
        count = self._volume.mark_cylinder(obstacle.center, obstacle.radius, obstacle.height)
        logger.debug(f"Obstacle at {obstacle.center.tolist()} r={obstacle.radius}: {count} cells")
        return count

    def bounds(self) -> Tuple[float, float, float]:
        """(length, width, height) of the search area."""
        return tuple(float(v) for v in self.dimensions)

    def occupancy_volume(self) -> OccupancyVolume:
        return self._volume

    def buildings(self) -> List[Building]:
        return list(self._buildings)

    def obstacles(self) -> List[CylinderObstacle]:
        return list(self._obstacles)

    def contains(self, position: np.ndarray, margin: float = 0.0) -> bool:
        """
        Check a position against the search area footprint.

        Args:
            position: [x, y, z]
            margin: Lateral clearance from the area edges (meters)

        Returns:
            True if margin <= x <= L - margin, margin <= y <= W - margin
            and 0 <= z <= H
        """
        x, y, z = (float(v) for v in np.asarray(position, dtype=float)[:3])
        length, width, height = self.dimensions
        return (margin <= x <= length - margin and
                margin <= y <= width - margin and
                0.0 <= z <= height)
