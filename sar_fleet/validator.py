"""
State validation against the occupancy volume.

A pose is valid when it lies inside the planning bound box (environment
dimensions expanded by a buffer for takeoff and landing margin) and its
occupancy cell is at or below the configured free threshold. Segments are
checked by sampling at a fixed validation distance.
"""

from typing import Optional, Sequence

import numpy as np

from .config import PlannerConfig
from .geometry import PoseLike, as_position
from .occupancy import OccupancyVolume


class StateValidator:
    """Point and straight-segment validity checks for the planner."""

    def __init__(
        self,
        volume: OccupancyVolume,
        dimensions: Sequence[float],
        config: Optional[PlannerConfig] = None
    ):
        """
        Args:
            volume: Populated occupancy volume
            dimensions: (length, width, height) of the environment
            config: Buffers and validation distance
        """
        self.config = config or PlannerConfig()
        self.volume = volume

        length, width, height = (float(d) for d in dimensions)
        lateral = self.config.lateral_buffer
        vertical = self.config.vertical_buffer
        self.lower = np.array([-lateral, -lateral, -vertical])
        self.upper = np.array([length + lateral, width + lateral, height + vertical])
        self.validation_distance = self.config.validation_distance
        self.free_threshold = self.config.free_threshold

    @classmethod
    def for_environment(cls, environment, config: Optional[PlannerConfig] = None) -> "StateValidator":
        return cls(environment.occupancy_volume(), environment.bounds(), config)

    def in_bounds(self, position: np.ndarray) -> bool:
        p = np.asarray(position, dtype=float)[:3]
        return bool(np.all(p >= self.lower) and np.all(p <= self.upper))

    def is_valid(self, pose: PoseLike) -> bool:
        """
        Check a single pose.

        Indeterminate cells (between the free and occupied thresholds) count
        as blocked.
        """
        position = as_position(pose)
        if not self.in_bounds(position):
            return False
        return self.volume.occupancy(position) <= self.free_threshold

    def is_motion_valid(self, pose_a: PoseLike, pose_b: PoseLike) -> bool:
        """
        Check the straight segment between two poses.

        Samples every ``validation_distance`` along the segment, both ends
        included. A zero-length segment is valid.
        """
        a = as_position(pose_a)
        b = as_position(pose_b)
        delta = b - a
        length = float(np.linalg.norm(delta))

        if length < 1e-9:
            return True

        num_steps = max(1, int(np.ceil(length / self.validation_distance)))
        t = np.linspace(0.0, 1.0, num_steps + 1)[:, None]
        samples = a + t * delta

        if np.any(samples < self.lower) or np.any(samples > self.upper):
            return False

        occupancy = self.volume.occupancy_many(samples)
        return bool(np.all(occupancy <= self.free_threshold))
