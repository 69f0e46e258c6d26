"""
Path Following

PURPOSE:
    Advance a vehicle along its waypoint path by one simulation step.

BEHAVIOR:
    - Intermediate waypoints count as reached within replan_distance and are
      popped without moving that tick
    - Otherwise velocity = direction * cruise speed, position += velocity * dt
    - The final waypoint is reached exactly once it is within one step
    - Ground paths are projected to z = 0
    - A path flagged for replanning is replaced in place by a fresh plan to
      its final waypoint; if planning fails the stale path is kept
"""

from typing import Optional

import numpy as np

from .config import MissionConfig
from .metrics import MissionMetrics
from .path_planning import PathPlanner
from .utils import get_logger
from .vehicles import Vehicle

logger = get_logger(__name__)


class PathFollower:
    """Per-tick waypoint follower with on-demand replanning."""

    def __init__(
        self,
        planner: PathPlanner,
        config: Optional[MissionConfig] = None,
        metrics: Optional[MissionMetrics] = None
    ):
        self.planner = planner
        self.validator = planner.validator
        self.config = config or MissionConfig()
        self.metrics = metrics

    def needs_replanning(self, vehicle: Vehicle) -> bool:
        """
        Check whether the vehicle's path should be replanned.

        True when the path is empty, when the single remaining waypoint is
        within replan_distance, or when the segment to the front waypoint
        fails the motion check.
        """
        path = vehicle.path
        if not path:
            return True

        position = vehicle.position
        if len(path) == 1 and np.linalg.norm(path[0].position - position) < self.config.replan_distance:
            return True

        return not self.validator.is_motion_valid(position, path[0])

    def update(self, vehicle: Vehicle, dt: Optional[float] = None):
        """
        Advance one tick.

        Args:
            vehicle: Vehicle to move (its path is consumed in place)
            dt: Step duration, defaults to the simulation step
        """
        if not vehicle.path:
            return

        dt = self.config.simulation_step if dt is None else dt

        if not vehicle.is_aerial:
            vehicle.path[:] = [p if p.z == 0.0 else p.with_z(0.0) for p in vehicle.path]

        if self.needs_replanning(vehicle):
            self._replan(vehicle)
            if not vehicle.path:
                return

        self._follow(vehicle, dt)

    def _replan(self, vehicle: Vehicle):
        current = vehicle.pose
        goal = vehicle.path[-1]
        result = self.planner.plan(current, goal, vehicle.is_aerial)
        if not result.success:
            logger.debug(f"{vehicle.vehicle_id}: replan to {goal} failed, keeping current path")
            return

        new_path = list(result.path)
        if new_path and np.allclose(new_path[0].position, current.position):
            new_path.pop(0)
        vehicle.path[:] = new_path

        if self.metrics is not None:
            self.metrics.record_replan()

    def _follow(self, vehicle: Vehicle, dt: float):
        path = vehicle.path
        position = vehicle.position
        delta = path[0].position - position
        if not vehicle.is_aerial:
            delta[2] = 0.0
        dist = float(np.linalg.norm(delta))

        # Intermediate waypoint reached
        if len(path) > 1 and dist < self.config.replan_distance:
            path.pop(0)
            return

        # The final waypoint is never popped at replan_distance; the vehicle
        # keeps closing in so it arrives at the detection height
        step = vehicle.cruise_speed * dt
        if dist <= step:
            # Final waypoint: land on it exactly
            velocity = delta / dt if dt > 0 else np.zeros(3)
            vehicle.move(position + delta, velocity)
            path.pop(0)
            return

        velocity = delta / dist * vehicle.cruise_speed
        vehicle.move(position + velocity * dt, velocity)
