"""
RRT Path Planner

PURPOSE:
    Find a collision-free waypoint path between two poses by growing a
    rapidly-exploring random tree through the validator's bound box.

ALGORITHM:
    1. Sample a position (the goal with probability goal_bias, otherwise
       uniform inside the validator bounds)
    2. Find the nearest tree node and steer toward the sample, at most
       max_connection_distance
    3. Keep the new node if the connecting segment is motion-valid
    4. Stop when a node lands within goal_tolerance of the goal

Only positions are searched. Orientation rides along as the identity
quaternion; the start and goal keep their own.
"""

from typing import List, Optional

import numpy as np

from .config import PlannerConfig
from .errors import InvalidEndpoint, InvalidPathSegment, PlanningBudgetExhausted
from .geometry import Pose, PoseLike, as_pose
from .utils import get_logger
from .validator import StateValidator

logger = get_logger(__name__)


class RRTPlanner:
    """Goal-biased RRT over 3D positions."""

    def __init__(
        self,
        validator: StateValidator,
        config: Optional[PlannerConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize planner.

        Args:
            validator: State validator for point and segment checks
            config: Iteration cap, connection distance, goal bias and tolerance
            rng: Random source (seed it for reproducible trees)
        """
        self.validator = validator
        self.config = config or PlannerConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def plan(self, start: PoseLike, goal: PoseLike, sample_z: Optional[float] = None) -> List[Pose]:
        """
        Plan a path from start to goal.

        Args:
            start: Start pose
            goal: Goal pose
            sample_z: If set, every sample is pinned to this altitude
                (planar search)

        Returns:
            Waypoints beginning at start and ending exactly at goal

        Raises:
            InvalidEndpoint: start or goal fails the validator
            PlanningBudgetExhausted: no path within max_iterations
            InvalidPathSegment: a segment of the found path fails the
                motion check
        """
        start_pose = as_pose(start)
        goal_pose = as_pose(goal)

        if not self.validator.is_valid(start_pose):
            raise InvalidEndpoint(f"Start {start_pose} is not a valid state")
        if not self.validator.is_valid(goal_pose):
            raise InvalidEndpoint(f"Goal {goal_pose} is not a valid state")

        cfg = self.config
        goal_pos = goal_pose.position

        # Start already at the goal
        if np.linalg.norm(goal_pos - start_pose.position) <= cfg.goal_tolerance:
            return self._finish([start_pose.position], start_pose, goal_pose)

        lower = self.validator.lower.copy()
        upper = self.validator.upper.copy()
        if sample_z is not None:
            lower[2] = upper[2] = sample_z

        # Preallocated tree: node positions and parent indices
        nodes = np.empty((cfg.max_iterations + 1, 3))
        parents = np.full(cfg.max_iterations + 1, -1, dtype=int)
        nodes[0] = start_pose.position
        size = 1

        for iteration in range(cfg.max_iterations):
            if self.rng.random() < cfg.goal_bias:
                sample = goal_pos.copy()
            else:
                sample = self.rng.uniform(lower, upper)

            diffs = nodes[:size] - sample
            nearest = int(np.argmin(np.einsum('ij,ij->i', diffs, diffs)))
            origin = nodes[nearest]

            delta = sample - origin
            dist = float(np.linalg.norm(delta))
            if dist < 1e-9:
                continue
            if dist > cfg.max_connection_distance:
                new = origin + delta * (cfg.max_connection_distance / dist)
            else:
                new = sample

            if not self.validator.is_motion_valid(origin, new):
                continue

            nodes[size] = new
            parents[size] = nearest
            size += 1

            if np.linalg.norm(new - goal_pos) <= cfg.goal_tolerance:
                logger.debug(f"RRT reached goal after {iteration + 1} iterations ({size} nodes)")
                return self._finish(self._trace(nodes, parents, size - 1), start_pose, goal_pose)

        raise PlanningBudgetExhausted(
            f"No path from {start_pose} to {goal_pose} within {cfg.max_iterations} iterations"
        )

    @staticmethod
    def _trace(nodes: np.ndarray, parents: np.ndarray, leaf: int) -> List[np.ndarray]:
        """Walk parent links from leaf to root and return root-first positions."""
        positions = []
        index = leaf
        while index != -1:
            positions.append(nodes[index].copy())
            index = parents[index]
        positions.reverse()
        return positions

    def _finish(self, positions: List[np.ndarray], start: Pose, goal: Pose) -> List[Pose]:
        """Convert positions to poses, end on the exact goal and re-check every segment."""
        path = [Pose(p) for p in positions]
        path[0] = Pose(start.position, start.orientation)

        if np.array_equal(path[-1].position, goal.position):
            path[-1] = Pose(goal.position, goal.orientation)
        else:
            path.append(Pose(goal.position, goal.orientation))

        for a, b in zip(path[:-1], path[1:]):
            if not self.validator.is_motion_valid(a, b):
                raise InvalidPathSegment(f"Segment {a} -> {b} failed the motion check")

        return path
