"""
Path Planning API

PURPOSE:
    Single entry point for route requests from the assignment engine and the
    path follower. Wraps the RRT planner with the vehicle-specific rules.

FEATURES:
    - Ground vehicles: planar search at z = 0, clearance around cylinder
      obstacles at both endpoints
    - Footprint bounds check for start and goal
    - Aerial descent to ground-level goals as three chained segments:
      cruise height above the goal, down to the approach height, back up
    - Failures are reported as PlanResult(success=False), never raised
"""

from typing import List, NamedTuple, Optional

import numpy as np

from .config import MissionConfig, PlannerConfig
from .environment import SearchAreaEnvironment
from .errors import InvalidEndpoint, OutOfBounds, PlanningError
from .geometry import Pose, PoseLike, as_pose, horizontal_distance, path_length
from .metrics import MissionMetrics
from .rrt_planner import RRTPlanner
from .utils import get_logger
from .validator import StateValidator

logger = get_logger(__name__)


class PlanResult(NamedTuple):
    success: bool
    path: List[Pose]


class PathPlanner:
    """Plans routes for aerial and ground vehicles."""

    def __init__(
        self,
        environment: SearchAreaEnvironment,
        planner_config: Optional[PlannerConfig] = None,
        mission_config: Optional[MissionConfig] = None,
        rng: Optional[np.random.Generator] = None,
        metrics: Optional[MissionMetrics] = None
    ):
        """
        Initialize path planner.

        Args:
            environment: Scene with a populated occupancy volume
            planner_config: RRT and validator settings
            mission_config: Heights and clearance margins
            rng: Random source shared by every RRT run
            metrics: Optional metrics sink for planning attempts
        """
        self.environment = environment
        self.planner_config = planner_config or PlannerConfig()
        self.config = mission_config or MissionConfig()
        self.metrics = metrics

        self.validator = StateValidator.for_environment(environment, self.planner_config)
        self.rrt = RRTPlanner(self.validator, self.planner_config, rng)

        # Cause of the most recent failed request
        self.last_error: Optional[PlanningError] = None

    def plan(self, start: PoseLike, goal: PoseLike, is_aerial: bool) -> PlanResult:
        """
        Plan a route for one vehicle.

        Args:
            start: Current pose of the vehicle
            goal: Target pose
            is_aerial: True for UAVs, False for ground vehicles

        Returns:
            PlanResult(True, path) on success, PlanResult(False, []) otherwise.
            The failure cause is kept in ``last_error``.
        """
        try:
            path = self._plan(as_pose(start), as_pose(goal), is_aerial)
        except PlanningError as e:
            self.last_error = e
            logger.debug(f"Planning failed ({type(e).__name__}): {e}")
            if self.metrics is not None:
                self.metrics.record_plan(False, reason=type(e).__name__)
            return PlanResult(False, [])

        self.last_error = None
        if self.metrics is not None:
            self.metrics.record_plan(True, path_length(path))
        return PlanResult(True, path)

    def _plan(self, start: Pose, goal: Pose, is_aerial: bool) -> List[Pose]:
        if not is_aerial:
            start = start.with_z(0.0)
            goal = goal.with_z(0.0)

        margin = self.config.boundary_margin
        for label, pose in (("Start", start), ("Goal", goal)):
            if not self.environment.contains(pose.position, margin):
                raise OutOfBounds(f"{label} {pose} outside the search area")

        if not is_aerial:
            self._check_ground_clearance(start, goal)
            return self.plan_segment(start, goal, is_aerial=False)

        if abs(goal.z) < self.config.ground_level_threshold:
            return self.plan_descent(start, goal)

        return self.plan_segment(start, goal, is_aerial=True)

    def plan_segment(self, start: PoseLike, goal: PoseLike, is_aerial: bool) -> List[Pose]:
        """
        Plan one RRT segment.

        Raises:
            PlanningError: Any planner failure
        """
        sample_z = None if is_aerial else 0.0
        path = self.rrt.plan(start, goal, sample_z=sample_z)
        logger.debug(f"Segment {as_pose(start)} -> {as_pose(goal)}: {len(path)} waypoints")
        return path

    def plan_descent(self, start: Pose, goal: Pose) -> List[Pose]:
        """
        Plan an aerial approach to a ground-level goal.

        Three segments are chained: start to cruise height above the goal,
        down to the approach height, then back to cruise height. The result
        is their plain concatenation.

        Raises:
            PlanningError: If any segment fails
        """
        above = goal.with_z(self.config.cruise_height)
        approach = goal.with_z(self.config.approach_detection_height)

        path = []
        for seg_start, seg_goal in ((start, above), (above, approach), (approach, above)):
            path.extend(self.plan_segment(seg_start, seg_goal, is_aerial=True))
        return path

    def _check_ground_clearance(self, start: Pose, goal: Pose):
        """Reject ground endpoints too close to a cylinder obstacle."""
        margin = self.config.ground_obstacle_margin
        for obstacle in self.environment.obstacles():
            center = np.array([obstacle.center[0], obstacle.center[1], 0.0])
            clearance = obstacle.radius + margin
            for label, pose in (("Start", start), ("Goal", goal)):
                if horizontal_distance(pose, center) < clearance:
                    raise InvalidEndpoint(
                        f"{label} {pose} within {clearance:.1f} m of obstacle at {obstacle.center.tolist()}"
                    )
