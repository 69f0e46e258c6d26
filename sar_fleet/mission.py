"""
Mission Controller

PURPOSE:
    Drive the search mission tick by tick.

START:
    Every vehicle without a path gets a random exploration route, then the
    first assignment pass runs. An assignment replaces the exploration route.

TICK ORDER:
    1. Collision avoidance over aerial/ground pairs
    2. Assignment pass, when reassignment_interval has elapsed since the last
    3. Detection pass over active assignments
    4. Path following, one task per vehicle

A tick that raises is rolled back: vehicles, paths, survivors and the
assignment table return to the state after the last successful tick and
start() reports failure.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from .assignment import AssignmentEngine, AssignmentTable
from .avoidance import CollisionAvoidance
from .config import MissionConfig, PlannerConfig
from .detection import DetectionMonitor
from .environment import SearchAreaEnvironment
from .follower import PathFollower
from .geometry import Pose
from .log_utils import create_mission_progress_bar, format_counts_for_postfix
from .metrics import MissionMetrics
from .path_planning import PathPlanner
from .survivors import Survivor, SurvivorRegistry
from .utils import get_logger
from .vehicles import KinematicState, Vehicle

logger = get_logger(__name__)


@dataclass
class MissionCheckpoint:
    """Mutable mission state captured before a tick."""

    assignments: Dict[str, int]
    survivors: dict
    paths: Dict[str, List[Pose]]
    states: Dict[str, KinematicState]
    sim_time: float
    tick_count: int
    last_assignment_time: float


class MissionController:
    """Owns the fleet, the survivors and the assignment table for one mission."""

    def __init__(
        self,
        environment: SearchAreaEnvironment,
        vehicles: Sequence[Vehicle],
        registry: SurvivorRegistry,
        config: Optional[MissionConfig] = None,
        planner_config: Optional[PlannerConfig] = None,
        rng: Optional[np.random.Generator] = None,
        metrics: Optional[MissionMetrics] = None
    ):
        """
        Initialize mission controller.

        Args:
            environment: Search area
            vehicles: Fleet (ids must be unique)
            registry: Survivors to find
            config: Mission constants
            planner_config: RRT and validator settings
            rng: Random source for exploration goals and planning
            metrics: Metrics sink, a fresh one if omitted
        """
        ids = [v.vehicle_id for v in vehicles]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate vehicle ids in fleet: {ids}")

        self.environment = environment
        self.vehicles = list(vehicles)
        self.registry = registry
        self.config = config or MissionConfig()
        self.metrics = metrics or MissionMetrics()
        self.rng = rng if rng is not None else np.random.default_rng()

        self.planner = PathPlanner(environment, planner_config, self.config, self.rng, self.metrics)
        self.table = AssignmentTable()
        self.engine = AssignmentEngine(self.planner, registry, self.table, self.config, self.metrics)
        self.detection = DetectionMonitor(registry, self.table, self.engine, self.config, self.metrics)
        self.avoidance = CollisionAvoidance(self.config, self.metrics)
        self.follower = PathFollower(self.planner, self.config, self.metrics)

        self._sim_time = 0.0
        self._tick_count = 0
        self.last_assignment_time = 0.0
        self._explored = False

    # ========== Read-only views ==========

    @property
    def survivors(self) -> List[Survivor]:
        return list(self.registry)

    @property
    def assignments(self) -> Dict[str, int]:
        return self.table.snapshot()

    @property
    def sim_time(self) -> float:
        return self._sim_time

    @property
    def tick_count(self) -> int:
        return self._tick_count

    # ========== Loop ==========

    def tick(self):
        """Advance the mission by one simulation step."""
        self.avoidance.check(self.vehicles)

        if self._sim_time - self.last_assignment_time >= self.config.reassignment_interval:
            self.run_assignment()

        self.detection.check(self.vehicles, self._sim_time)

        for task in self._follow_tasks():
            task()

        self._tick_count += 1
        self._sim_time = self._tick_count * self.config.simulation_step
        self.metrics.record_tick()

    def run_assignment(self):
        report = self.engine.assign(self.vehicles)
        self.last_assignment_time = self._sim_time
        return report

    def _follow_tasks(self) -> List[Callable[[], None]]:
        """One follower task per vehicle, in fleet order."""
        return [partial(self.follower.update, vehicle) for vehicle in self.vehicles]

    def start(
        self,
        should_stop: Optional[Callable[[], bool]] = None,
        max_ticks: Optional[int] = None,
        stop_when_complete: bool = False,
        show_progress: bool = False
    ) -> bool:
        """
        Run the mission until a stop condition is met.

        Args:
            should_stop: Polled before every tick; True ends the mission
            max_ticks: Tick budget for this call
            stop_when_complete: End once every survivor is detected
            show_progress: Show a tqdm bar (needs max_ticks)

        Returns:
            True on clean termination, False if a tick failed (state is
            restored to the last successful tick)
        """
        if should_stop is None and max_ticks is None and not stop_when_complete:
            raise ValueError("start() needs should_stop, max_ticks or stop_when_complete")

        logger.info(f"Mission start: {len(self.vehicles)} vehicles, {len(self.registry)} survivors")

        checkpoint = self.checkpoint()
        try:
            if not self._explored:
                self.initial_exploration()
            self.run_assignment()
        except Exception:
            logger.exception("Initial exploration or assignment failed, restoring mission state")
            self.restore(checkpoint)
            return False
        self._explored = True

        pbar = None
        if show_progress and max_ticks is not None:
            pbar = create_mission_progress_bar(max_ticks)

        ticks = 0
        try:
            while True:
                if should_stop is not None and should_stop():
                    logger.info("Stop requested")
                    break
                if max_ticks is not None and ticks >= max_ticks:
                    break
                if stop_when_complete and self.registry.all_detected():
                    logger.info(f"All survivors detected at t={self._sim_time:.2f}s")
                    break

                checkpoint = self.checkpoint()
                try:
                    self.tick()
                except Exception:
                    logger.exception(f"Tick {self._tick_count} failed, restoring last checkpoint")
                    self.restore(checkpoint)
                    return False
                ticks += 1

                if pbar is not None:
                    pbar.update(1)
                    pbar.set_postfix(format_counts_for_postfix(self.registry.status_counts()))
        finally:
            if pbar is not None:
                pbar.close()

        logger.info(f"Mission stopped after {self._tick_count} ticks (t={self._sim_time:.2f}s)")
        self.registry.log_status()
        self.metrics.log()
        return True

    # ========== Exploration ==========

    def initial_exploration(self) -> Dict[str, int]:
        """
        Give every vehicle without a path a random exploration route.

        Aerial vehicles aim for a random point at cruise height at least
        exploration_margin inside the edges; if that plan fails they try
        their own x/y shifted by exploration_fallback_offset. Ground vehicles
        try up to exploration_attempts random goals on the ground.

        Returns:
            Vehicle id -> waypoint count for every vehicle that got a route
        """
        planned = {}
        for vehicle in self.vehicles:
            if vehicle.path:
                continue

            for goal in self._exploration_goals(vehicle):
                result = self.planner.plan(vehicle.pose, goal, vehicle.is_aerial)
                if result.success:
                    vehicle.path = result.path
                    planned[vehicle.vehicle_id] = len(result.path)
                    logger.info(f"{vehicle.vehicle_id} exploring toward {goal}")
                    break
            else:
                logger.warning(f"{vehicle.vehicle_id}: no initial exploration path found")

        return planned

    def _exploration_goals(self, vehicle: Vehicle) -> Iterator[Pose]:
        length, width, _ = self.environment.bounds()
        margin = self.config.exploration_margin
        lower = [margin, margin]
        upper = [length - margin, width - margin]

        if vehicle.is_aerial:
            cruise = self.config.cruise_height
            x, y = self.rng.uniform(lower, upper)
            yield Pose.at(x, y, cruise)

            offset = self.config.exploration_fallback_offset
            position = vehicle.position
            yield Pose.at(position[0] + offset, position[1] + offset, cruise)
            return

        for _ in range(self.config.exploration_attempts):
            x, y = self.rng.uniform(lower, upper)
            yield Pose.at(x, y, 0.0)

    # ========== Checkpoints ==========

    def checkpoint(self) -> MissionCheckpoint:
        return MissionCheckpoint(
            assignments=self.table.snapshot(),
            survivors=self.registry.snapshot(),
            paths={v.vehicle_id: list(v.path) for v in self.vehicles},
            states={v.vehicle_id: v.read() for v in self.vehicles},
            sim_time=self._sim_time,
            tick_count=self._tick_count,
            last_assignment_time=self.last_assignment_time,
        )

    def restore(self, checkpoint: MissionCheckpoint):
        self.table.restore(checkpoint.assignments)
        self.registry.restore(checkpoint.survivors)
        for vehicle in self.vehicles:
            vehicle.path = list(checkpoint.paths[vehicle.vehicle_id])
            vehicle.platform.move(checkpoint.states[vehicle.vehicle_id])
        self._sim_time = checkpoint.sim_time
        self._tick_count = checkpoint.tick_count
        self.last_assignment_time = checkpoint.last_assignment_time
