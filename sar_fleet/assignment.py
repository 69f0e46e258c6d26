"""
Survivor Assignment

PURPOSE:
    Match idle vehicles to undetected survivors and keep the
    vehicle -> survivor table consistent.

POLICY:
    Vehicles without an entry are visited aerial first, then ground.
    1. High-priority survivors in creation order; first plannable one wins
    2. Otherwise every remaining undetected survivor, nearest first
       (3D distance for aerial, horizontal for ground)
    A successful plan commits: survivor IN_PROGRESS, table entry, vehicle path.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from .config import MissionConfig
from .errors import AssignmentError, NoReachableTarget
from .geometry import Pose
from .metrics import MissionMetrics
from .path_planning import PathPlanner
from .survivors import Survivor, SurvivorRegistry
from .utils import get_logger
from .vehicles import Vehicle

logger = get_logger(__name__)


class AssignmentTable:
    """
    One-to-one mapping of vehicle id -> survivor id.

    Adding a vehicle that already has an entry, or a survivor already
    claimed by another vehicle, raises AssignmentError.
    """

    def __init__(self):
        self._by_vehicle: Dict[str, int] = {}
        self._by_survivor: Dict[int, str] = {}

    def assign(self, vehicle_id: str, survivor_id: int):
        if vehicle_id in self._by_vehicle:
            raise AssignmentError(
                f"Vehicle {vehicle_id} already assigned to survivor {self._by_vehicle[vehicle_id]}"
            )
        if survivor_id in self._by_survivor:
            raise AssignmentError(
                f"Survivor {survivor_id} already assigned to vehicle {self._by_survivor[survivor_id]}"
            )
        self._by_vehicle[vehicle_id] = survivor_id
        self._by_survivor[survivor_id] = vehicle_id

    def release(self, vehicle_id: str) -> int:
        """Remove a vehicle's entry and return the survivor it held."""
        if vehicle_id not in self._by_vehicle:
            raise AssignmentError(f"Vehicle {vehicle_id} has no assignment to release")
        survivor_id = self._by_vehicle.pop(vehicle_id)
        del self._by_survivor[survivor_id]
        return survivor_id

    def survivor_for(self, vehicle_id: str) -> Optional[int]:
        return self._by_vehicle.get(vehicle_id)

    def vehicle_for(self, survivor_id: int) -> Optional[str]:
        return self._by_survivor.get(survivor_id)

    def items(self) -> List[Tuple[str, int]]:
        return list(self._by_vehicle.items())

    def snapshot(self) -> Dict[str, int]:
        return dict(self._by_vehicle)

    def restore(self, snapshot: Dict[str, int]):
        """Replace the contents with a snapshot."""
        self._by_vehicle = {}
        self._by_survivor = {}
        for vehicle_id, survivor_id in snapshot.items():
            self.assign(vehicle_id, survivor_id)

    def __contains__(self, vehicle_id: str):
        return vehicle_id in self._by_vehicle

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._by_vehicle))

    def __len__(self):
        return len(self._by_vehicle)

    def __eq__(self, other: Union["AssignmentTable", Dict[str, int]]):
        if isinstance(other, AssignmentTable):
            return self._by_vehicle == other._by_vehicle
        if isinstance(other, dict):
            return self._by_vehicle == other
        return NotImplemented

    def __repr__(self):
        return f"AssignmentTable({self._by_vehicle})"


@dataclass
class AssignmentReport:
    """Outcome of one assignment pass."""

    assigned: Dict[str, int] = field(default_factory=dict)
    unreachable: List[NoReachableTarget] = field(default_factory=list)


class AssignmentEngine:
    """Priority-then-nearest assignment of survivors to idle vehicles."""

    def __init__(
        self,
        planner: PathPlanner,
        registry: SurvivorRegistry,
        table: AssignmentTable,
        config: Optional[MissionConfig] = None,
        metrics: Optional[MissionMetrics] = None
    ):
        self.planner = planner
        self.registry = registry
        self.table = table
        self.config = config or MissionConfig()
        self.metrics = metrics

    def assign(self, vehicles: Sequence[Vehicle]) -> AssignmentReport:
        """
        Run one assignment pass.

        Args:
            vehicles: Fleet in creation order

        Returns:
            AssignmentReport with new (vehicle, survivor) pairs and a
            NoReachableTarget for every idle vehicle left without one
        """
        report = AssignmentReport()
        ordered = [v for v in vehicles if v.is_aerial] + [v for v in vehicles if not v.is_aerial]

        for vehicle in ordered:
            if vehicle.vehicle_id in self.table:
                continue

            survivor_id, tried = self._assign_vehicle(vehicle)
            if survivor_id is not None:
                report.assigned[vehicle.vehicle_id] = survivor_id
            else:
                error = NoReachableTarget(vehicle.vehicle_id, tried)
                report.unreachable.append(error)
                if tried > 0:
                    logger.warning(str(error))

        if self.metrics is not None:
            self.metrics.record_assignment_pass(len(report.assigned), len(report.unreachable))
        return report

    def _assign_vehicle(self, vehicle: Vehicle) -> Tuple[Optional[int], int]:
        """Try candidates for one vehicle; return (survivor id or None, candidates tried)."""
        start = vehicle.pose
        tried: Set[int] = set()

        # Step 1: high priority, creation order
        for survivor in self.registry.high_priority():
            tried.add(survivor.survivor_id)
            if self._try_commit(vehicle, start, survivor):
                return survivor.survivor_id, len(tried)

        # Step 2: nearest remaining
        candidates = [s for s in self.registry.undetected() if s.survivor_id not in tried]
        candidates.sort(key=lambda s: (self._distance(vehicle, start, s), s.survivor_id))
        for survivor in candidates:
            tried.add(survivor.survivor_id)
            if self._try_commit(vehicle, start, survivor):
                return survivor.survivor_id, len(tried)

        return None, len(tried)

    def _try_commit(self, vehicle: Vehicle, start: Pose, survivor: Survivor) -> bool:
        goal = self.target_pose(vehicle, survivor)
        result = self.planner.plan(start, goal, vehicle.is_aerial)
        if not result.success:
            logger.debug(f"{vehicle.vehicle_id}: survivor {survivor.survivor_id} not plannable "
                         f"({type(self.planner.last_error).__name__})")
            return False

        self.table.assign(vehicle.vehicle_id, survivor.survivor_id)
        self.registry.mark_in_progress(survivor.survivor_id, vehicle.vehicle_id)
        vehicle.path = result.path
        logger.info(f"Assigned {vehicle.vehicle_id} to survivor {survivor.survivor_id} "
                    f"(priority {survivor.priority.name}, {len(result.path)} waypoints)")
        return True

    def target_pose(self, vehicle: Vehicle, survivor: Survivor) -> Pose:
        """Survivor position at cruise height (aerial) or on the ground."""
        z = self.config.cruise_height if vehicle.is_aerial else 0.0
        return Pose.at(survivor.position[0], survivor.position[1], z)

    @staticmethod
    def _distance(vehicle: Vehicle, start: Pose, survivor: Survivor) -> float:
        delta = survivor.position - start.position
        if vehicle.is_aerial:
            return float(np.linalg.norm(delta))
        return float(np.linalg.norm(delta[:2]))
