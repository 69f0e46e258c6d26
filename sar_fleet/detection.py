"""
Survivor Detection

PURPOSE:
    Watch every active assignment and decide when a vehicle has found its
    survivor.

RULES:
    Aerial: descend straight toward the survivor once within the descent
    radius at cruise height; detect when within the detection radius
    horizontally and within the height tolerance of survivor.z + offset.
    Ground: detect when within the detection radius horizontally.

    A detection marks the survivor DETECTED, frees the vehicle, reruns
    assignment once, and sends an aerial vehicle left without a target
    straight back up to cruise height.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .assignment import AssignmentEngine, AssignmentTable
from .config import MissionConfig
from .errors import MissionInvariantError
from .geometry import Pose, horizontal_distance
from .metrics import MissionMetrics
from .survivors import Survivor, SurvivorRegistry
from .utils import get_logger
from .vehicles import Vehicle

logger = get_logger(__name__)


@dataclass
class DetectionEvent:
    vehicle_id: str
    survivor_id: int
    time: float
    position: np.ndarray


class DetectionMonitor:
    """Per-tick detection pass over the assignment table."""

    def __init__(
        self,
        registry: SurvivorRegistry,
        table: AssignmentTable,
        engine: AssignmentEngine,
        config: Optional[MissionConfig] = None,
        metrics: Optional[MissionMetrics] = None
    ):
        self.registry = registry
        self.table = table
        self.engine = engine
        self.config = config or MissionConfig()
        self.metrics = metrics

    def check(self, vehicles: Sequence[Vehicle], sim_time: float = 0.0) -> List[DetectionEvent]:
        """
        Run one detection pass.

        Args:
            vehicles: Whole fleet (needed for the follow-up assignment)
            sim_time: Current mission time, stamped on events

        Returns:
            Detections made this pass
        """
        by_id: Dict[str, Vehicle] = {v.vehicle_id: v for v in vehicles}
        events = []

        for vehicle_id, survivor_id in self.table.items():
            if vehicle_id not in by_id:
                raise MissionInvariantError(f"Assignment for unknown vehicle {vehicle_id}")
            vehicle = by_id[vehicle_id]
            survivor = self.registry.get(survivor_id)

            if vehicle.is_aerial:
                detected = self._check_aerial(vehicle, survivor)
            else:
                detected = horizontal_distance(vehicle.position, survivor.position) < self.config.detection_radius

            if detected:
                events.append(self._on_detection(vehicle, survivor, vehicles, sim_time))

        return events

    def detection_height(self, survivor: Survivor) -> float:
        return survivor.z + self.config.detection_height_offset

    def _check_aerial(self, vehicle: Vehicle, survivor: Survivor) -> bool:
        cfg = self.config
        position = vehicle.position
        horizontal = horizontal_distance(position, survivor.position)
        target_z = self.detection_height(survivor)

        if horizontal < cfg.detection_radius and abs(position[2] - target_z) < cfg.detection_height_tolerance:
            return True

        if (horizontal < cfg.descent_start_radius and
                position[2] >= cfg.cruise_height - cfg.detection_height_tolerance and
                position[2] > target_z + cfg.detection_height_tolerance):
            self._command_descent(vehicle, survivor, target_z)

        return False

    def _command_descent(self, vehicle: Vehicle, survivor: Survivor, target_z: float):
        """Replace the path with a single waypoint above the survivor at detection height."""
        waypoint = Pose.at(survivor.position[0], survivor.position[1], target_z)
        if len(vehicle.path) == 1 and np.allclose(vehicle.path[0].position, waypoint.position):
            return

        vehicle.path = [waypoint]
        logger.info(f"{vehicle.vehicle_id} descending to {target_z:.1f} m over survivor {survivor.survivor_id}")
        if self.metrics is not None:
            self.metrics.record_descent()

    def _on_detection(
        self,
        vehicle: Vehicle,
        survivor: Survivor,
        vehicles: Sequence[Vehicle],
        sim_time: float
    ) -> DetectionEvent:
        position = vehicle.position
        self.registry.mark_detected(survivor.survivor_id)
        self.table.release(vehicle.vehicle_id)
        logger.info(f"{vehicle.vehicle_id} detected survivor {survivor.survivor_id} "
                    f"(priority {survivor.priority.name}) at t={sim_time:.2f}s")
        if self.metrics is not None:
            self.metrics.record_detection(sim_time)

        self.engine.assign(vehicles)

        if vehicle.vehicle_id not in self.table:
            if vehicle.is_aerial:
                # Climb straight back to cruise height
                vehicle.path = [Pose.at(position[0], position[1], self.config.cruise_height)]
            else:
                vehicle.path = []

        return DetectionEvent(vehicle.vehicle_id, survivor.survivor_id, sim_time, position)
