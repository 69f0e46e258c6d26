"""
Survivor Registry

PURPOSE:
    Own the survivors of a mission: their placement, priority and detection
    status.

FEATURES:
    - Weighted priority draw (20% high, 50% medium, 30% low)
    - Random ground placement clear of buildings, obstacles and each other
    - Status machine: UNDETECTED -> IN_PROGRESS -> DETECTED
    - Status snapshot/restore for mission checkpoints
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .environment import SearchAreaEnvironment
from .errors import StatusTransitionError
from .utils import get_logger

logger = get_logger(__name__)

SURVIVOR_RADIUS = 0.5            # meters
MIN_SPACING = 5.0                # horizontal distance between survivors
MIN_BUILDING_DISTANCE = 3.0      # clearance from building footprints and obstacles
MAX_PLACEMENT_ATTEMPTS = 100


class Priority(IntEnum):
    HIGH = 1
    MEDIUM = 2
    LOW = 3


class SurvivorStatus(Enum):
    UNDETECTED = "UNDETECTED"
    IN_PROGRESS = "IN_PROGRESS"
    DETECTED = "DETECTED"
    RESCUED = "RESCUED"   # reserved, nothing transitions into it


# Allowed status changes
TRANSITIONS = {
    SurvivorStatus.UNDETECTED: {SurvivorStatus.IN_PROGRESS},
    SurvivorStatus.IN_PROGRESS: {SurvivorStatus.DETECTED},
    SurvivorStatus.DETECTED: set(),
    SurvivorStatus.RESCUED: set(),
}


@dataclass(eq=False)
class Survivor:
    survivor_id: int
    position: np.ndarray
    priority: Priority
    status: SurvivorStatus = SurvivorStatus.UNDETECTED
    assigned_vehicle: Optional[str] = None

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3).copy()
        self.priority = Priority(self.priority)

    @property
    def z(self) -> float:
        return float(self.position[2])


def draw_priority(rng: np.random.Generator) -> Priority:
    """Draw a weighted random priority: 20% high, 50% medium, 30% low."""
    r = rng.random()
    if r < 0.2:
        return Priority.HIGH
    elif r < 0.7:
        return Priority.MEDIUM
    return Priority.LOW


class SurvivorRegistry:
    """Survivors in creation order, addressed by 1-based id."""

    def __init__(self):
        self._survivors: Dict[int, Survivor] = {}

    def add(self, position: np.ndarray, priority: Priority) -> Survivor:
        """Register a survivor; ids follow creation order starting at 1."""
        survivor = Survivor(len(self._survivors) + 1, position, priority)
        self._survivors[survivor.survivor_id] = survivor
        return survivor

    def generate(
        self,
        count: int,
        environment: SearchAreaEnvironment,
        rng: np.random.Generator,
        edge_margin: float = SURVIVOR_RADIUS + 1
    ) -> List[Survivor]:
        """
        Place survivors at random ground positions.

        Each survivor gets up to MAX_PLACEMENT_ATTEMPTS candidate positions.
        A survivor that cannot be placed is skipped and the shortfall logged.

        Args:
            count: Number of survivors requested
            environment: Search area with buildings and obstacles
            rng: Random source for positions and priorities
            edge_margin: Clearance from the search area edges

        Returns:
            Survivors created by this call
        """
        if count < 1:
            raise ValueError(f"Number of survivors must be positive, got {count}")

        created = []
        for _ in range(count):
            position = self._find_position(environment, rng, edge_margin)
            if position is None:
                continue
            survivor = self.add(position, draw_priority(rng))
            created.append(survivor)
            logger.info(f"Generated survivor {survivor.survivor_id}: "
                        f"position=[{position[0]:.1f}, {position[1]:.1f}, 0.0], "
                        f"priority={survivor.priority.name}")

        if len(created) < count:
            logger.warning(f"Only placed {len(created)} out of {count} requested survivors")
        return created

    def _find_position(
        self,
        environment: SearchAreaEnvironment,
        rng: np.random.Generator,
        edge_margin: float
    ) -> Optional[np.ndarray]:
        length, width, _ = environment.bounds()
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            position = np.array([rng.random() * length, rng.random() * width, 0.0])
            if self._is_position_valid(position, environment, edge_margin):
                return position
        return None

    def _is_position_valid(
        self,
        position: np.ndarray,
        environment: SearchAreaEnvironment,
        edge_margin: float
    ) -> bool:
        if not environment.contains(position, edge_margin):
            return False

        for building in environment.buildings():
            if building.footprint_contains(position, MIN_BUILDING_DISTANCE):
                return False

        for obstacle in environment.obstacles():
            if np.linalg.norm(position[:2] - obstacle.center) < obstacle.radius + MIN_BUILDING_DISTANCE:
                return False

        for other in self._survivors.values():
            if np.linalg.norm(other.position[:2] - position[:2]) < MIN_SPACING:
                return False

        return True

    # ========== Queries ==========

    def get(self, survivor_id: int) -> Survivor:
        return self._survivors[survivor_id]

    def undetected(self) -> List[Survivor]:
        """UNDETECTED survivors in creation order."""
        return [s for s in self._survivors.values() if s.status is SurvivorStatus.UNDETECTED]

    def high_priority(self) -> List[Survivor]:
        """UNDETECTED high-priority survivors in creation order."""
        return [s for s in self.undetected() if s.priority is Priority.HIGH]

    def all_detected(self) -> bool:
        return all(s.status is SurvivorStatus.DETECTED for s in self._survivors.values())

    def __iter__(self) -> Iterator[Survivor]:
        return iter(list(self._survivors.values()))

    def __len__(self):
        return len(self._survivors)

    def __contains__(self, survivor_id: int):
        return survivor_id in self._survivors

    # ========== Status machine ==========

    def _transition(self, survivor: Survivor, new_status: SurvivorStatus):
        if new_status not in TRANSITIONS[survivor.status]:
            raise StatusTransitionError(
                f"Survivor {survivor.survivor_id}: {survivor.status.value} -> {new_status.value} not allowed"
            )
        survivor.status = new_status

    def mark_in_progress(self, survivor_id: int, vehicle_id: str):
        """UNDETECTED -> IN_PROGRESS, recording the assigned vehicle."""
        survivor = self.get(survivor_id)
        self._transition(survivor, SurvivorStatus.IN_PROGRESS)
        survivor.assigned_vehicle = vehicle_id

    def mark_detected(self, survivor_id: int):
        """IN_PROGRESS -> DETECTED. The detecting vehicle stays recorded."""
        self._transition(self.get(survivor_id), SurvivorStatus.DETECTED)

    # ========== Reporting ==========

    def status_counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in SurvivorStatus}
        for survivor in self._survivors.values():
            counts[survivor.status.value] += 1
        return counts

    def log_status(self):
        counts = self.status_counts()
        logger.info("Survivor status: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
        for survivor in self._survivors.values():
            logger.debug(f"  Survivor {survivor.survivor_id} ({survivor.priority.name}): "
                         f"{survivor.status.value}, vehicle={survivor.assigned_vehicle}")

    # ========== Checkpoints ==========

    def snapshot(self) -> Dict[int, Tuple[SurvivorStatus, Optional[str]]]:
        return {sid: (s.status, s.assigned_vehicle) for sid, s in self._survivors.items()}

    def restore(self, snapshot: Dict[int, Tuple[SurvivorStatus, Optional[str]]]):
        """Reset status and assigned vehicle to a snapshot (bypasses the status machine)."""
        for sid, (status, vehicle_id) in snapshot.items():
            survivor = self._survivors[sid]
            survivor.status = status
            survivor.assigned_vehicle = vehicle_id
