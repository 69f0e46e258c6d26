"""
SAR Fleet

Multi-vehicle search and rescue coordination:
- Voxel occupancy and RRT path planning
- Priority/nearest survivor assignment
- Detection with direct descent for aerial vehicles
- Aerial/ground collision avoidance
- Tick-driven mission controller
"""

from .assignment import AssignmentEngine, AssignmentReport, AssignmentTable
from .avoidance import CollisionAvoidance
from .config import MissionConfig, PlannerConfig
from .detection import DetectionEvent, DetectionMonitor
from .environment import Building, CylinderObstacle, SearchAreaEnvironment
from .errors import (
    AssignmentError,
    InvalidEndpoint,
    InvalidPathSegment,
    MissionInvariantError,
    NoReachableTarget,
    OutOfBounds,
    PlanningBudgetExhausted,
    PlanningError,
    SarFleetError,
    StatusTransitionError,
)
from .follower import PathFollower
from .geometry import Pose
from .metrics import MissionMetrics
from .mission import MissionController
from .occupancy import OccupancyVolume
from .path_planning import PathPlanner, PlanResult
from .rrt_planner import RRTPlanner
from .survivors import Priority, Survivor, SurvivorRegistry, SurvivorStatus
from .validator import StateValidator
from .vehicles import (
    KinematicPlatform,
    KinematicState,
    Platform,
    Vehicle,
    VehicleKind,
    build_fleet,
    create_aerial_vehicle,
    create_ground_vehicle,
)

__all__ = [
    "AssignmentEngine",
    "AssignmentReport",
    "AssignmentTable",
    "CollisionAvoidance",
    "MissionConfig",
    "PlannerConfig",
    "DetectionEvent",
    "DetectionMonitor",
    "Building",
    "CylinderObstacle",
    "SearchAreaEnvironment",
    "SarFleetError",
    "PlanningError",
    "InvalidEndpoint",
    "PlanningBudgetExhausted",
    "InvalidPathSegment",
    "OutOfBounds",
    "NoReachableTarget",
    "MissionInvariantError",
    "AssignmentError",
    "StatusTransitionError",
    "PathFollower",
    "Pose",
    "MissionMetrics",
    "MissionController",
    "OccupancyVolume",
    "PathPlanner",
    "PlanResult",
    "RRTPlanner",
    "Priority",
    "Survivor",
    "SurvivorRegistry",
    "SurvivorStatus",
    "StateValidator",
    "KinematicPlatform",
    "KinematicState",
    "Platform",
    "Vehicle",
    "VehicleKind",
    "build_fleet",
    "create_aerial_vehicle",
    "create_ground_vehicle",
]
