"""
Vehicles and Platforms

PURPOSE:
    Model the fleet: aerial (UAV) and ground vehicles, each driving a
    Platform that holds its kinematic state.

FEATURES:
    - Platform interface: read() -> KinematicState, move(state)
    - KinematicPlatform: in-memory platform for tests and headless runs
    - Ground invariant enforced on every write (z == 0, vz == 0)
    - Factory functions with bounds validation and the reference fleet layout
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .config import MissionConfig
from .environment import SearchAreaEnvironment
from .errors import OutOfBounds
from .geometry import IDENTITY_QUATERNION, Pose
from .utils import get_logger

logger = get_logger(__name__)


class VehicleKind(Enum):
    AERIAL = "aerial"
    GROUND = "ground"


def _zeros() -> np.ndarray:
    return np.zeros(3)


def _identity() -> np.ndarray:
    return IDENTITY_QUATERNION.copy()


@dataclass
class KinematicState:
    """Full platform state as read from and written to a Platform."""

    position: np.ndarray = field(default_factory=_zeros)
    velocity: np.ndarray = field(default_factory=_zeros)
    angular_velocity: np.ndarray = field(default_factory=_zeros)
    orientation: np.ndarray = field(default_factory=_identity)   # [w, x, y, z]
    acceleration: np.ndarray = field(default_factory=_zeros)

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3).copy()
        self.velocity = np.asarray(self.velocity, dtype=float).reshape(3).copy()
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=float).reshape(3).copy()
        self.orientation = np.asarray(self.orientation, dtype=float).reshape(4).copy()
        self.acceleration = np.asarray(self.acceleration, dtype=float).reshape(3).copy()

    def copy(self) -> "KinematicState":
        return replace(self)

    @property
    def pose(self) -> Pose:
        return Pose(self.position, self.orientation)


class Platform:
    """Interface to whatever moves a vehicle (simulator body, hardware link)."""

    def read(self) -> KinematicState:
        raise NotImplementedError

    def move(self, state: KinematicState) -> None:
        raise NotImplementedError


class KinematicPlatform(Platform):
    """Platform that simply stores the last state written to it."""

    def __init__(self, state: Optional[KinematicState] = None):
        self._state = state.copy() if state is not None else KinematicState()

    def read(self) -> KinematicState:
        return self._state.copy()

    def move(self, state: KinematicState) -> None:
        self._state = state.copy()


@dataclass(eq=False)
class Vehicle:
    """A fleet member: identity, kind, platform and its active path."""

    vehicle_id: str
    kind: VehicleKind
    platform: Platform
    cruise_speed: float
    path: List[Pose] = field(default_factory=list)

    @property
    def is_aerial(self) -> bool:
        return self.kind is VehicleKind.AERIAL

    def read(self) -> KinematicState:
        return self.platform.read()

    @property
    def position(self) -> np.ndarray:
        return self.platform.read().position

    @property
    def velocity(self) -> np.ndarray:
        return self.platform.read().velocity

    @property
    def pose(self) -> Pose:
        return self.platform.read().pose

    def set_state(self, state: KinematicState):
        """Write a full state, applying the ground invariant."""
        state = state.copy()
        if not self.is_aerial:
            state.position[2] = 0.0
            state.velocity[2] = 0.0
        self.platform.move(state)

    def move(self, position: np.ndarray, velocity: np.ndarray):
        """
        Move to a new position with the given velocity.

        Orientation and acceleration are held; angular velocity is zeroed.

        Args:
            position: New [x, y, z]
            velocity: Commanded [vx, vy, vz]
        """
        state = self.platform.read()
        state.position = np.asarray(position, dtype=float).reshape(3).copy()
        state.velocity = np.asarray(velocity, dtype=float).reshape(3).copy()
        state.angular_velocity = np.zeros(3)
        self.set_state(state)

    def __repr__(self):
        x, y, z = self.position
        return f"Vehicle({self.vehicle_id}, {self.kind.value}, [{x:.1f}, {y:.1f}, {z:.1f}])"


PlatformFactory = Callable[[KinematicState, VehicleKind], Platform]


def kinematic_platform(state: KinematicState, kind: VehicleKind) -> Platform:
    """Default platform factory: in-memory platform for either kind."""
    return KinematicPlatform(state)


def create_aerial_vehicle(
    vehicle_id: str,
    position: np.ndarray,
    environment: SearchAreaEnvironment,
    config: Optional[MissionConfig] = None,
    platform_factory: PlatformFactory = kinematic_platform
) -> Vehicle:
    """
    Create an aerial vehicle.

    Args:
        vehicle_id: Identifier, e.g. "UAV1"
        position: Initial [x, y, z]
        environment: Search area (for bounds validation)
        config: Speeds and height limits
        platform_factory: Builds the platform from (initial state, kind)

    Raises:
        OutOfBounds: Position outside the footprint or the flight band
    """
    config = config or MissionConfig()
    position = np.asarray(position, dtype=float).reshape(3)
    length, width, _ = environment.bounds()

    if not (0.0 <= position[0] <= length and 0.0 <= position[1] <= width and
            config.min_height <= position[2] <= config.max_height):
        raise OutOfBounds(f"Aerial vehicle {vehicle_id} initial position {position.tolist()} out of bounds")

    state = KinematicState(position=position)
    platform = platform_factory(state, VehicleKind.AERIAL)
    vehicle = Vehicle(vehicle_id, VehicleKind.AERIAL, platform, config.aerial_speed)
    logger.info(f"Created aerial vehicle {vehicle_id} at [{position[0]:.1f}, {position[1]:.1f}, {position[2]:.1f}]")
    return vehicle


def create_ground_vehicle(
    vehicle_id: str,
    position: np.ndarray,
    environment: SearchAreaEnvironment,
    config: Optional[MissionConfig] = None,
    platform_factory: PlatformFactory = kinematic_platform
) -> Vehicle:
    """
    Create a ground vehicle. The z coordinate is forced to 0.

    Raises:
        OutOfBounds: Position outside the footprint
    """
    config = config or MissionConfig()
    position = np.asarray(position, dtype=float).reshape(3).copy()
    position[2] = 0.0
    length, width, _ = environment.bounds()

    if not (0.0 <= position[0] <= length and 0.0 <= position[1] <= width):
        raise OutOfBounds(f"Ground vehicle {vehicle_id} initial position {position.tolist()} out of bounds")

    state = KinematicState(position=position)
    platform = platform_factory(state, VehicleKind.GROUND)
    vehicle = Vehicle(vehicle_id, VehicleKind.GROUND, platform, config.ground_speed)
    logger.info(f"Created ground vehicle {vehicle_id} at [{position[0]:.1f}, {position[1]:.1f}, 0.0]")
    return vehicle


def build_fleet(
    num_aerial: int,
    num_ground: int,
    environment: SearchAreaEnvironment,
    config: Optional[MissionConfig] = None,
    platform_factory: PlatformFactory = kinematic_platform
) -> List[Vehicle]:
    """
    Create the reference fleet layout.

    Aerial vehicles sit on a square grid (spacing ``aerial_spacing``) at
    cruise height. Ground vehicles are spread evenly along the y = margin
    edge.

    Returns:
        Aerial vehicles first, then ground vehicles
    """
    config = config or MissionConfig()
    fleet = []

    spacing = config.aerial_spacing
    grid_size = int(np.ceil(np.sqrt(num_aerial))) if num_aerial > 0 else 1
    for i in range(num_aerial):
        row, col = divmod(i, grid_size)
        position = [col * spacing + spacing / 2, row * spacing + spacing / 2, config.cruise_height]
        fleet.append(create_aerial_vehicle(f"UAV{i + 1}", position, environment, config, platform_factory))

    margin = config.ground_edge_margin
    length = environment.bounds()[0]
    ground_spacing = (length - 2 * margin) / (num_ground + 1)
    for i in range(1, num_ground + 1):
        position = [margin + i * ground_spacing, margin, 0.0]
        fleet.append(create_ground_vehicle(f"Ground{i}", position, environment, config, platform_factory))

    return fleet
