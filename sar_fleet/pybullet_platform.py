"""
PyBullet Platform

PURPOSE:
    Drive fleet vehicles as bodies inside a PyBullet physics client, and
    mirror the search area's buildings and obstacles into the same client.

FEATURES:
    - PyBulletPlatform: Platform backed by a PyBullet body (kinematic,
      positions are set directly each tick)
    - Quaternion conversion between PyBullet [x, y, z, w] and [w, x, y, z]
    - Static scene bodies for buildings (boxes) and obstacles (cylinders)

Requires the optional ``sim`` extra (pybullet).
"""

import numpy as np
import pybullet as p
from typing import List, Optional

from .environment import SearchAreaEnvironment
from .utils import get_logger
from .vehicles import KinematicState, Platform, VehicleKind

logger = get_logger(__name__)

AERIAL_COLOR = [1.0, 0.0, 0.0, 1.0]
GROUND_COLOR = [0.0, 0.0, 1.0, 1.0]
BUILDING_COLOR = [0.6, 0.6, 0.6, 1.0]
OBSTACLE_COLOR = [0.4, 0.3, 0.2, 1.0]


def to_pybullet_quaternion(q_wxyz: np.ndarray) -> List[float]:
    w, x, y, z = (float(v) for v in q_wxyz)
    return [x, y, z, w]


def from_pybullet_quaternion(q_xyzw) -> np.ndarray:
    x, y, z, w = q_xyzw
    return np.array([w, x, y, z], dtype=float)


class PyBulletPlatform(Platform):
    """
    Platform backed by a PyBullet body.

    The body is teleported on every move. Velocity, angular velocity and
    acceleration are kept on the platform since a kinematic body does not
    integrate them.
    """

    def __init__(self, body_id: int, client: int):
        """
        Args:
            body_id: PyBullet body unique id
            client: Physics client id
        """
        self.body_id = body_id
        self.client = client
        self._velocity = np.zeros(3)
        self._angular_velocity = np.zeros(3)
        self._acceleration = np.zeros(3)

    @classmethod
    def spawn(
        cls,
        client: int,
        state: KinematicState,
        kind: VehicleKind = VehicleKind.AERIAL,
        color: Optional[List[float]] = None
    ) -> "PyBulletPlatform":
        """
        Create a vehicle body and wrap it.

        Aerial vehicles are spheres, ground vehicles are boxes.

        Args:
            client: Physics client id
            state: Initial state
            kind: Vehicle kind (selects the shape)
            color: [r, g, b, a] color

        Returns:
            Platform positioned at ``state``
        """
        if kind is VehicleKind.AERIAL:
            color = color or AERIAL_COLOR
            collision_shape = p.createCollisionShape(p.GEOM_SPHERE, radius=1.0, physicsClientId=client)
            visual_shape = p.createVisualShape(p.GEOM_SPHERE, radius=1.0, rgbaColor=color,
                                               physicsClientId=client)
        else:
            color = color or GROUND_COLOR
            half_extents = [2.0, 1.5, 1.0]
            collision_shape = p.createCollisionShape(p.GEOM_BOX, halfExtents=half_extents,
                                                     physicsClientId=client)
            visual_shape = p.createVisualShape(p.GEOM_BOX, halfExtents=half_extents, rgbaColor=color,
                                               physicsClientId=client)

        body_id = p.createMultiBody(
            baseMass=0.0,
            baseCollisionShapeIndex=collision_shape,
            baseVisualShapeIndex=visual_shape,
            basePosition=state.position.tolist(),
            baseOrientation=to_pybullet_quaternion(state.orientation),
            physicsClientId=client
        )

        platform = cls(body_id, client)
        platform.move(state)
        return platform

    def read(self) -> KinematicState:
        position, orientation = p.getBasePositionAndOrientation(self.body_id, physicsClientId=self.client)
        return KinematicState(
            position=np.array(position, dtype=float),
            velocity=self._velocity,
            angular_velocity=self._angular_velocity,
            orientation=from_pybullet_quaternion(orientation),
            acceleration=self._acceleration,
        )

    def move(self, state: KinematicState) -> None:
        p.resetBasePositionAndOrientation(
            self.body_id,
            state.position.tolist(),
            to_pybullet_quaternion(state.orientation),
            physicsClientId=self.client
        )
        self._velocity = state.velocity.copy()
        self._angular_velocity = state.angular_velocity.copy()
        self._acceleration = state.acceleration.copy()


def platform_factory(client: int):
    """Platform factory for vehicles.create_*_vehicle bound to one client."""
    def factory(state: KinematicState, kind: VehicleKind) -> PyBulletPlatform:
        return PyBulletPlatform.spawn(client, state, kind)
    return factory


def load_environment(environment: SearchAreaEnvironment, client: int) -> List[int]:
    """
    Create static bodies for every building and obstacle.

    Args:
        environment: Search area to mirror
        client: Physics client id

    Returns:
        PyBullet body ids
    """
    body_ids = []

    for building in environment.buildings():
        half_extents = (building.dimensions / 2.0).tolist()
        center = (building.position + building.dimensions / 2.0).tolist()
        collision_shape = p.createCollisionShape(p.GEOM_BOX, halfExtents=half_extents, physicsClientId=client)
        visual_shape = p.createVisualShape(p.GEOM_BOX, halfExtents=half_extents, rgbaColor=BUILDING_COLOR,
                                           physicsClientId=client)
        body_ids.append(p.createMultiBody(
            baseMass=0.0,
            baseCollisionShapeIndex=collision_shape,
            baseVisualShapeIndex=visual_shape,
            basePosition=center,
            physicsClientId=client
        ))

    for obstacle in environment.obstacles():
        center = [float(obstacle.center[0]), float(obstacle.center[1]), obstacle.height / 2.0]
        collision_shape = p.createCollisionShape(p.GEOM_CYLINDER, radius=obstacle.radius,
                                                 height=obstacle.height, physicsClientId=client)
        visual_shape = p.createVisualShape(p.GEOM_CYLINDER, radius=obstacle.radius, length=obstacle.height,
                                           rgbaColor=OBSTACLE_COLOR, physicsClientId=client)
        body_ids.append(p.createMultiBody(
            baseMass=0.0,
            baseCollisionShapeIndex=collision_shape,
            baseVisualShapeIndex=visual_shape,
            basePosition=center,
            physicsClientId=client
        ))

    logger.info(f"Loaded {len(body_ids)} scene bodies into PyBullet client {client}")
    return body_ids
