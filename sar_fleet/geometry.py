"""
Pose type and small geometry helpers.

Planner states are 7-vectors [x, y, z, qw, qx, qy, qz]. Orientation is
carried through the planner but never searched, so every pose built here
uses the identity quaternion unless told otherwise.
"""

from dataclasses import dataclass, field
from typing import Sequence, Union

import numpy as np

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0])


def _identity() -> np.ndarray:
    return IDENTITY_QUATERNION.copy()


@dataclass
class Pose:
    """Position (meters) plus unit quaternion [w, x, y, z]."""

    position: np.ndarray
    orientation: np.ndarray = field(default_factory=_identity)

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3).copy()
        self.orientation = np.asarray(self.orientation, dtype=float).reshape(4).copy()

    @classmethod
    def at(cls, x: float, y: float, z: float) -> "Pose":
        return cls(np.array([x, y, z], dtype=float))

    @classmethod
    def from_state(cls, state: Sequence[float]) -> "Pose":
        """Build from a 7-element state vector."""
        state = np.asarray(state, dtype=float)
        return cls(state[:3], state[3:7])

    def as_state(self) -> np.ndarray:
        return np.concatenate([self.position, self.orientation])

    def with_z(self, z: float) -> "Pose":
        position = self.position.copy()
        position[2] = z
        return Pose(position, self.orientation)

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    @property
    def z(self) -> float:
        return float(self.position[2])

    def __eq__(self, other):
        if not isinstance(other, Pose):
            return NotImplemented
        return bool(np.array_equal(self.position, other.position)
                    and np.array_equal(self.orientation, other.orientation))

    def __repr__(self):
        x, y, z = self.position
        return f"Pose([{x:.2f}, {y:.2f}, {z:.2f}])"


PoseLike = Union[Pose, np.ndarray, Sequence[float]]


def as_position(value: PoseLike) -> np.ndarray:
    """Return the xyz position of a Pose, 3-vector or 7-element state."""
    if isinstance(value, Pose):
        return value.position.copy()
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.size not in (3, 7):
        raise ValueError(f"Expected a 3-vector or 7-element state, got {arr.size} values")
    return arr[:3].copy()


def as_pose(value: PoseLike) -> Pose:
    if isinstance(value, Pose):
        return Pose(value.position, value.orientation)
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.size == 7:
        return Pose.from_state(arr)
    return Pose(as_position(arr))


def horizontal_distance(a: PoseLike, b: PoseLike) -> float:
    """Distance in the xy plane."""
    pa, pb = as_position(a), as_position(b)
    return float(np.linalg.norm(pa[:2] - pb[:2]))


def distance(a: PoseLike, b: PoseLike) -> float:
    return float(np.linalg.norm(as_position(a) - as_position(b)))


def path_length(path: Sequence[Pose]) -> float:
    """Sum of segment lengths along a waypoint path."""
    if len(path) < 2:
        return 0.0
    points = np.array([p.position for p in path])
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())
