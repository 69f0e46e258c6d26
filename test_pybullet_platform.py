"""
PyBullet Platform Tests

Runs in DIRECT mode; skipped when pybullet is not installed.
"""

import numpy as np
import pytest

p = pytest.importorskip("pybullet")

from sar_fleet.environment import SearchAreaEnvironment  # noqa: E402
from sar_fleet.pybullet_platform import (  # noqa: E402
    PyBulletPlatform,
    from_pybullet_quaternion,
    load_environment,
    platform_factory,
    to_pybullet_quaternion,
)
from sar_fleet.vehicles import KinematicState, VehicleKind, build_fleet  # noqa: E402


@pytest.fixture
def client():
    client_id = p.connect(p.DIRECT)
    yield client_id
    p.disconnect(client_id)


def test_quaternion_order_round_trip():
    q_wxyz = np.array([0.9, 0.1, 0.2, 0.3])
    assert to_pybullet_quaternion(q_wxyz) == pytest.approx([0.1, 0.2, 0.3, 0.9])
    np.testing.assert_allclose(from_pybullet_quaternion([0.1, 0.2, 0.3, 0.9]), q_wxyz)


def test_spawn_and_read(client):
    state = KinematicState(position=[10.0, 20.0, 30.0], velocity=[1.0, 0.0, 0.0])
    platform = PyBulletPlatform.spawn(client, state, VehicleKind.AERIAL)

    read = platform.read()
    np.testing.assert_allclose(read.position, [10.0, 20.0, 30.0], atol=1e-6)
    np.testing.assert_allclose(read.orientation, [1.0, 0.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(read.velocity, [1.0, 0.0, 0.0])


def test_move_updates_body(client):
    platform = PyBulletPlatform.spawn(client, KinematicState(position=[0.0, 0.0, 0.0]), VehicleKind.GROUND)
    half = np.sqrt(0.5)
    target = KinematicState(position=[5.0, 6.0, 0.0], velocity=[2.0, 3.0, 0.0], orientation=[half, 0.0, 0.0, half])

    platform.move(target)

    position, orientation = p.getBasePositionAndOrientation(platform.body_id, physicsClientId=client)
    np.testing.assert_allclose(position, [5.0, 6.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(np.abs(orientation), [0.0, 0.0, half, half], atol=1e-6)
    np.testing.assert_allclose(platform.read().velocity, [2.0, 3.0, 0.0])


def test_fleet_on_pybullet(client):
    env = SearchAreaEnvironment.default()
    body_ids = load_environment(env, client)
    fleet = build_fleet(1, 1, env, platform_factory=platform_factory(client))

    assert len(body_ids) == len(env.buildings()) + len(env.obstacles())
    assert all(isinstance(v.platform, PyBulletPlatform) for v in fleet)

    ugv = fleet[1]
    ugv.move([150.0, 25.0, 3.0], [1.0, 0.0, 1.0])
    np.testing.assert_allclose(ugv.position, [150.0, 25.0, 0.0], atol=1e-6)
