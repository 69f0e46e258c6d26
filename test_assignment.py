"""
Assignment Tests

Table invariants and the priority-then-nearest policy.
"""

import numpy as np
import pytest

from sar_fleet.assignment import AssignmentTable
from sar_fleet.errors import AssignmentError, NoReachableTarget
from sar_fleet.survivors import Priority, SurvivorStatus
from sar_fleet.vehicles import create_aerial_vehicle, create_ground_vehicle


# ========== Table ==========

def test_table_rejects_duplicate_vehicle():
    table = AssignmentTable()
    table.assign("UAV1", 1)
    with pytest.raises(AssignmentError):
        table.assign("UAV1", 2)


def test_table_rejects_duplicate_survivor():
    table = AssignmentTable()
    table.assign("UAV1", 1)
    with pytest.raises(AssignmentError):
        table.assign("UAV2", 1)
    assert table.snapshot() == {"UAV1": 1}


def test_table_release_and_lookup():
    table = AssignmentTable()
    table.assign("UAV1", 1)
    table.assign("Ground1", 2)

    assert table.vehicle_for(2) == "Ground1"
    assert table.survivor_for("UAV1") == 1
    assert table.release("UAV1") == 1
    assert "UAV1" not in table
    assert table.vehicle_for(1) is None
    assert table == {"Ground1": 2}

    with pytest.raises(AssignmentError):
        table.release("UAV1")


def test_snapshot_is_a_copy():
    table = AssignmentTable()
    table.assign("UAV1", 1)
    snapshot = table.snapshot()
    snapshot["UAV2"] = 5

    assert len(table) == 1


# ========== Engine ==========

def test_high_priority_survivor_assigned(engine, registry, table, uav, config):
    survivor = registry.add([150.0, 150.0, 0.0], Priority.HIGH)

    report = engine.assign([uav])

    assert report.assigned == {"UAV1": survivor.survivor_id}
    assert table.snapshot() == {"UAV1": survivor.survivor_id}
    assert survivor.status is SurvivorStatus.IN_PROGRESS
    assert survivor.assigned_vehicle == "UAV1"
    assert len(uav.path) >= 2
    np.testing.assert_allclose(uav.path[-1].position, [150.0, 150.0, config.cruise_height])


def test_high_priority_before_nearer_survivor(engine, registry, uav):
    registry.add([40.0, 30.0, 0.0], Priority.LOW)
    far_high = registry.add([200.0, 30.0, 0.0], Priority.HIGH)

    report = engine.assign([uav])
    assert report.assigned == {"UAV1": far_high.survivor_id}


def test_nearest_survivor_without_high_priority(engine, registry, uav):
    registry.add([250.0, 250.0, 0.0], Priority.MEDIUM)
    near = registry.add([100.0, 30.0, 0.0], Priority.LOW)

    report = engine.assign([uav])
    assert report.assigned == {"UAV1": near.survivor_id}


def test_unplannable_survivor_skipped(engine, registry, uav):
    """A survivor under the building footprint cannot be reached at cruise height."""
    blocked = registry.add([60.0, 60.0, 0.0], Priority.HIGH)
    reachable = registry.add([150.0, 30.0, 0.0], Priority.MEDIUM)

    report = engine.assign([uav])

    assert report.assigned == {"UAV1": reachable.survivor_id}
    assert blocked.status is SurvivorStatus.UNDETECTED


def test_aerial_vehicles_served_first(engine, registry, environment, uav):
    ugv = create_ground_vehicle("Ground1", [35.0, 20.0, 0.0], environment)
    survivor = registry.add([120.0, 30.0, 0.0], Priority.HIGH)

    report = engine.assign([ugv, uav])

    assert report.assigned == {"UAV1": survivor.survivor_id}
    assert len(report.unreachable) == 1
    assert isinstance(report.unreachable[0], NoReachableTarget)
    assert report.unreachable[0].vehicle_id == "Ground1"
    assert ugv.path == []


def test_one_vehicle_per_survivor(engine, registry, table, environment):
    fleet = [
        create_aerial_vehicle("UAV1", [30.0, 30.0, 30.0], environment),
        create_aerial_vehicle("UAV2", [30.0, 200.0, 30.0], environment),
        create_ground_vehicle("Ground1", [150.0, 20.0, 0.0], environment),
    ]
    for x in (100.0, 200.0, 250.0):
        registry.add([x, 120.0, 0.0], Priority.MEDIUM)

    engine.assign(fleet)

    assignments = table.snapshot()
    assert len(assignments) == 3
    assert len(set(assignments.values())) == len(assignments), "No survivor may be claimed twice"


def test_assigned_vehicle_skipped(engine, registry, table, uav):
    first = registry.add([100.0, 30.0, 0.0], Priority.HIGH)
    registry.add([200.0, 30.0, 0.0], Priority.HIGH)

    engine.assign([uav])
    report = engine.assign([uav])

    assert report.assigned == {}
    assert table.snapshot() == {"UAV1": first.survivor_id}


def test_ground_assignment_path_on_ground(engine, registry, ugv):
    survivor = registry.add([200.0, 30.0, 0.0], Priority.MEDIUM)

    report = engine.assign([ugv])

    assert report.assigned == {"Ground1": survivor.survivor_id}
    assert all(p.z == 0.0 for p in ugv.path)


def test_metrics_count_passes(engine, registry, uav, metrics):
    registry.add([100.0, 30.0, 0.0], Priority.HIGH)
    engine.assign([uav])

    assert metrics.assignment_passes == 1
    assert metrics.assignments == 1
