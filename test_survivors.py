"""
Survivor Registry Tests

Status machine, priority draw and random placement rules.
"""

import numpy as np
import pytest

from sar_fleet.environment import SearchAreaEnvironment
from sar_fleet.errors import StatusTransitionError
from sar_fleet.survivors import (
    MIN_BUILDING_DISTANCE,
    MIN_SPACING,
    Priority,
    SurvivorRegistry,
    SurvivorStatus,
    draw_priority,
)


def test_ids_follow_creation_order(registry):
    first = registry.add([10.0, 10.0, 0.0], Priority.LOW)
    second = registry.add([20.0, 10.0, 0.0], Priority.HIGH)

    assert (first.survivor_id, second.survivor_id) == (1, 2)
    assert registry.get(2) is second
    assert len(registry) == 2


def test_forward_transitions(registry):
    survivor = registry.add([10.0, 10.0, 0.0], Priority.HIGH)

    registry.mark_in_progress(survivor.survivor_id, "UAV1")
    assert survivor.status is SurvivorStatus.IN_PROGRESS
    assert survivor.assigned_vehicle == "UAV1"

    registry.mark_detected(survivor.survivor_id)
    assert survivor.status is SurvivorStatus.DETECTED


def test_cannot_skip_detection_state(registry):
    survivor = registry.add([10.0, 10.0, 0.0], Priority.HIGH)
    with pytest.raises(StatusTransitionError):
        registry.mark_detected(survivor.survivor_id)
    assert survivor.status is SurvivorStatus.UNDETECTED


def test_cannot_move_backward(registry):
    survivor = registry.add([10.0, 10.0, 0.0], Priority.HIGH)
    registry.mark_in_progress(survivor.survivor_id, "UAV1")
    registry.mark_detected(survivor.survivor_id)

    with pytest.raises(StatusTransitionError):
        registry.mark_in_progress(survivor.survivor_id, "UAV2")
    with pytest.raises(StatusTransitionError):
        registry.mark_detected(survivor.survivor_id)


def test_queries(registry):
    high = registry.add([10.0, 10.0, 0.0], Priority.HIGH)
    registry.add([20.0, 10.0, 0.0], Priority.MEDIUM)
    taken = registry.add([30.0, 10.0, 0.0], Priority.HIGH)
    registry.mark_in_progress(taken.survivor_id, "UAV1")

    assert [s.survivor_id for s in registry.undetected()] == [1, 2]
    assert [s.survivor_id for s in registry.high_priority()] == [high.survivor_id]
    assert registry.status_counts() == {'UNDETECTED': 2, 'IN_PROGRESS': 1, 'DETECTED': 0, 'RESCUED': 0}


def test_priority_frequencies():
    rng = np.random.default_rng(123)
    draws = [draw_priority(rng) for _ in range(20000)]
    counts = {p: draws.count(p) / len(draws) for p in Priority}

    assert counts[Priority.HIGH] == pytest.approx(0.2, abs=0.02)
    assert counts[Priority.MEDIUM] == pytest.approx(0.5, abs=0.02)
    assert counts[Priority.LOW] == pytest.approx(0.3, abs=0.02)


def test_generated_positions_respect_spacing():
    env = SearchAreaEnvironment.default()
    registry = SurvivorRegistry()
    created = registry.generate(10, env, np.random.default_rng(5))

    assert len(created) == 10
    for survivor in created:
        assert survivor.position[2] == 0.0
        assert env.contains(survivor.position, margin=1.5)
        for building in env.buildings():
            assert not building.footprint_contains(survivor.position, MIN_BUILDING_DISTANCE)
        for other in created:
            if other is not survivor:
                assert np.linalg.norm(other.position[:2] - survivor.position[:2]) >= MIN_SPACING


def test_generate_reports_shortfall(caplog):
    """A tiny area cannot hold many survivors 5 m apart."""
    env = SearchAreaEnvironment((8.0, 8.0, 10.0))
    registry = SurvivorRegistry()
    created = registry.generate(10, env, np.random.default_rng(0))

    assert 0 < len(created) < 10
    assert "Only placed" in caplog.text


def test_snapshot_restore(registry):
    survivor = registry.add([10.0, 10.0, 0.0], Priority.HIGH)
    snapshot = registry.snapshot()

    registry.mark_in_progress(survivor.survivor_id, "UAV1")
    registry.restore(snapshot)

    assert survivor.status is SurvivorStatus.UNDETECTED
    assert survivor.assigned_vehicle is None
