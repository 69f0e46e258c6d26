"""
RRT Planner Tests

Path properties over several seeds rather than exact trees.
"""

import numpy as np
import pytest

from sar_fleet.config import PlannerConfig
from sar_fleet.errors import InvalidEndpoint, PlanningBudgetExhausted
from sar_fleet.geometry import Pose
from sar_fleet.rrt_planner import RRTPlanner
from sar_fleet.validator import StateValidator


@pytest.fixture
def validator(environment):
    return StateValidator.for_environment(environment)


def make_planner(validator, seed, **overrides):
    return RRTPlanner(validator, PlannerConfig(**overrides), np.random.default_rng(seed))


def test_plans_around_building(validator):
    planner = make_planner(validator, seed=7)
    path = planner.plan(Pose.at(30.0, 30.0, 30.0), Pose.at(250.0, 250.0, 30.0))

    assert len(path) >= 2
    np.testing.assert_allclose(path[0].position, [30.0, 30.0, 30.0])
    np.testing.assert_allclose(path[-1].position, [250.0, 250.0, 30.0])


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_path_segments_short_and_collision_free(validator, seed):
    planner = make_planner(validator, seed)
    path = planner.plan([20.0, 60.0, 20.0], [100.0, 70.0, 20.0])

    for a, b in zip(path[:-1], path[1:]):
        step = np.linalg.norm(b.position - a.position)
        assert step <= planner.config.max_connection_distance + 1e-9, f"Segment too long: {step:.2f}"
        assert validator.is_motion_valid(a, b), f"Segment {a} -> {b} collides"


def test_success_rate_over_seeds(validator):
    successes = 0
    for seed in range(10):
        planner = make_planner(validator, seed)
        try:
            planner.plan([30.0, 30.0, 10.0], [120.0, 90.0, 15.0])
            successes += 1
        except PlanningBudgetExhausted:
            pass
    assert successes >= 9, f"Only {successes}/10 seeds found a path"


def test_occupied_endpoints_rejected(validator):
    planner = make_planner(validator, seed=0)
    with pytest.raises(InvalidEndpoint):
        planner.plan([60.0, 60.0, 20.0], [150.0, 150.0, 30.0])
    with pytest.raises(InvalidEndpoint):
        planner.plan([150.0, 150.0, 30.0], [60.0, 60.0, 20.0])


def test_iteration_budget(validator):
    planner = make_planner(validator, seed=0, max_iterations=5)
    with pytest.raises(PlanningBudgetExhausted):
        planner.plan([0.0, 0.0, 30.0], [290.0, 290.0, 30.0])


def test_start_at_goal(validator):
    planner = make_planner(validator, seed=0)
    path = planner.plan([100.0, 100.0, 30.0], [100.2, 100.0, 30.0])

    assert len(path) == 2
    np.testing.assert_allclose(path[-1].position, [100.2, 100.0, 30.0])


def test_planar_sampling(validator):
    planner = make_planner(validator, seed=3)
    path = planner.plan([20.0, 20.0, 0.0], [120.0, 30.0, 0.0], sample_z=0.0)

    assert all(p.z == 0.0 for p in path), "Every waypoint should stay on the ground plane"


def test_same_seed_same_path(validator):
    first = make_planner(validator, seed=11).plan([30.0, 30.0, 30.0], [200.0, 150.0, 30.0])
    second = make_planner(validator, seed=11).plan([30.0, 30.0, 30.0], [200.0, 150.0, 30.0])

    assert len(first) == len(second)
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a.position, b.position)
