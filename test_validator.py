"""
State Validator Tests

Bound box, occupancy and segment sampling checks.
"""

import numpy as np
import pytest

from sar_fleet.config import PlannerConfig
from sar_fleet.geometry import Pose
from sar_fleet.path_planning import PathPlanner
from sar_fleet.validator import StateValidator


@pytest.fixture
def validator(environment):
    return StateValidator.for_environment(environment)


def test_bounds_include_buffer(validator):
    np.testing.assert_allclose(validator.lower, [-20.0, -20.0, -10.0])
    np.testing.assert_allclose(validator.upper, [320.0, 320.0, 110.0])

    assert validator.is_valid([-20.0, -20.0, -10.0])
    assert validator.is_valid([320.0, 320.0, 110.0])
    assert not validator.is_valid([-21.0, 0.0, 0.0])
    assert not validator.is_valid([0.0, 0.0, 111.0])


def test_occupied_pose_invalid(validator):
    assert not validator.is_valid(Pose.at(60.0, 60.0, 20.0))
    assert validator.is_valid(Pose.at(60.0, 60.0, 45.0)), "Above the roof is free"


def test_indeterminate_cell_is_invalid(validator):
    validator.volume.set_occupancy([[200.0, 200.0, 20.0]], 0.5)
    assert not validator.is_valid([200.0, 200.0, 20.0])


def test_free_threshold_comes_from_planner_config(environment):
    environment.occupancy_volume().set_occupancy([[200.0, 200.0, 20.0]], 0.5)
    loose = PlannerConfig(free_threshold=0.6, occupied_threshold=0.9)

    assert StateValidator.for_environment(environment, loose).is_valid([200.0, 200.0, 20.0])
    assert not StateValidator.for_environment(environment).is_valid([200.0, 200.0, 20.0])

    planner = PathPlanner(environment, planner_config=loose)
    assert planner.validator.is_valid([200.0, 200.0, 20.0]), "Planner passes its thresholds to the validator"
    assert planner.validator.is_motion_valid([195.0, 200.0, 20.0], [205.0, 200.0, 20.0])


def test_accepts_state_vectors(validator):
    state = np.array([150.0, 150.0, 30.0, 1.0, 0.0, 0.0, 0.0])
    assert validator.is_valid(state)


def test_segment_through_building_invalid(validator):
    assert not validator.is_motion_valid([40.0, 65.0, 30.0], [80.0, 65.0, 30.0])


def test_segment_clear_of_building_valid(validator):
    assert validator.is_motion_valid([40.0, 65.0, 45.0], [80.0, 65.0, 45.0])
    assert validator.is_motion_valid([100.0, 100.0, 30.0], [250.0, 250.0, 30.0])


def test_zero_length_segment_valid(validator):
    assert validator.is_motion_valid([10.0, 10.0, 10.0], [10.0, 10.0, 10.0])


def test_segment_ending_in_obstacle_invalid(validator):
    """The end sample is always checked even when the length is not a multiple of the step."""
    assert not validator.is_motion_valid([45.5, 60.0, 20.0], [50.0, 60.0, 20.0])
