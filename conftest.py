"""Shared fixtures for the sar_fleet tests."""

import numpy as np
import pytest

from sar_fleet.assignment import AssignmentEngine, AssignmentTable
from sar_fleet.config import MissionConfig
from sar_fleet.environment import Building, SearchAreaEnvironment
from sar_fleet.metrics import MissionMetrics
from sar_fleet.path_planning import PathPlanner
from sar_fleet.survivors import SurvivorRegistry
from sar_fleet.vehicles import create_aerial_vehicle, create_ground_vehicle


@pytest.fixture
def environment():
    """300 x 300 x 100 area with one building at x 50-70, y 50-80, z 0-40."""
    return SearchAreaEnvironment(
        (300.0, 300.0, 100.0),
        buildings=[Building([50.0, 50.0, 0.0], [20.0, 30.0, 40.0])],
    )


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def config():
    return MissionConfig()


@pytest.fixture
def metrics():
    return MissionMetrics()


@pytest.fixture
def planner(environment, rng, config, metrics):
    return PathPlanner(environment, mission_config=config, rng=rng, metrics=metrics)


@pytest.fixture
def registry():
    return SurvivorRegistry()


@pytest.fixture
def table():
    return AssignmentTable()


@pytest.fixture
def engine(planner, registry, table, config, metrics):
    return AssignmentEngine(planner, registry, table, config, metrics)


@pytest.fixture
def uav(environment, config):
    return create_aerial_vehicle("UAV1", [30.0, 30.0, 30.0], environment, config)


@pytest.fixture
def ugv(environment, config):
    return create_ground_vehicle("Ground1", [100.0, 20.0, 0.0], environment, config)
