"""
Ambient Helper Tests

Logging setup, progress bar formatting, metrics summary, errors and the CLI.
"""

import logging

import pytest

from sar_fleet.config import PlannerConfig
from sar_fleet.errors import NoReachableTarget, PlanningError, SarFleetError
from sar_fleet.log_utils import create_mission_progress_bar, format_counts_for_postfix
from sar_fleet.metrics import MissionMetrics
from sar_fleet.run_mission import main, run
from sar_fleet.utils import PACKAGE_LOGGER, get_logger


def test_module_loggers_share_package_handlers():
    logger = get_logger("sar_fleet.some_module")
    package = logging.getLogger(PACKAGE_LOGGER)

    assert logger.name == "sar_fleet.some_module"
    assert len(package.handlers) >= 1
    assert not logger.handlers, "Handlers live on the package logger only"


def test_file_handler_added_once(tmp_path):
    log_file = tmp_path / "logs" / "mission.log"
    package = logging.getLogger(PACKAGE_LOGGER)
    try:
        get_logger("sar_fleet.test", log_file=str(log_file))
        get_logger("sar_fleet.test", log_file=str(log_file))
        file_handlers = [h for h in package.handlers if isinstance(h, logging.FileHandler)]

        assert log_file.parent.exists()
        assert len(file_handlers) == 1
    finally:
        for handler in list(package.handlers):
            if isinstance(handler, logging.FileHandler):
                package.removeHandler(handler)
                handler.close()


def test_postfix_formatting():
    counts = {'UNDETECTED': 2, 'IN_PROGRESS': 1, 'DETECTED': 0, 'RESCUED': 0}
    assert format_counts_for_postfix(counts) == {'undete': '2', 'inprog': '1'}


def test_progress_bar():
    pbar = create_mission_progress_bar(5, "Test", leave=False)
    pbar.update(5)
    assert pbar.n == 5
    pbar.close()


def test_metrics_summary():
    metrics = MissionMetrics()
    metrics.record_plan(True, 10.0)
    metrics.record_plan(False, reason="InvalidEndpoint")
    metrics.record_detection(4.0)

    summary = metrics.log()
    assert summary['planning/attempts'] == 2
    assert summary['planning/success_rate'] == pytest.approx(0.5)
    assert summary['planning/path_length'] == pytest.approx(10.0)
    assert summary['detection/first_time'] == pytest.approx(4.0)
    assert metrics.failure_reasons == {'InvalidEndpoint': 1}

    metrics.reset()
    assert metrics.plan_attempts == 0


def test_error_hierarchy():
    error = NoReachableTarget("UAV1", 3)
    assert isinstance(error, SarFleetError)
    assert not isinstance(error, PlanningError)
    assert "UAV1" in str(error) and "3" in str(error)


def test_cli_runs_short_mission(capsys):
    code = main(["--aerial", "1", "--ground", "1", "--survivors", "2", "--seconds", "1", "--seed", "3"])

    assert code == 0
    out = capsys.readouterr().out
    assert "MISSION COMPLETE" in out
    assert "ticks" in out


def test_run_applies_planner_thresholds():
    planner_config = PlannerConfig(free_threshold=0.3, occupied_threshold=0.7)
    controller = run(num_aerial=1, num_ground=0, num_survivors=1, seconds=0.1, seed=5,
                     planner_config=planner_config)

    volume = controller.environment.occupancy_volume()
    assert volume.free_threshold == 0.3
    assert volume.occupied_threshold == 0.7
    assert controller.planner.validator.free_threshold == 0.3
