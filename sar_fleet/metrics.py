"""
Mission Metrics

PURPOSE:
    Track planning, assignment, detection and avoidance activity over a
    mission run.

USAGE:
    metrics = MissionMetrics()
    metrics.record_plan(success=True, path_length=42.0)
    metrics.log()  # Log formatted summary
    summary = metrics.summary()
"""

import numpy as np
from typing import Dict, List

from .utils import get_logger

logger = get_logger(__name__)


class MissionMetrics:
    """Counters and running lists for one mission."""

    def __init__(self):
        # Planning
        self.plan_attempts = 0
        self.plan_successes = 0
        self.path_lengths: List[float] = []
        self.failure_reasons: Dict[str, int] = {}

        # Assignment
        self.assignment_passes = 0
        self.assignments = 0
        self.unreachable_reports = 0

        # Detection
        self.detections = 0
        self.detection_times: List[float] = []
        self.descent_commands = 0

        # Avoidance
        self.avoidance_events = 0

        # Following
        self.replans = 0
        self.ticks = 0

    def record_plan(self, success: bool, path_length: float = 0.0, reason: str = None):
        """
        Record one planning request.

        Args:
            success: Whether a path was produced
            path_length: Length of the produced path (meters)
            reason: Error class name on failure
        """
        self.plan_attempts += 1
        if success:
            self.plan_successes += 1
            self.path_lengths.append(path_length)
        elif reason:
            self.failure_reasons[reason] = self.failure_reasons.get(reason, 0) + 1

    def record_assignment_pass(self, assigned: int, unreachable: int):
        self.assignment_passes += 1
        self.assignments += assigned
        self.unreachable_reports += unreachable

    def record_detection(self, sim_time: float):
        self.detections += 1
        self.detection_times.append(sim_time)

    def record_descent(self):
        self.descent_commands += 1

    def record_avoidance(self, pairs: int = 1):
        self.avoidance_events += pairs

    def record_replan(self):
        self.replans += 1

    def record_tick(self):
        self.ticks += 1

    @property
    def plan_success_rate(self) -> float:
        if self.plan_attempts == 0:
            return 0.0
        return self.plan_successes / self.plan_attempts

    def summary(self) -> Dict[str, float]:
        """
        Collect current metrics.

        Returns:
            Dict of metric name -> value
        """
        metrics = {
            'planning/attempts': self.plan_attempts,
            'planning/successes': self.plan_successes,
            'planning/success_rate': self.plan_success_rate,
            'assignment/passes': self.assignment_passes,
            'assignment/count': self.assignments,
            'assignment/unreachable': self.unreachable_reports,
            'detection/count': self.detections,
            'detection/descents': self.descent_commands,
            'avoidance/events': self.avoidance_events,
            'follow/replans': self.replans,
            'mission/ticks': self.ticks,
        }

        if len(self.path_lengths) > 0:
            metrics['planning/path_length'] = float(np.mean(self.path_lengths))
            metrics['planning/path_length_std'] = float(np.std(self.path_lengths))

        if len(self.detection_times) > 0:
            metrics['detection/first_time'] = float(self.detection_times[0])
            metrics['detection/mean_time'] = float(np.mean(self.detection_times))

        return metrics

    def log(self) -> Dict[str, float]:
        """Log the summary one metric per line and return it."""
        metrics = self.summary()
        logger.info("Mission metrics:")
        for key, value in metrics.items():
            if isinstance(value, float):
                logger.info(f"  {key}: {value:.3f}")
            else:
                logger.info(f"  {key}: {value}")
        if self.failure_reasons:
            logger.info(f"  planning/failures: {self.failure_reasons}")
        return metrics

    def reset(self):
        """Clear all metrics."""
        self.__init__()
