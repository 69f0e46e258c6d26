"""
Configuration for planning and mission control.

All distances in meters, speeds in m/s, times in seconds.
"""

from dataclasses import dataclass


@dataclass
class PlannerConfig:
    """RRT planner, state validator and occupancy thresholds."""

    # RRT
    max_iterations: int = 10000
    max_connection_distance: float = 10.0
    goal_bias: float = 0.1
    goal_tolerance: float = 0.5

    # State validator
    validation_distance: float = 1.0
    lateral_buffer: float = 20.0      # added on both sides in x and y
    vertical_buffer: float = 10.0     # added below ground and above the ceiling

    # Occupancy thresholds
    occupied_threshold: float = 0.80
    free_threshold: float = 0.20

    def __post_init__(self):
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ValueError(f"goal_bias must be in [0, 1], got {self.goal_bias}")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be positive")
        if self.max_connection_distance <= 0 or self.validation_distance <= 0:
            raise ValueError("connection and validation distances must be positive")
        if self.free_threshold > self.occupied_threshold:
            raise ValueError("free_threshold must not exceed occupied_threshold")


@dataclass
class MissionConfig:
    """Vehicle kinematics, detection geometry and scheduling constants."""

    # Heights
    cruise_height: float = 30.0
    min_height: float = 10.0
    max_height: float = 80.0

    # Speeds
    aerial_speed: float = 25.0
    ground_speed: float = 15.0

    # Timing
    simulation_step: float = 0.02      # 50 Hz
    reassignment_interval: float = 5.0

    # Path following
    replan_distance: float = 5.0

    # Detection
    detection_radius: float = 5.0
    detection_height_offset: float = 10.0     # target height above the survivor
    detection_height_tolerance: float = 2.0
    descent_start_factor: float = 2.0         # descent starts at factor * detection_radius

    # Multi-segment descent planning
    ground_level_threshold: float = 1.0
    approach_detection_height: float = 5.0

    # Collision avoidance
    safe_distance: float = 15.0
    climb_step: float = 10.0
    climb_velocity: float = 2.0

    # Bounds and clearance
    boundary_margin: float = 2.0
    ground_obstacle_margin: float = 2.0

    # Fleet layout
    aerial_spacing: float = 30.0
    ground_edge_margin: float = 20.0

    # Initial exploration
    exploration_margin: float = 20.0           # goals stay this far inside the edges
    exploration_fallback_offset: float = 50.0  # aerial retry: current x/y plus this
    exploration_attempts: int = 5              # random goals tried per ground vehicle

    @property
    def descent_start_radius(self) -> float:
        return self.descent_start_factor * self.detection_radius
