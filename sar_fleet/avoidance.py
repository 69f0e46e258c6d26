"""
Aerial/ground collision avoidance.

Each tick every aerial vehicle is compared against every ground vehicle in
the horizontal plane. Closer than the safe distance, the aerial vehicle
climbs by a fixed step (capped at the maximum height) with a fixed climb
velocity; the ground vehicle is left alone. Pairs of the same kind are not
checked. Assignments and paths are not touched.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import MissionConfig
from .geometry import horizontal_distance
from .metrics import MissionMetrics
from .utils import get_logger
from .vehicles import Vehicle

logger = get_logger(__name__)


class CollisionAvoidance:
    """Vertical separation manoeuvre for aerial vehicles near ground vehicles."""

    def __init__(self, config: Optional[MissionConfig] = None, metrics: Optional[MissionMetrics] = None):
        self.config = config or MissionConfig()
        self.metrics = metrics

    def check(self, vehicles: Sequence[Vehicle]) -> List[Tuple[str, str]]:
        """
        Run one avoidance pass.

        Args:
            vehicles: Whole fleet

        Returns:
            (aerial id, ground id) pairs found closer than the safe distance
        """
        aerial = [v for v in vehicles if v.is_aerial]
        ground = [v for v in vehicles if not v.is_aerial]
        conflicts = []

        for uav in aerial:
            raised = False
            for ugv in ground:
                uav_state = uav.read()
                ugv_position = ugv.position

                # Uninitialized platforms read as the origin
                if not np.any(uav_state.position) or not np.any(ugv_position):
                    continue

                if horizontal_distance(uav_state.position, ugv_position) >= self.config.safe_distance:
                    continue

                conflicts.append((uav.vehicle_id, ugv.vehicle_id))
                if not raised:
                    self._climb(uav, uav_state, ugv.vehicle_id)
                    raised = True

        if conflicts and self.metrics is not None:
            self.metrics.record_avoidance(len(conflicts))
        return conflicts

    def _climb(self, uav: Vehicle, state, ground_id: str):
        position = state.position.copy()
        position[2] = min(self.config.max_height, position[2] + self.config.climb_step)
        velocity = state.velocity.copy()
        velocity[2] = self.config.climb_velocity
        uav.move(position, velocity)
        logger.info(f"{uav.vehicle_id} climbing to {position[2]:.1f} m to clear {ground_id}")
