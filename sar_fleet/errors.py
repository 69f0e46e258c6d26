"""Exception hierarchy for planning and mission control."""


class SarFleetError(Exception):
    """Base class for every error raised by sar_fleet."""


# ========== Planning ==========

class PlanningError(SarFleetError):
    """A single planning request could not produce a path."""


class InvalidEndpoint(PlanningError):
    """Start or goal pose fails the state validator."""


class PlanningBudgetExhausted(PlanningError):
    """The RRT iteration cap was reached before the goal."""


class InvalidPathSegment(PlanningError):
    """A segment of the returned path failed the post-hoc motion check."""


class OutOfBounds(PlanningError):
    """Position lies outside the environment."""


# ========== Assignment ==========

class NoReachableTarget(SarFleetError):
    """No plannable survivor was found for a vehicle in this cycle."""

    def __init__(self, vehicle_id: str, tried: int):
        self.vehicle_id = vehicle_id
        self.tried = tried
        super().__init__(f"{vehicle_id}: no reachable survivor ({tried} candidates tried)")


# ========== Invariants ==========

class MissionInvariantError(SarFleetError):
    """Mission state would become inconsistent; fatal to the current tick."""


class AssignmentError(MissionInvariantError):
    """Duplicate vehicle or survivor in the assignment table."""


class StatusTransitionError(MissionInvariantError):
    """Survivor status change that the state machine does not allow."""
