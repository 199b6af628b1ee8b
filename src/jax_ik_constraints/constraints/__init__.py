"""IK constraints and their shared interface."""

from .base import Constraint, ConstraintResults, SolverState
from .link_avoidance import LinkAvoidance
from .avoid_obstacles import (
    AvoidObstacles,
    AvoidanceSnapshot,
    avoidance_error,
    avoidance_jacobian,
    avoidance_satisfied,
    transform_distance_info,
)

__all__ = [
    "Constraint",
    "ConstraintResults",
    "SolverState",
    "LinkAvoidance",
    "AvoidObstacles",
    "AvoidanceSnapshot",
    "avoidance_error",
    "avoidance_jacobian",
    "avoidance_satisfied",
    "transform_distance_info",
]
