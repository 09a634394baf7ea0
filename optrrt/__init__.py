"""
Asymptotically optimal sampling-based motion planning (RRT*) in continuous spaces.
Exports:
- OptRRTPlanner and its parameters
- problem setup: SpaceInformation, ProblemDefinition, goals, state spaces
- validity checkers, nearest-neighbor indexes and termination conditions
"""

from .base import Planner, PlannerData, PlannerStats, PlannerStatus
from .errors import AllocationError, ConfigurationError, PlannerError
from .geometry import AllValidChecker, DiscValidityChecker, DiscreteMotionValidator, GridValidityChecker
from .goals import GoalRegion, GoalState
from .map_utils import GridMap
from .nearest import KDTreeNearestNeighbors, LinearNearestNeighbors
from .path import PlannerPath
from .problem import ProblemDefinition, SpaceInformation
from .rrt_star import OptRRTParams, OptRRTPlanner
from .space import RealVectorStateSpace
from .termination import CancellationFlag, any_of, iteration_limit, timed
from .tree import Motion, MotionTree

__all__ = [
    "OptRRTPlanner",
    "OptRRTParams",
    "Planner",
    "PlannerData",
    "PlannerStats",
    "PlannerStatus",
    "PlannerPath",
    "PlannerError",
    "ConfigurationError",
    "AllocationError",
    "SpaceInformation",
    "ProblemDefinition",
    "RealVectorStateSpace",
    "GoalRegion",
    "GoalState",
    "GridMap",
    "AllValidChecker",
    "DiscValidityChecker",
    "GridValidityChecker",
    "DiscreteMotionValidator",
    "LinearNearestNeighbors",
    "KDTreeNearestNeighbors",
    "Motion",
    "MotionTree",
    "CancellationFlag",
    "any_of",
    "iteration_limit",
    "timed",
]
