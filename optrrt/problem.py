import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

from .common import as_state, default_collision_step
from .geometry import AllValidChecker, DiscreteMotionValidator, MotionValidator, StateValidityChecker
from .goals import Goal, GoalState
from .path import PlannerPath
from .space import StateSpace

logger = logging.getLogger(__name__)


class SpaceInformation:
    """
    State space plus the validity oracle the planner consults.

    A state is valid when it lies inside the space bounds and the validity checker
    accepts it. Motions are checked by `motion_validator`; by default straight motions
    are sampled every `resolution * space.maximum_extent()`.
    """

    def __init__(
        self,
        space: StateSpace,
        validity_checker: Optional[StateValidityChecker] = None,
        motion_validator: Optional[MotionValidator] = None,
        resolution: float = 0.01,
        sampler: Optional[Callable[[np.random.Generator], np.ndarray]] = None,
    ):
        self.space = space
        self.validity_checker = validity_checker if validity_checker is not None else AllValidChecker()
        self.resolution = float(resolution)
        if motion_validator is None:
            step = default_collision_step(space.maximum_extent(), fraction=self.resolution)
            motion_validator = DiscreteMotionValidator(self, step)
        self.motion_validator = motion_validator
        self.sampler = sampler

    @property
    def dimension(self) -> int:
        return self.space.dimension

    def maximum_extent(self) -> float:
        return self.space.maximum_extent()

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return self.space.distance(a, b)

    def is_valid(self, state: np.ndarray) -> bool:
        return self.space.satisfies_bounds(state) and self.validity_checker.is_valid(state)

    def check_motion(self, a: np.ndarray, b: np.ndarray) -> bool:
        return self.motion_validator.check_motion(a, b)

    def sample_state(self, rng: np.random.Generator) -> np.ndarray:
        if self.sampler is not None:
            return np.asarray(self.sampler(rng), dtype=float)
        return self.space.sample_uniform(rng)


class ProblemDefinition:
    """Start states, goal and the latest solution found for them."""

    def __init__(self, start_states: Sequence[Sequence[float]] = (), goal: Optional[Goal] = None):
        self.start_states: List[np.ndarray] = [as_state(s) for s in start_states]
        self.goal = goal
        self.solution: Optional[PlannerPath] = None

    @classmethod
    def from_states(
        cls, start: Sequence[float], goal: Sequence[float], threshold: float = 1e-9
    ) -> "ProblemDefinition":
        return cls([start], GoalState(goal, threshold))

    def add_start_state(self, state: Sequence[float]) -> None:
        self.start_states.append(as_state(state))

    def clear_start_states(self) -> None:
        self.start_states = []

    def set_goal(self, goal: Goal) -> None:
        self.goal = goal
        self.solution = None

    def has_solution(self) -> bool:
        return self.solution is not None

    def clear_solution(self) -> None:
        self.solution = None

    def set_solution(self, path: PlannerPath) -> None:
        if self.solution is None or path.cost < self.solution.cost:
            logger.debug("Solution updated: cost %.4f, %d states", path.cost, len(path))
        self.solution = path
