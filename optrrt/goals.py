import math
from typing import Protocol, Sequence

import numpy as np

from .common import as_state, euclidean


class Goal(Protocol):
    max_path_length: float

    def is_satisfied(self, state: np.ndarray) -> bool: ...

    def distance_goal(self, state: np.ndarray) -> float: ...

    @property
    def can_sample(self) -> bool: ...

    def sample_goal(self, rng: np.random.Generator) -> np.ndarray: ...


class GoalRegion:
    """
    Ball of radius `threshold` around `center`.

    `max_path_length` bounds the acceptable solution cost: once a solution cheaper
    than it is found the planner stops early. `math.inf` disables early exit.
    """

    def __init__(self, center: Sequence[float], threshold: float, max_path_length: float = math.inf):
        if not math.isfinite(threshold) or threshold < 0:
            raise ValueError("threshold must be finite and >= 0")
        self.center = as_state(center)
        self.threshold = float(threshold)
        self.max_path_length = float(max_path_length)

    def distance_goal(self, state: np.ndarray) -> float:
        return max(0.0, euclidean(state, self.center) - self.threshold)

    def is_satisfied(self, state: np.ndarray) -> bool:
        return euclidean(state, self.center) <= self.threshold

    @property
    def can_sample(self) -> bool:
        return True

    def sample_goal(self, rng: np.random.Generator) -> np.ndarray:
        """Uniform sample inside the ball."""
        d = self.center.size
        if self.threshold == 0.0:
            return self.center.copy()
        direction = rng.standard_normal(d)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            return self.center.copy()
        radius = self.threshold * rng.random() ** (1.0 / d)
        return self.center + direction / norm * radius


class GoalState(GoalRegion):
    """A single goal state, reached within `threshold` (a small tolerance)."""

    def __init__(self, state: Sequence[float], threshold: float = 1e-9, max_path_length: float = math.inf):
        super().__init__(state, threshold, max_path_length)

    @property
    def state(self) -> np.ndarray:
        return self.center

    def sample_goal(self, rng: np.random.Generator) -> np.ndarray:
        return self.center.copy()
