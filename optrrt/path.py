from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from .common import euclidean
from .geometry import StateValidityChecker, path_collides


@dataclass
class PlannerPath:
    """A solution: states from a start state to a goal-satisfying state, and its tree cost."""

    states: List[np.ndarray] = field(default_factory=list)
    cost: float = 0.0

    def __len__(self) -> int:
        return len(self.states)

    def length(self, distance: Optional[Callable[[np.ndarray, np.ndarray], float]] = None) -> float:
        """Sum of segment lengths under `distance` (Euclidean by default).

        Pass the state space's `distance` to compare against `cost` in non-Euclidean spaces.
        """
        distance = distance or euclidean
        total = 0.0
        for i in range(1, len(self.states)):
            total += distance(self.states[i - 1], self.states[i])
        return total

    def as_array(self) -> np.ndarray:
        if not self.states:
            return np.zeros((0, 0))
        return np.vstack(self.states)

    def densify(self, step: float) -> "PlannerPath":
        """Insert states on the straight segments so consecutive states are at most `step` apart."""
        if step <= 0:
            raise ValueError("step must be > 0")
        if len(self.states) < 2:
            return PlannerPath([s.copy() for s in self.states], self.cost)
        out = [self.states[0].copy()]
        for a, b in zip(self.states[:-1], self.states[1:]):
            n = max(1, int(np.ceil(euclidean(a, b) / step)))
            for i in range(1, n + 1):
                out.append(a + (b - a) * (i / n))
        return PlannerPath(out, self.cost)

    def is_valid(self, checker: StateValidityChecker, step: float) -> bool:
        if not self.states:
            return False
        return not path_collides(checker, self.states, step)
