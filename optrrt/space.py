from dataclasses import dataclass, field
from typing import Protocol, Sequence, Tuple

import numpy as np

from .common import as_state, euclidean


class StateSpace(Protocol):
    """What the planner needs from a state space."""

    @property
    def dimension(self) -> int: ...

    def distance(self, a: np.ndarray, b: np.ndarray) -> float: ...

    def interpolate(self, a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray: ...

    def maximum_extent(self) -> float: ...

    def satisfies_bounds(self, state: np.ndarray) -> bool: ...

    def sample_uniform(self, rng: np.random.Generator) -> np.ndarray: ...


@dataclass
class RealVectorStateSpace:
    """
    Axis-aligned box in R^d with the Euclidean metric.
    low/high: per-dimension bounds, low[i] < high[i].
    """

    low: Sequence[float]
    high: Sequence[float]
    _low: np.ndarray = field(init=False, repr=False, compare=False)
    _high: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self._low = as_state(self.low)
        self._high = as_state(self.high)
        if self._low.shape != self._high.shape:
            raise ValueError("Lower and upper bounds differ in dimension")
        if np.any(self._high <= self._low):
            raise ValueError("Every upper bound must exceed its lower bound")

    @classmethod
    def unit_box(cls, dimension: int) -> "RealVectorStateSpace":
        return cls([0.0] * dimension, [1.0] * dimension)

    @property
    def dimension(self) -> int:
        return int(self._low.size)

    @property
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return self._low.copy(), self._high.copy()

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return euclidean(a, b)

    def interpolate(self, a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
        """Point at fraction t of the straight segment from a to b."""
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        return a + (b - a) * float(t)

    def maximum_extent(self) -> float:
        """Length of the box diagonal; no two states are further apart."""
        return float(np.linalg.norm(self._high - self._low))

    def satisfies_bounds(self, state: np.ndarray) -> bool:
        state = np.asarray(state, dtype=float)
        if state.shape != self._low.shape:
            return False
        return bool(np.all(state >= self._low) and np.all(state <= self._high))

    def enforce_bounds(self, state: np.ndarray) -> np.ndarray:
        return np.clip(np.asarray(state, dtype=float), self._low, self._high)

    def sample_uniform(self, rng: np.random.Generator) -> np.ndarray:
        return rng.uniform(self._low, self._high)
