import math
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence

import numpy as np

from .common import euclidean
from .map_utils import GridMap


class StateValidityChecker(Protocol):
    def is_valid(self, state: np.ndarray) -> bool: ...


class MotionValidator(Protocol):
    def check_motion(self, a: np.ndarray, b: np.ndarray) -> bool: ...


class AllValidChecker:
    """Obstacle-free space: every state is valid."""

    def is_valid(self, state: np.ndarray) -> bool:
        return True


@dataclass
class DiscValidityChecker:
    """
    Circular (2D) or spherical obstacles.
    centers: (N, d) obstacle centers.
    radii: (N,) obstacle radii.
    clearance: extra margin added to every radius.
    """

    centers: Sequence[Sequence[float]]
    radii: Sequence[float]
    clearance: float = 0.0
    _centers: np.ndarray = field(init=False, repr=False, compare=False)
    _radii: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self._radii = np.asarray(self.radii, dtype=float).reshape(-1)
        centers = np.asarray(self.centers, dtype=float)
        if self._radii.size == 0:
            self._centers = centers.reshape(0, centers.shape[-1] if centers.ndim == 2 else 0)
        else:
            self._centers = centers.reshape(self._radii.size, -1)
        if np.any(self._radii < 0):
            raise ValueError("Obstacle radii must be non-negative")

    def is_valid(self, state: np.ndarray) -> bool:
        if len(self._radii) == 0:
            return True
        d = np.linalg.norm(self._centers - np.asarray(state, dtype=float), axis=1)
        return bool(np.all(d > self._radii + self.clearance))


class GridValidityChecker:
    """Occupancy-grid checker for 2D point robots; out-of-grid counts as occupied."""

    def __init__(self, grid_map: GridMap):
        self.map = grid_map

    def is_valid(self, state: np.ndarray) -> bool:
        return not self.map.is_occupied(float(state[0]), float(state[1]))


def interpolate_states(
    start: np.ndarray,
    end: np.ndarray,
    step: float,
) -> Iterable[np.ndarray]:
    """Evenly spaced states along the straight segment, excluding start, including end."""
    start = np.asarray(start, dtype=float)
    end = np.asarray(end, dtype=float)
    dist = euclidean(start, end)
    steps = max(1, int(math.ceil(dist / step)))
    for i in range(1, steps + 1):
        s = i / steps
        yield start + (end - start) * s


class DiscreteMotionValidator:
    """
    Checks a straight motion by testing states spaced at most `resolution` apart.
    The start state is checked too, so a motion out of an invalid state is invalid.
    """

    def __init__(self, checker: StateValidityChecker, resolution: float):
        if not math.isfinite(resolution) or resolution <= 0:
            raise ValueError("resolution must be finite and > 0")
        self.checker = checker
        self.resolution = float(resolution)
        self.checks = 0
        self.invalid = 0

    def check_motion(self, a: np.ndarray, b: np.ndarray) -> bool:
        self.checks += 1
        if not self.checker.is_valid(a):
            self.invalid += 1
            return False
        for state in interpolate_states(a, b, self.resolution):
            if not self.checker.is_valid(state):
                self.invalid += 1
                return False
        return True


def path_collides(
    checker: StateValidityChecker,
    states: Sequence[np.ndarray],
    step: float,
) -> bool:
    """Check collision for a sequence of states joined by straight segments."""
    validator = DiscreteMotionValidator(checker, step)
    if len(states) == 1:
        return not checker.is_valid(states[0])
    for a, b in zip(states[:-1], states[1:]):
        if not validator.check_motion(a, b):
            return True
    return False
