import math
from typing import Sequence

import numpy as np


def as_state(values: Sequence[float]) -> np.ndarray:
    """Copy any sequence of coordinates into a flat float64 state vector."""
    state = np.array(values, dtype=float).reshape(-1)
    if state.size == 0:
        raise ValueError("State must have at least one coordinate")
    return state


def euclidean(p: Sequence[float], q: Sequence[float]) -> float:
    if len(p) == 2 and len(q) == 2:
        return math.hypot(p[0] - q[0], p[1] - q[1])
    return float(np.linalg.norm(np.asarray(p, dtype=float) - np.asarray(q, dtype=float)))


def default_collision_step(extent: float, fraction: float = 0.01, min_step: float = 1e-6) -> float:
    """Validation resolution along a motion, as a fraction of the space extent."""
    return max(min_step, float(extent) * fraction)
