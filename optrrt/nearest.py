"""
Nearest-neighbor indexes over tree motions.

Both backends store (handle, state) pairs where the handle is the motion's index in
the tree arena. Radius queries return handles sorted by distance, ties broken by
insertion order, so parent selection is deterministic across backends.
"""

import math
from typing import Callable, Dict, List, Optional, Protocol, Set

import numpy as np
from scipy.spatial import cKDTree

from .common import euclidean
from .space import RealVectorStateSpace


class NearestNeighbors(Protocol):
    def add(self, handle: int, state: np.ndarray) -> None: ...

    def remove(self, handle: int) -> None: ...

    def nearest(self, state: np.ndarray) -> int: ...

    def nearest_r(self, state: np.ndarray, radius: float) -> List[int]: ...

    def size(self) -> int: ...

    def clear(self) -> None: ...


class LinearNearestNeighbors:
    """Brute-force index; works with any distance function."""

    def __init__(self, distance: Optional[Callable[[np.ndarray, np.ndarray], float]] = None):
        self.distance = distance if distance is not None else euclidean
        self._handles: List[int] = []
        self._states: List[np.ndarray] = []

    def add(self, handle: int, state: np.ndarray) -> None:
        if handle in self._handles:
            raise ValueError(f"Handle {handle} is already indexed")
        self._handles.append(int(handle))
        self._states.append(np.asarray(state, dtype=float))

    def remove(self, handle: int) -> None:
        try:
            pos = self._handles.index(handle)
        except ValueError:
            raise KeyError(handle) from None
        del self._handles[pos]
        del self._states[pos]

    def nearest(self, state: np.ndarray) -> int:
        if not self._handles:
            raise LookupError("Nearest-neighbor query on an empty index")
        best = 0
        best_dist = float("inf")
        for i, s in enumerate(self._states):
            d = self.distance(s, state)
            if d < best_dist:
                best_dist = d
                best = i
        return self._handles[best]

    def nearest_r(self, state: np.ndarray, radius: float) -> List[int]:
        hits = []
        for i, s in enumerate(self._states):
            d = self.distance(s, state)
            if d <= radius:
                hits.append((d, i))
        hits.sort()
        return [self._handles[i] for _, i in hits]

    def size(self) -> int:
        return len(self._handles)

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        self._handles.clear()
        self._states.clear()


class KDTreeNearestNeighbors:
    """
    Euclidean index backed by scipy's cKDTree.

    The k-d tree is rebuilt once `rebuild_threshold` states have been added since the
    last build; states added in between are scanned linearly. Removed entries are
    masked until the next rebuild compacts them away.
    """

    def __init__(self, rebuild_threshold: int = 64, leafsize: int = 16):
        if rebuild_threshold < 1:
            raise ValueError("rebuild_threshold must be >= 1")
        self.rebuild_threshold = int(rebuild_threshold)
        self.leafsize = int(leafsize)
        self.rebuilds = 0
        self._handles: List[int] = []
        self._states: List[np.ndarray] = []
        self._position: Dict[int, int] = {}
        self._removed: Set[int] = set()
        self._tree: Optional[cKDTree] = None
        self._built = 0

    def add(self, handle: int, state: np.ndarray) -> None:
        handle = int(handle)
        if handle in self._position:
            raise ValueError(f"Handle {handle} is already indexed")
        self._position[handle] = len(self._handles)
        self._handles.append(handle)
        self._states.append(np.asarray(state, dtype=float))
        if len(self._handles) - self._built >= self.rebuild_threshold:
            self._rebuild()

    def remove(self, handle: int) -> None:
        pos = self._position.pop(handle)
        self._removed.add(pos)

    def _rebuild(self) -> None:
        if self._removed:
            keep = [i for i in range(len(self._handles)) if i not in self._removed]
            self._handles = [self._handles[i] for i in keep]
            self._states = [self._states[i] for i in keep]
            self._position = {h: i for i, h in enumerate(self._handles)}
            self._removed.clear()
        if self._states:
            self._tree = cKDTree(np.vstack(self._states), leafsize=self.leafsize)
        else:
            self._tree = None
        self._built = len(self._states)
        self.rebuilds += 1

    def nearest(self, state: np.ndarray) -> int:
        if not self._position:
            raise LookupError("Nearest-neighbor query on an empty index")
        q = np.asarray(state, dtype=float)
        best_pos = -1
        best_dist = math.inf
        if self._tree is not None and self._built > 0:
            k = min(self._built, 1 + len(self._removed))
            dists, idxs = self._tree.query(q, k=k)
            for d, i in zip(np.atleast_1d(dists), np.atleast_1d(idxs)):
                if int(i) not in self._removed:
                    best_pos, best_dist = int(i), float(d)
                    break
        for pos in range(self._built, len(self._handles)):
            if pos in self._removed:
                continue
            d = euclidean(self._states[pos], q)
            if d < best_dist:
                best_pos, best_dist = pos, d
        return self._handles[best_pos]

    def nearest_r(self, state: np.ndarray, radius: float) -> List[int]:
        q = np.asarray(state, dtype=float)
        candidates: List[int] = []
        if self._tree is not None and self._built > 0:
            candidates.extend(int(i) for i in self._tree.query_ball_point(q, radius))
        candidates.extend(range(self._built, len(self._handles)))
        hits = []
        for pos in candidates:
            if pos in self._removed:
                continue
            d = euclidean(self._states[pos], q)
            if d <= radius:
                hits.append((d, pos))
        hits.sort()
        return [self._handles[pos] for _, pos in hits]

    def size(self) -> int:
        return len(self._position)

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        self._handles = []
        self._states = []
        self._position = {}
        self._removed = set()
        self._tree = None
        self._built = 0


def default_nearest_neighbors(space) -> NearestNeighbors:
    """k-d tree for Euclidean vector spaces, brute force for anything else."""
    if isinstance(space, RealVectorStateSpace):
        return KDTreeNearestNeighbors()
    return LinearNearestNeighbors(space.distance)
