from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Set, Tuple

import numpy as np

from .errors import AllocationError


@dataclass
class Motion:
    state: np.ndarray
    parent: int
    cost: float

    @property
    def is_root(self) -> bool:
        return self.parent < 0


class MotionTree:
    """
    Arena of motions addressed by integer handle.

    Only parent links are needed for path extraction; the `children` sets are kept
    alongside so a cost change after rewiring can be pushed down to descendants.
    Motions are never removed individually, only all at once by `clear()`.
    """

    def __init__(self, max_motions: int = 0):
        self.max_motions = max(0, int(max_motions))
        self._motions: List[Motion] = []
        self._children: List[Set[int]] = []

    def __len__(self) -> int:
        return len(self._motions)

    def __getitem__(self, handle: int) -> Motion:
        return self._motions[handle]

    def __iter__(self) -> Iterator[Motion]:
        return iter(self._motions)

    def insert(self, state: np.ndarray, parent: int = -1, cost: float = 0.0) -> int:
        if parent >= len(self._motions):
            raise IndexError(f"Parent {parent} is not in the tree")
        if self.max_motions and len(self._motions) >= self.max_motions:
            raise AllocationError(f"Motion tree is full ({self.max_motions} motions)")
        try:
            motion = Motion(np.array(state, dtype=float), parent=int(parent), cost=float(cost))
            self._motions.append(motion)
            self._children.append(set())
        except MemoryError as exc:
            raise AllocationError("Out of memory while adding a motion") from exc
        handle = len(self._motions) - 1
        if parent >= 0:
            self._children[parent].add(handle)
        return handle

    def reparent(self, handle: int, new_parent: int, new_cost: float, propagate: bool = True) -> float:
        """
        Attach `handle` under `new_parent` with cost `new_cost`.

        With `propagate`, every descendant's cost is shifted by the same delta so the
        cost invariant holds for the whole subtree. Returns the delta.
        """
        if new_parent == handle or self.is_ancestor(handle, new_parent):
            raise ValueError(f"Re-parenting {handle} under {new_parent} would create a cycle")
        motion = self._motions[handle]
        old_parent = motion.parent
        old_cost = motion.cost
        if old_parent >= 0:
            self._children[old_parent].discard(handle)

        motion.parent = int(new_parent)
        motion.cost = float(new_cost)
        self._children[new_parent].add(handle)

        delta = motion.cost - old_cost
        if propagate and abs(delta) > 1e-12:
            self._propagate_cost_delta(handle, delta)
        return delta

    def _propagate_cost_delta(self, root: int, delta: float) -> None:
        q = deque(self._children[root])
        while q:
            idx = q.popleft()
            self._motions[idx].cost += delta
            q.extend(self._children[idx])

    def is_ancestor(self, ancestor: int, handle: int) -> bool:
        """True if `ancestor` lies on the parent chain of `handle` (a motion is its own ancestor)."""
        cur = handle
        steps = 0
        while cur >= 0:
            if cur == ancestor:
                return True
            cur = self._motions[cur].parent
            steps += 1
            if steps > len(self._motions):
                raise RuntimeError("Cycle in motion tree")
        return False

    def path_to(self, handle: int) -> List[int]:
        """Handles from the root down to `handle`."""
        indices: List[int] = []
        cur = handle
        while cur >= 0:
            indices.append(cur)
            cur = self._motions[cur].parent
            if len(indices) > len(self._motions):
                raise RuntimeError("Cycle in motion tree")
        indices.reverse()
        return indices

    def states_to(self, handle: int) -> List[np.ndarray]:
        return [self._motions[i].state.copy() for i in self.path_to(handle)]

    def depth(self, handle: int) -> int:
        return len(self.path_to(handle)) - 1

    def children_of(self, handle: int) -> Set[int]:
        return set(self._children[handle])

    def subtree(self, handle: int) -> List[int]:
        """`handle` and all its descendants, breadth first."""
        order = [handle]
        q = deque(self._children[handle])
        while q:
            idx = q.popleft()
            order.append(idx)
            q.extend(self._children[idx])
        return order

    def roots(self) -> List[int]:
        return [i for i, m in enumerate(self._motions) if m.parent < 0]

    def edges(self) -> List[Tuple[int, int]]:
        """(parent, child) pairs."""
        return [(m.parent, i) for i, m in enumerate(self._motions) if m.parent >= 0]

    def clear(self) -> None:
        self._motions = []
        self._children = []
