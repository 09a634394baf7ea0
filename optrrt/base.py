from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Tuple

import numpy as np

from .termination import TerminationCondition


class PlannerStatus(Enum):
    EXACT_SOLUTION = "exact_solution"
    TIMEOUT = "timeout"

    def __bool__(self) -> bool:
        return self is PlannerStatus.EXACT_SOLUTION


@dataclass
class PlannerData:
    """
    Read-only snapshot of a planner's tree.
    vertices: states, indexed like the tree handles at snapshot time.
    edges: (parent, child) index pairs.
    """

    vertices: List[np.ndarray] = field(default_factory=list)
    edges: List[Tuple[int, int]] = field(default_factory=list)
    costs: List[float] = field(default_factory=list)
    start_vertices: List[int] = field(default_factory=list)
    goal_vertices: List[int] = field(default_factory=list)

    def num_vertices(self) -> int:
        return len(self.vertices)

    def num_edges(self) -> int:
        return len(self.edges)


@dataclass
class PlannerStats:
    iterations: int = 0
    invalid_motions: int = 0
    rewires: int = 0
    nodes: int = 0
    time: float = 0.0
    best_cost: Optional[float] = None
    solutions_found: int = 0
    samples: int = 0
    goal_samples: int = 0


class Planner(Protocol):
    """Capability set shared by the planners in this package."""

    def setup(self) -> None: ...

    def solve(self, ptc: TerminationCondition) -> PlannerStatus: ...

    def clear(self) -> None: ...

    def export_graph(self) -> PlannerData: ...
