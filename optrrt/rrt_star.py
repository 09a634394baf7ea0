import dataclasses
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .base import PlannerData, PlannerStats, PlannerStatus
from .errors import AllocationError, ConfigurationError
from .nearest import NearestNeighbors, default_nearest_neighbors
from .path import PlannerPath
from .problem import ProblemDefinition, SpaceInformation
from .termination import TerminationCondition, as_condition
from .tree import MotionTree

logger = logging.getLogger(__name__)

# Fraction of the space extent used as steering range when none is configured.
DEFAULT_RANGE_FRACTION = 0.2

_PARAM_ALIASES = {"range": "max_distance"}


@dataclass
class OptRRTParams:
    goal_bias: float = 0.05
    max_distance: float = 0.0  # 0 -> derived from the space extent in setup()
    ball_radius_constant: float = 1.0
    max_ball_radius: float = 0.0  # 0 -> unbounded
    propagate_costs: bool = True
    max_motions: int = 0  # 0 -> unbounded

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ConfigurationError(f"goal_bias must be in [0, 1], got {self.goal_bias}")
        if not math.isfinite(self.max_distance) or self.max_distance < 0.0:
            raise ConfigurationError(f"range must be finite and >= 0, got {self.max_distance}")
        if not math.isfinite(self.ball_radius_constant) or self.ball_radius_constant <= 0.0:
            raise ConfigurationError(f"ball_radius_constant must be > 0, got {self.ball_radius_constant}")
        if math.isnan(self.max_ball_radius) or self.max_ball_radius < 0.0:
            raise ConfigurationError(f"max_ball_radius must be >= 0, got {self.max_ball_radius}")
        if self.max_motions < 0:
            raise ConfigurationError(f"max_motions must be >= 0, got {self.max_motions}")


class OptRRTPlanner:
    """
    RRT* that rewires the exploration tree as it grows.

    Paper: S. Karaman and E. Frazzoli, "Incremental Sampling-based Algorithms for
    Optimal Motion Planning", RSS 2010.

    Optimality is with respect to the distance function of the state space. When the
    goal carries a finite `max_path_length`, the run stops as soon as a solution
    cheaper than that is found. Results are sensitive to `max_ball_radius` and
    `ball_radius_constant`.

    Calling solve() again without clear() keeps growing the same tree.
    """

    name = "OptRRT"

    def __init__(
        self,
        si: SpaceInformation,
        pdef: ProblemDefinition,
        goal_bias: float = 0.05,
        max_distance: float = 0.0,
        ball_radius_constant: float = 1.0,
        max_ball_radius: float = 0.0,
        propagate_costs: bool = True,
        max_motions: int = 0,
        nearest_neighbors: Optional[NearestNeighbors] = None,
        rng_seed: Optional[int] = None,
    ):
        self.si = si
        self.pdef = pdef
        self.params = OptRRTParams(
            goal_bias=float(goal_bias),
            max_distance=float(max_distance),
            ball_radius_constant=float(ball_radius_constant),
            max_ball_radius=float(max_ball_radius),
            propagate_costs=bool(propagate_costs),
            max_motions=int(max_motions),
        )
        self.rng = np.random.default_rng(rng_seed)
        self.nn: Optional[NearestNeighbors] = nearest_neighbors
        self.tree = MotionTree(self.params.max_motions)
        self.stats = PlannerStats()
        self._goal_motions: List[int] = []
        self._best_idx: Optional[int] = None
        self._starts_added = 0
        self._setup_done = False
        self._solving = False

    # Configuration

    def params_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self.params)

    def set_param(self, name: str, value: Any) -> None:
        """Set a parameter by name ("range" is accepted for max_distance)."""
        key = _PARAM_ALIASES.get(name, name)
        if key not in self.params_dict():
            raise ConfigurationError(f"Unknown parameter '{name}'")
        current = getattr(self.params, key)
        if isinstance(current, bool) and isinstance(value, str):
            value = value.strip().lower() in ("1", "true", "yes", "on")
        self.params = dataclasses.replace(self.params, **{key: type(current)(value)})
        self.tree.max_motions = self.params.max_motions
        self._setup_done = False

    def set_nearest_neighbors(self, nn: NearestNeighbors) -> None:
        """Swap the nearest-neighbor backend; motions already in the tree are re-indexed."""
        if self._solving:
            raise RuntimeError("Cannot change the nearest-neighbor index during solve()")
        nn.clear()
        for i, motion in enumerate(self.tree):
            nn.add(i, motion.state)
        self.nn = nn

    @property
    def max_distance(self) -> float:
        return self.params.max_distance

    # Lifecycle

    def setup(self) -> None:
        self._check_problem()
        if self.params.max_distance <= 0.0:
            self.params.max_distance = DEFAULT_RANGE_FRACTION * self.si.maximum_extent()
            logger.info("%s: range set to %.4f", self.name, self.params.max_distance)
        if self.params.goal_bias > 0.0 and not self.pdef.goal.can_sample:
            logger.warning("%s: goal cannot be sampled, goal bias is ignored", self.name)
        if self.nn is None:
            self.nn = default_nearest_neighbors(self.si.space)
        self._setup_done = True

    def _check_problem(self) -> None:
        """Raise ConfigurationError unless the space, starts, goal and parameters fit together."""
        if self.si is None or getattr(self.si, "space", None) is None:
            raise ConfigurationError("No state space configured")
        if self.pdef is None:
            raise ConfigurationError("No problem definition configured")
        if self.pdef.goal is None:
            raise ConfigurationError("No goal configured")
        if not self.pdef.start_states:
            raise ConfigurationError("No start states configured")
        self.params.validate()
        dim = self.si.dimension
        for st in self.pdef.start_states:
            if st.size != dim:
                raise ConfigurationError(f"Start state {st} does not have dimension {dim}")
            if not self.si.is_valid(st):
                raise ConfigurationError(f"Start state {st} is invalid")
        goal = self.pdef.goal
        center = getattr(goal, "center", None)
        if center is not None and np.asarray(center).size != dim:
            raise ConfigurationError(f"Goal does not have dimension {dim}")
        try:
            goal.is_satisfied(self.pdef.start_states[0])
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(f"Goal cannot be evaluated on {dim}-dimensional states") from exc

    def clear(self) -> None:
        if self._solving:
            raise RuntimeError("Cannot clear the planner during solve()")
        self.tree.clear()
        if self.nn is not None:
            self.nn.clear()
        self._goal_motions = []
        self._best_idx = None
        self._starts_added = 0
        self.stats = PlannerStats()
        if self.pdef is not None:
            self.pdef.clear_solution()

    def solve(self, ptc: TerminationCondition) -> PlannerStatus:
        """Grow and rewire the tree until `ptc()` fires or a good enough solution is found."""
        ptc = as_condition(ptc)
        if self._setup_done:
            # starts or goal may have changed on the problem definition since setup()
            self._check_problem()
        else:
            self.setup()
        if self._solving:
            raise RuntimeError("solve() is already running on this planner")
        self._solving = True
        try:
            return self._solve(ptc)
        finally:
            self._solving = False

    # Growth loop

    def _solve(self, ptc: TerminationCondition) -> PlannerStatus:
        start_time = time.time()
        goal = self.pdef.goal
        self._add_start_states()
        logger.info("%s: starting with %d states", self.name, len(self.tree))

        iterations = 0
        invalid = 0
        rewires = 0
        try:
            while not self._good_enough() and not ptc():
                iterations += 1
                rand = self._sample_state()
                nearest_idx = self.nn.nearest(rand)
                x_nearest = self.tree[nearest_idx].state
                x_new = self._steer(x_nearest, rand)
                if not self.si.check_motion(x_nearest, x_new):
                    invalid += 1
                    continue

                radius = self.rewiring_radius(len(self.tree))
                neighbors = self.nn.nearest_r(x_new, radius)
                if not neighbors:
                    neighbors = [nearest_idx]

                parent_idx, new_cost = self._choose_parent(neighbors, nearest_idx, x_new)
                new_idx = self._add_motion(x_new, parent_idx, new_cost)
                rewires += self._rewire_neighbors(new_idx, neighbors)

                if goal.is_satisfied(x_new):
                    self._goal_motions.append(new_idx)
                    self.stats.solutions_found += 1
                self._update_best()
        finally:
            self.stats.iterations += iterations
            self.stats.invalid_motions += invalid
            self.stats.rewires += rewires
            self.stats.nodes = len(self.tree)
            self.stats.time += time.time() - start_time
            self.stats.best_cost = self.best_cost

        solution = self.best_solution()
        if solution is not None:
            self.pdef.set_solution(solution)
        logger.info(
            "%s: %d states in tree after %d iterations (%d invalid, %d rewires), best cost %s",
            self.name,
            len(self.tree),
            iterations,
            invalid,
            rewires,
            "none" if solution is None else f"{solution.cost:.4f}",
        )
        return PlannerStatus.EXACT_SOLUTION if solution is not None else PlannerStatus.TIMEOUT

    def _add_start_states(self) -> None:
        goal = self.pdef.goal
        for st in self.pdef.start_states[self._starts_added :]:
            idx = self._add_motion(st, -1, 0.0)
            self._starts_added += 1
            if goal.is_satisfied(self.tree[idx].state):
                self._goal_motions.append(idx)
                self.stats.solutions_found += 1
        self._update_best()

    def _good_enough(self) -> bool:
        """A solution of zero cost, or one below the goal's maximum path length, ends the run."""
        cost = self.best_cost
        if cost is None:
            return False
        max_length = self.pdef.goal.max_path_length
        return cost <= 0.0 or (math.isfinite(max_length) and cost < max_length)

    def _sample_state(self) -> np.ndarray:
        goal = self.pdef.goal
        self.stats.samples += 1
        if goal.can_sample and self.rng.random() < self.params.goal_bias:
            self.stats.goal_samples += 1
            return np.asarray(goal.sample_goal(self.rng), dtype=float)
        return self.si.sample_state(self.rng)

    def _steer(self, source: np.ndarray, target: np.ndarray) -> np.ndarray:
        """Move from source toward target by at most the configured range."""
        d = self.si.distance(source, target)
        if d <= self.params.max_distance:
            return np.array(target, dtype=float)
        return self.si.space.interpolate(source, target, self.params.max_distance / d)

    def rewiring_radius(self, n: int) -> float:
        """Ball radius c * (log(n) / n)^(1/d), capped by max_ball_radius when set."""
        if n < 2:
            return 0.0
        r = self.params.ball_radius_constant * (math.log(n) / n) ** (1.0 / self.si.dimension)
        if self.params.max_ball_radius > 0.0:
            r = min(r, self.params.max_ball_radius)
        return r

    def _choose_parent(self, neighbors: List[int], nearest_idx: int, x_new: np.ndarray) -> Tuple[int, float]:
        # The motion from the nearest node was validated while steering.
        candidates = list(neighbors)
        if nearest_idx not in candidates:
            candidates.insert(0, nearest_idx)
        best_parent = -1
        best_cost = math.inf
        for idx in candidates:
            node = self.tree[idx]
            cand_cost = node.cost + self.si.distance(node.state, x_new)
            if cand_cost >= best_cost:
                continue
            if idx != nearest_idx and not self.si.check_motion(node.state, x_new):
                continue
            best_parent = idx
            best_cost = cand_cost
        return best_parent, best_cost

    def _rewire_neighbors(self, new_idx: int, neighbors: List[int]) -> int:
        new_node = self.tree[new_idx]
        rewired = 0
        for idx in neighbors:
            if idx == new_node.parent or idx == new_idx:
                continue
            node = self.tree[idx]
            proposed_cost = new_node.cost + self.si.distance(new_node.state, node.state)
            if proposed_cost + 1e-9 >= node.cost:
                continue
            if not self.si.check_motion(new_node.state, node.state):
                continue
            if self.tree.is_ancestor(idx, new_idx):
                continue
            self.tree.reparent(idx, new_idx, proposed_cost, propagate=self.params.propagate_costs)
            rewired += 1
        return rewired

    def _add_motion(self, state: np.ndarray, parent: int, cost: float) -> int:
        # Index first so a failed insert can be rolled back and both stay in sync.
        handle = len(self.tree)
        try:
            self.nn.add(handle, state)
        except MemoryError as exc:
            raise AllocationError("Out of memory while growing the nearest-neighbor index") from exc
        try:
            return self.tree.insert(state, parent, cost)
        except AllocationError:
            self.nn.remove(handle)
            raise

    def _update_best(self) -> None:
        best_idx = self._best_idx
        best_cost = math.inf if best_idx is None else self.tree[best_idx].cost
        for idx in self._goal_motions:
            cost = self.tree[idx].cost
            if cost < best_cost:
                best_idx, best_cost = idx, cost
        if best_idx != self._best_idx:
            logger.debug("%s: best solution cost %.4f", self.name, best_cost)
        self._best_idx = best_idx

    # Results

    @property
    def best_cost(self) -> Optional[float]:
        if self._best_idx is None:
            return None
        return self.tree[self._best_idx].cost

    def best_solution(self) -> Optional[PlannerPath]:
        if self._best_idx is None:
            return None
        return PlannerPath(self.tree.states_to(self._best_idx), self.tree[self._best_idx].cost)

    def export_graph(self) -> PlannerData:
        return PlannerData(
            vertices=[m.state.copy() for m in self.tree],
            edges=self.tree.edges(),
            costs=[m.cost for m in self.tree],
            start_vertices=self.tree.roots(),
            goal_vertices=list(self._goal_motions),
        )
