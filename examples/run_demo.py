import csv
import logging
import math
import time
from pathlib import Path

import numpy as np

from optrrt import (
    DiscValidityChecker,
    GoalRegion,
    GridMap,
    GridValidityChecker,
    OptRRTPlanner,
    ProblemDefinition,
    RealVectorStateSpace,
    SpaceInformation,
    any_of,
    iteration_limit,
    timed,
)

try:
    import matplotlib.pyplot as plt
except ImportError:  # matplotlib is optional
    plt = None


def make_wall_map(resolution: float = 0.02, gap: float = 0.15) -> GridMap:
    """Unit square with a vertical wall at x=0.5 and a gap near the top."""
    grid_map = GridMap.empty((1.0, 1.0), resolution)
    grid_map.fill_rect((0.45, 0.0), (0.55, 1.0 - gap - 0.1))
    grid_map.fill_rect((0.45, 0.9), (0.55, 1.0))
    return grid_map


def make_disc_field(seed: int = 1, count: int = 12):
    rng = np.random.default_rng(seed)
    centers = rng.uniform(0.2, 0.8, size=(count, 2))
    radii = rng.uniform(0.03, 0.07, size=count)
    return DiscValidityChecker(centers, radii)


def scenario_slug(name: str) -> str:
    slug = "".join(c if c.isalnum() else "_" for c in name.lower())
    return "_".join([s for s in slug.split("_") if s])


def plot_solution(name: str, planner: OptRRTPlanner, grid_map, checker, out_dir: Path):
    if plt is None or planner.pdef.solution is None:
        return None
    fig, ax = plt.subplots(figsize=(5, 5))
    if grid_map is not None:
        h, w = grid_map.data.shape
        extent = [
            grid_map.origin[0],
            grid_map.origin[0] + w * grid_map.resolution,
            grid_map.origin[1],
            grid_map.origin[1] + h * grid_map.resolution,
        ]
        ax.imshow(grid_map.data, cmap="gray_r", origin="lower", extent=extent, vmin=0, vmax=1)
    if isinstance(checker, DiscValidityChecker):
        for c, r in zip(checker.centers, checker.radii):
            ax.add_patch(plt.Circle(c, r, color="gray"))
    path = planner.pdef.solution.as_array()
    start = planner.pdef.start_states[0]
    goal = planner.pdef.goal
    ax.scatter(start[0], start[1], c="green", marker="*", s=80, label="start")
    ax.add_patch(plt.Circle(goal.center, goal.threshold, color="red", alpha=0.4, label="goal"))
    ax.plot(path[:, 0], path[:, 1], linewidth=2, label=f"cost {planner.best_cost:.3f}")
    ax.set_xlim(0.0, 1.0)
    ax.set_ylim(0.0, 1.0)
    ax.set_aspect("equal")
    ax.set_title(name)
    ax.legend(loc="best")
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{scenario_slug(name)}.png"
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


def run_scenario(name: str, si: SpaceInformation, pdef: ProblemDefinition, results: list, plot_dir: Path, grid_map=None):
    print(f"\n=== Scenario: {name} ===")
    planner = OptRRTPlanner(si, pdef, max_distance=0.1, rng_seed=0)
    planner.setup()

    # Refine in rounds to show the cost improving on the same tree.
    for round_idx in range(3):
        t0 = time.time()
        solved = planner.solve(any_of(iteration_limit(1500), timed(5.0)))
        elapsed = time.time() - t0
        cost = planner.best_cost
        print(
            f"round {round_idx + 1}: solved={bool(solved)}, time={elapsed:.2f}s, "
            f"nodes={len(planner.tree)}, cost={cost if cost is None else round(cost, 4)}"
        )
        results.append(
            {
                "scenario": name,
                "round": round_idx + 1,
                "success": bool(solved),
                "cost": cost if cost is not None else math.nan,
                "nodes": len(planner.tree),
                "rewires": planner.stats.rewires,
                "time": elapsed,
            }
        )

    saved_plot = plot_solution(name, planner, grid_map, si.validity_checker, plot_dir)
    if saved_plot:
        print(f"Saved plot: {saved_plot}")


def main():
    logging.basicConfig(level=logging.WARNING)
    output_dir = Path(__file__).resolve().parent / "outputs"
    results = []

    space = RealVectorStateSpace.unit_box(2)
    si = SpaceInformation(space)
    pdef = ProblemDefinition([(0.0, 0.0)], GoalRegion((1.0, 1.0), 0.05))
    run_scenario("Open unit square", si, pdef, results, output_dir)

    checker = make_disc_field()
    si = SpaceInformation(space, checker, resolution=0.005)
    pdef = ProblemDefinition([(0.05, 0.05)], GoalRegion((0.95, 0.95), 0.05))
    run_scenario("Disc field", si, pdef, results, output_dir)

    wall = make_wall_map()
    # keep a 2 cm clearance from the wall
    clearance = wall.inflate(0.02)
    si = SpaceInformation(wall.state_space(), GridValidityChecker(clearance), sampler=clearance.random_free_point)
    pdef = ProblemDefinition([(0.1, 0.1)], GoalRegion((0.9, 0.1), 0.05))
    run_scenario("Wall with gap", si, pdef, results, output_dir, grid_map=wall)

    if results:
        output_dir.mkdir(parents=True, exist_ok=True)
        csv_path = output_dir / "results.csv"
        fieldnames = ["scenario", "round", "success", "cost", "nodes", "rewires", "time"]
        with csv_path.open("w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"\nSaved quantitative results: {csv_path}")
    else:
        print("\nNo results to save.")


if __name__ == "__main__":
    main()
