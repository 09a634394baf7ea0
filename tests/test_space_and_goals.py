import math
import unittest

import numpy as np

from optrrt import (
    DiscValidityChecker,
    GoalRegion,
    GoalState,
    GridMap,
    GridValidityChecker,
    PlannerPath,
    ProblemDefinition,
    RealVectorStateSpace,
    SpaceInformation,
)


class TestRealVectorStateSpace(unittest.TestCase):
    def test_bounds_and_extent(self):
        space = RealVectorStateSpace([0.0, -1.0, 0.0], [2.0, 1.0, 1.0])
        self.assertEqual(space.dimension, 3)
        self.assertAlmostEqual(space.maximum_extent(), 3.0)
        self.assertTrue(space.satisfies_bounds(np.array([1.0, 0.0, 0.5])))
        self.assertFalse(space.satisfies_bounds(np.array([1.0, 0.0, 1.5])))
        self.assertFalse(space.satisfies_bounds(np.array([1.0, 0.0])))
        self.assertTrue(np.allclose(space.enforce_bounds(np.array([3.0, -2.0, 0.5])), [2.0, -1.0, 0.5]))

    def test_rejects_bad_bounds(self):
        with self.assertRaises(ValueError):
            RealVectorStateSpace([0.0, 0.0], [1.0])
        with self.assertRaises(ValueError):
            RealVectorStateSpace([0.0, 1.0], [1.0, 1.0])

    def test_interpolate_and_distance(self):
        space = RealVectorStateSpace.unit_box(2)
        a = np.array([0.0, 0.0])
        b = np.array([0.6, 0.8])
        self.assertAlmostEqual(space.distance(a, b), 1.0)
        self.assertTrue(np.allclose(space.interpolate(a, b, 0.5), [0.3, 0.4]))

    def test_uniform_samples_in_bounds(self):
        space = RealVectorStateSpace([-1.0, 2.0], [1.0, 3.0])
        rng = np.random.default_rng(0)
        for _ in range(500):
            self.assertTrue(space.satisfies_bounds(space.sample_uniform(rng)))


class TestGoals(unittest.TestCase):
    def test_region_membership_and_distance(self):
        goal = GoalRegion((1.0, 1.0), 0.05)
        self.assertTrue(goal.is_satisfied(np.array([0.97, 0.98])))
        self.assertFalse(goal.is_satisfied(np.array([0.9, 0.9])))
        self.assertAlmostEqual(goal.distance_goal(np.array([1.0, 0.5])), 0.45)
        self.assertEqual(goal.distance_goal(np.array([1.0, 1.0])), 0.0)
        self.assertTrue(math.isinf(goal.max_path_length))

    def test_region_samples_inside_ball(self):
        goal = GoalRegion((0.5, 0.5, 0.5), 0.1)
        rng = np.random.default_rng(5)
        samples = np.array([goal.sample_goal(rng) for _ in range(1000)])
        d = np.linalg.norm(samples - 0.5, axis=1)
        self.assertTrue(np.all(d <= 0.1 + 1e-12))
        # uniform in volume: about half the samples lie beyond 0.1 * 0.5^(1/3)
        outer = np.mean(d > 0.1 * 0.5 ** (1.0 / 3.0))
        self.assertAlmostEqual(outer, 0.5, delta=0.06)

    def test_goal_state_samples_itself(self):
        goal = GoalState((0.2, 0.3))
        rng = np.random.default_rng(1)
        self.assertTrue(np.array_equal(goal.sample_goal(rng), [0.2, 0.3]))
        self.assertTrue(goal.is_satisfied(np.array([0.2, 0.3])))
        self.assertFalse(goal.is_satisfied(np.array([0.2, 0.31])))

    def test_negative_threshold_rejected(self):
        with self.assertRaises(ValueError):
            GoalRegion((0.0, 0.0), -1.0)


class TestValidity(unittest.TestCase):
    def test_disc_checker(self):
        checker = DiscValidityChecker(centers=[(0.5, 0.5), (0.1, 0.9)], radii=[0.2, 0.05])
        self.assertFalse(checker.is_valid(np.array([0.5, 0.6])))
        self.assertFalse(checker.is_valid(np.array([0.1, 0.88])))
        self.assertTrue(checker.is_valid(np.array([0.9, 0.1])))

    def test_disc_checker_without_obstacles(self):
        checker = DiscValidityChecker(centers=[], radii=[])
        self.assertTrue(checker.is_valid(np.array([0.5, 0.5])))
        si = SpaceInformation(RealVectorStateSpace.unit_box(2), checker)
        self.assertTrue(si.check_motion(np.array([0.0, 0.0]), np.array([1.0, 1.0])))

    def test_motion_through_obstacle_is_invalid(self):
        space = RealVectorStateSpace.unit_box(2)
        checker = DiscValidityChecker(centers=[(0.5, 0.5)], radii=[0.1])
        si = SpaceInformation(space, checker, resolution=0.005)
        self.assertFalse(si.check_motion(np.array([0.1, 0.5]), np.array([0.9, 0.5])))
        self.assertTrue(si.check_motion(np.array([0.1, 0.1]), np.array([0.9, 0.1])))
        self.assertFalse(si.check_motion(np.array([0.5, 0.9]), np.array([0.5, 1.1])))

    def test_grid_checker(self):
        grid_map = GridMap.empty((1.0, 1.0), resolution=0.05)
        grid_map.fill_rect((0.4, 0.0), (0.6, 0.7))
        checker = GridValidityChecker(grid_map)
        self.assertFalse(checker.is_valid(np.array([0.5, 0.3])))
        self.assertTrue(checker.is_valid(np.array([0.5, 0.9])))
        self.assertFalse(checker.is_valid(np.array([-0.5, 0.5])))

        si = SpaceInformation(grid_map.state_space(), checker)
        self.assertFalse(si.check_motion(np.array([0.1, 0.3]), np.array([0.9, 0.3])))
        self.assertTrue(si.check_motion(np.array([0.1, 0.9]), np.array([0.9, 0.9])))

    def test_grid_free_point_sampler(self):
        grid_map = GridMap.empty((1.0, 1.0), resolution=0.1)
        grid_map.fill_rect((0.0, 0.0), (1.0, 0.45))
        rng = np.random.default_rng(2)
        for _ in range(100):
            p = grid_map.random_free_point(rng)
            self.assertFalse(grid_map.is_occupied(p[0], p[1]))

    def test_inflate_grows_obstacles(self):
        grid_map = GridMap.empty((1.0, 1.0), resolution=0.1)
        grid_map.fill_rect((0.5, 0.5), (0.5, 0.5))
        inflated = grid_map.inflate(0.1)
        self.assertTrue(inflated.is_occupied(0.4, 0.5))
        self.assertTrue(inflated.is_occupied(0.6, 0.6))
        self.assertFalse(inflated.is_occupied(0.3, 0.5))
        self.assertFalse(grid_map.is_occupied(0.4, 0.5))


class TestProblemDefinition(unittest.TestCase):
    def test_start_and_goal_helpers(self):
        pdef = ProblemDefinition.from_states((0.0, 0.0), (1.0, 1.0), threshold=0.1)
        self.assertIsInstance(pdef.goal, GoalState)
        pdef.add_start_state((0.5, 0.0))
        self.assertEqual(len(pdef.start_states), 2)
        pdef.clear_start_states()
        self.assertEqual(pdef.start_states, [])

        pdef.set_solution(PlannerPath([np.zeros(2)], 0.0))
        self.assertTrue(pdef.has_solution())
        pdef.set_goal(GoalRegion((0.5, 0.5), 0.1))
        self.assertFalse(pdef.has_solution())


class TestPlannerPath(unittest.TestCase):
    def test_length_and_densify(self):
        path = PlannerPath([np.array([0.0, 0.0]), np.array([1.0, 0.0]), np.array([1.0, 1.0])], cost=2.0)
        self.assertAlmostEqual(path.length(), 2.0)
        dense = path.densify(0.3)
        self.assertAlmostEqual(dense.length(), 2.0)
        self.assertEqual(len(dense), 9)
        self.assertEqual(path.as_array().shape, (3, 2))
        with self.assertRaises(ValueError):
            path.densify(0.0)

    def test_length_under_custom_distance(self):
        path = PlannerPath([np.array([0.0, 0.0]), np.array([1.0, 1.0]), np.array([2.0, 1.0])], cost=3.0)

        def manhattan(a, b):
            return float(np.abs(np.asarray(a) - np.asarray(b)).sum())

        self.assertAlmostEqual(path.length(manhattan), 3.0)
        self.assertAlmostEqual(path.length(), math.sqrt(2.0) + 1.0)


if __name__ == "__main__":
    unittest.main()
