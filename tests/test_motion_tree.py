import math
import unittest

import numpy as np

from optrrt import AllocationError, MotionTree


def build_chain(tree: MotionTree, points):
    parent = -1
    cost = 0.0
    handles = []
    for p in points:
        if parent >= 0:
            cost += math.dist(tree[parent].state, p)
        parent = tree.insert(np.array(p, dtype=float), parent, cost)
        handles.append(parent)
    return handles


class TestMotionTree(unittest.TestCase):
    def test_insert_and_path(self):
        tree = MotionTree()
        h = build_chain(tree, [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        self.assertEqual(len(tree), 3)
        self.assertEqual(tree.path_to(h[2]), h)
        states = tree.states_to(h[2])
        self.assertTrue(np.allclose(states[-1], [2.0, 0.0]))
        self.assertAlmostEqual(tree[h[2]].cost, 2.0)
        self.assertTrue(tree[h[0]].is_root)
        self.assertEqual(tree.roots(), [h[0]])
        self.assertEqual(tree.edges(), [(h[0], h[1]), (h[1], h[2])])

    def test_insert_copies_state(self):
        tree = MotionTree()
        state = np.array([0.5, 0.5])
        h = tree.insert(state)
        state[0] = 9.0
        self.assertEqual(tree[h].state[0], 0.5)

    def test_insert_rejects_unknown_parent(self):
        tree = MotionTree()
        with self.assertRaises(IndexError):
            tree.insert(np.zeros(2), parent=3, cost=1.0)

    def test_reparent_propagates_cost_to_subtree(self):
        tree = MotionTree()
        a, b, c, d = build_chain(tree, [(0.0, 0.0), (0.0, 2.0), (1.0, 2.0), (2.0, 2.0)])
        shortcut = tree.insert(np.array([0.5, 0.5]), a, math.hypot(0.5, 0.5))
        new_cost = tree[shortcut].cost + math.dist(tree[shortcut].state, tree[c].state)
        delta = tree.reparent(c, shortcut, new_cost)

        self.assertLess(delta, 0.0)
        self.assertEqual(tree[c].parent, shortcut)
        self.assertNotIn(c, tree.children_of(b))
        self.assertIn(c, tree.children_of(shortcut))
        for h in (c, d):
            m = tree[h]
            expected = tree[m.parent].cost + math.dist(tree[m.parent].state, m.state)
            self.assertAlmostEqual(m.cost, expected, places=9)

    def test_reparent_without_propagation_leaves_descendants(self):
        tree = MotionTree()
        a, _, c, d = build_chain(tree, [(0.0, 0.0), (0.0, 2.0), (1.0, 2.0), (2.0, 2.0)])
        old_d = tree[d].cost
        tree.reparent(c, a, math.dist(tree[a].state, tree[c].state), propagate=False)
        self.assertEqual(tree[d].cost, old_d)

    def test_reparent_rejects_cycle(self):
        tree = MotionTree()
        a, b, c = build_chain(tree, [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        with self.assertRaises(ValueError):
            tree.reparent(b, c, 0.0)
        with self.assertRaises(ValueError):
            tree.reparent(b, b, 0.0)
        self.assertEqual(tree[b].parent, a)

    def test_subtree_and_depth(self):
        tree = MotionTree()
        a, b, c = build_chain(tree, [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        e = tree.insert(np.array([1.0, 1.0]), b, 2.0)
        self.assertEqual(sorted(tree.subtree(b)), sorted([b, c, e]))
        self.assertEqual(tree.depth(a), 0)
        self.assertEqual(tree.depth(c), 2)
        self.assertTrue(tree.is_ancestor(a, e))
        self.assertFalse(tree.is_ancestor(c, e))

    def test_max_motions_raises_allocation_error(self):
        tree = MotionTree(max_motions=2)
        build_chain(tree, [(0.0, 0.0), (1.0, 0.0)])
        with self.assertRaises(AllocationError):
            tree.insert(np.array([2.0, 0.0]), 1, 2.0)
        self.assertEqual(len(tree), 2)

    def test_clear_is_idempotent(self):
        tree = MotionTree()
        tree.clear()
        build_chain(tree, [(0.0, 0.0), (1.0, 0.0)])
        tree.clear()
        tree.clear()
        self.assertEqual(len(tree), 0)
        self.assertEqual(tree.edges(), [])


if __name__ == "__main__":
    unittest.main()
