import unittest

from wildfst.fst import FST
from wildfst.atomic import EPSILON
from wildfst.altrule import synchronize_alt_rule

OID, ONID = 100, 101
SEP, HARD = 50, 51


def synced(arcs, finals):
    fst = FST.from_arcs(arcs, finals = finals)
    synchronize_alt_rule(fst, SEP, HARD, OID, ONID)
    return fst


def label_pairs(fst):
    return {arc.label for _, arc in fst.all_arcs()}


class TestAltRule(unittest.TestCase):

    def test_epsilon_chain(self):
        fst = synced([(0, 1, EPSILON, 1), (1, SEP, SEP, 2), (2, EPSILON, 3, 3)], finals = [3])
        self.assertEqual(len(fst), 2)
        self.assertEqual([(cost, path) for cost, path in fst.words()], [(0.0, [(1, 3)])])
        self.assertNotIn(SEP, fst.labels())

    def test_projected_chain(self):
        # ab -> cd after output projection: a > c b > d
        fst = synced([(0, 1, 1, 1), (1, SEP, SEP, 2), (2, 3, 3, 3),
                      (3, 2, 2, 4), (4, SEP, SEP, 5), (5, 4, 4, 6)], finals = [6])
        self.assertEqual(len(fst), 3)
        self.assertEqual({tuple(p) for _, p in fst.words()}, {((1, 3), (2, 4))})

    def test_cross_product_of_matches(self):
        fst = synced([(0, 1, 1, 1), (0, 2, 2, 1), (1, SEP, SEP, 2), (2, 3, 3, 3), (2, 4, 4, 3),
                      (0, 5, 5, 3)], finals = [3])
        self.assertEqual(label_pairs(fst), {(1, 3), (1, 4), (2, 3), (2, 4), (5, 5)})
        self.assertEqual(len(fst), 2)

    def test_hard_epsilon(self):
        fst = synced([(0, HARD, HARD, 1), (1, SEP, SEP, 2), (2, 3, 3, 3),
                      (0, 1, 1, 4), (4, SEP, SEP, 5), (5, HARD, HARD, 3)], finals = [3])
        self.assertEqual(label_pairs(fst), {(EPSILON, 3), (1, EPSILON)})

    def test_wildcards_resolved_per_pair(self):
        fst = synced([(0, OID, OID, 1), (1, SEP, SEP, 2), (2, 3, 3, 3), (2, OID, OID, 3),
                      (0, 4, 4, 4), (4, SEP, SEP, 5), (5, OID, OID, 3)], finals = [3])
        self.assertEqual(label_pairs(fst), {(ONID, 3), (OID, OID), (4, ONID)})

    def test_new_arcs_unweighted(self):
        fst = synced([(0, 1, 1, 1, 1.0), (1, SEP, SEP, 2, 2.0), (2, 3, 3, 3, 4.0)], finals = {3: 0.5})
        self.assertEqual(list(fst.words()), [(0.5, [(1, 3)])])

    def test_stray_separator_removed(self):
        fst = synced([(0, SEP, SEP, 1), (0, 1, 1, 1)], finals = [1])
        self.assertEqual(label_pairs(fst), {(1, 1)})

    def test_no_separator(self):
        fst = synced([(0, 1, 2, 1), (1, 3, 3, 2)], finals = [2])
        self.assertEqual({tuple(p) for _, p in fst.words()}, {((1, 2), (3, 3))})
        self.assertEqual(fst.arccount(), 2)


if __name__ == "__main__":
    unittest.main()
