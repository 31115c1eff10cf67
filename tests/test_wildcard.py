import itertools
import unittest

from wildfst.fst import FST
from wildfst.atomic import EPSILON
from wildfst import wildcard
from wildfst._private.deferred import ArcBuffer, ArcRecord
from wildfst._private.exceptions import ExpansionLimitError

OID, ONID = 100, 101
WILD = (OID, ONID)


def arc_labels(fst):
    return sorted((src, arc.ilabel, arc.olabel, arc.nextstate) for src, arc in fst.all_arcs())


def label_pairs(fst):
    return {arc.label for _, arc in fst.all_arcs()}


def denotation(ilabel, olabel, sigma):
    """What an arc stands for once the symbols in sigma are known."""
    def _side(label):
        return sigma if label in WILD else [label]
    if ilabel == OID:
        return [(c, c) for c in sigma]
    if ilabel == ONID and olabel == ONID:
        return [(c, d) for c in sigma for d in sigma if c != d]
    return [(i, o) for i in _side(ilabel) for o in _side(olabel)]


def direct_language(fst, sigma, max_length):
    """Concrete label sequences of fst, evaluating wildcards against sigma."""
    result = set()
    for _, path in fst.words(max_length = max_length):
        for seq in itertools.product(*(denotation(i, o, sigma) for i, o in path)):
            result.add(seq)
    return result


class TestPreCompose(unittest.TestCase):

    def setUp(self):
        self.fst = FST.from_arcs([(0, OID, OID, 1), (0, OID, 1, 1), (0, 1, OID, 1), (0, 2, 3, 1)], finals = [1])

    def test_demote_input(self):
        wildcard.demote_input_other(self.fst, OID, ONID)
        self.assertEqual(label_pairs(self.fst), {(ONID, OID), (ONID, 1), (1, OID), (2, 3)})

    def test_demote_output(self):
        wildcard.demote_output_other(self.fst, OID, ONID)
        self.assertEqual(label_pairs(self.fst), {(OID, ONID), (OID, 1), (1, ONID), (2, 3)})


class TestPostCompose(unittest.TestCase):

    def test_identity_input_with_other_output(self):
        fst = FST.from_arcs([(0, OID, ONID, 1)], finals = [1])
        wildcard.fix_other_after_compose(fst, OID, ONID)
        self.assertEqual(arc_labels(fst), [(0, ONID, ONID, 1)])

    def test_nonid_pair_gets_identity_twin(self):
        fst = FST.from_arcs([(0, ONID, ONID, 1, 0.5)], finals = [1])
        wildcard.fix_other_after_compose(fst, OID, ONID)
        arcs = sorted((a.ilabel, a.olabel, a.weight, a.nextstate) for _, a in fst.all_arcs())
        self.assertEqual(arcs, [(OID, OID, 0.5, 1), (ONID, ONID, 0.5, 1)])

    def test_rewrite_table(self):
        fst = FST.from_arcs([(0, OID, 2, 1), (0, ONID, OID, 1), (0, 3, OID, 1),
                             (0, OID, OID, 1), (0, ONID, 4, 1), (0, 5, 6, 1)], finals = [1])
        wildcard.fix_other_after_compose(fst, OID, ONID)
        self.assertEqual(label_pairs(fst), {(ONID, 2), (ONID, ONID), (OID, OID), (3, ONID),
                                            (ONID, 4), (5, 6)})
        # OTHER_NONID:OTHER_ID is demoted, not twinned
        self.assertEqual(fst.arccount(), 6)

    def test_no_disallowed_pairs_remain(self):
        labels = [1, 2, OID, ONID]
        arcs = [(0, i, o, 1) for i in labels for o in labels]
        fst = FST.from_arcs(arcs, finals = [1])
        self.assertNotEqual(wildcard.disallowed_pairs(fst, OID, ONID), [])
        wildcard.fix_other_after_compose(fst, OID, ONID)
        self.assertEqual(wildcard.disallowed_pairs(fst, OID, ONID), [])

    def test_disallowed_pairs(self):
        fst = FST.from_arcs([(0, OID, 1, 1), (0, 1, OID, 1), (0, OID, ONID, 1), (0, ONID, OID, 1),
                             (0, OID, OID, 1), (0, ONID, ONID, 1), (0, ONID, 1, 1)], finals = [1])
        bad = {arc.label for _, arc in wildcard.disallowed_pairs(fst, OID, ONID)}
        self.assertEqual(bad, {(OID, 1), (1, OID), (OID, ONID), (ONID, OID)})


class TestExpandOther(unittest.TestCase):

    def test_nonid_pair(self):
        fst = FST.from_arcs([(0, ONID, ONID, 1)], finals = [1])
        added = wildcard.expand_other_arcs(fst, [1, 2], OID, ONID)
        self.assertEqual(added, frozenset({1, 2}))
        self.assertEqual(label_pairs(fst), {(ONID, ONID), (1, ONID), (ONID, 1), (2, ONID), (ONID, 2),
                                            (1, 2), (2, 1)})
        # new arcs are not expanded again
        self.assertEqual(fst.arccount(), 7)
        self.assertTrue(all(arc.nextstate == 1 for _, arc in fst.all_arcs()))

    def test_one_sided(self):
        fst = FST.from_arcs([(0, OID, OID, 1), (0, ONID, 3, 1), (0, 4, ONID, 1), (0, 5, 5, 1)], finals = [1])
        wildcard.expand_other_arcs(fst, [1, 2], OID, ONID)
        self.assertEqual(label_pairs(fst), {(OID, OID), (1, 1), (2, 2), (ONID, 3), (1, 3), (2, 3),
                                            (4, ONID), (4, 1), (4, 2), (5, 5)})

    def test_weights_and_targets_kept(self):
        fst = FST.from_arcs([(0, ONID, 3, 1, 0.25), (1, OID, OID, 0, 1.0)], finals = [1])
        wildcard.expand_other_arcs(fst, [7], OID, ONID)
        arcs = sorted((src, a.ilabel, a.olabel, a.weight, a.nextstate) for src, a in fst.all_arcs())
        self.assertEqual(arcs, [(0, 7, 3, 0.25, 1), (0, ONID, 3, 0.25, 1),
                                (1, 7, 7, 1.0, 0), (1, OID, OID, 1.0, 0)])

    def test_empty_sigma(self):
        fst = FST.from_arcs([(0, ONID, ONID, 1)], finals = [1])
        self.assertEqual(wildcard.expand_other_arcs(fst, [], OID, ONID), frozenset())
        self.assertEqual(fst.arccount(), 1)

    def test_limit(self):
        fst = FST.from_arcs([(0, ONID, ONID, 1)], finals = [1])
        with self.assertRaises(ExpansionLimitError) as cm:
            wildcard.expand_other_arcs(fst, [1, 2, 3], OID, ONID, limit = 5)
        self.assertIsInstance(cm.exception, MemoryError)
        self.assertEqual(cm.exception.limit, 5)
        # a limit that suffices changes nothing
        fst = FST.from_arcs([(0, ONID, ONID, 1)], finals = [1])
        wildcard.expand_other_arcs(fst, [1, 2, 3], OID, ONID, limit = 12)
        self.assertEqual(fst.arccount(), 13)

    def test_limit_leaves_network_untouched(self):
        # the second state is the one that runs over the limit
        fst = FST.from_arcs([(0, OID, OID, 1), (1, ONID, ONID, 2)], finals = [2])
        before = arc_labels(fst)
        with self.assertRaises(ExpansionLimitError):
            wildcard.expand_other_arcs(fst, [1, 2, 3], OID, ONID, limit = 5)
        self.assertEqual(fst.arccount(), 2)
        self.assertEqual(arc_labels(fst), before)

    def test_progress(self):
        fst = FST.from_arcs([(0, OID, OID, 1)], finals = [1])
        wildcard.expand_other_arcs(fst, [1], OID, ONID, progress = True)
        self.assertEqual(label_pairs(fst), {(OID, OID), (1, 1)})


class TestArcBuffer(unittest.TestCase):

    def test_stage_and_apply(self):
        fst = FST.from_arcs([(0, 1, 1, 1)], finals = [1])
        buffer = ArcBuffer()
        buffer.stage(0, 2, 3, 0.5, 1)
        buffer.stage(1, 4, 4, 0.0, 0)
        self.assertEqual(len(buffer), 2)
        self.assertEqual(list(buffer), [ArcRecord(0, 2, 3, 0.5, 1), ArcRecord(1, 4, 4, 0.0, 0)])
        # nothing reaches the network before apply
        self.assertEqual(fst.arccount(), 1)
        self.assertEqual(buffer.apply(fst), 2)
        self.assertEqual(len(buffer), 0)
        self.assertEqual(label_pairs(fst), {(1, 1), (2, 3), (4, 4)})

    def test_memory_error_while_staging(self):
        class _FullList(list):
            def append(self, item):
                raise MemoryError

        buffer = ArcBuffer()
        buffer.stage(0, 1, 1, 0.0, 1)
        buffer.records = _FullList(buffer.records)
        with self.assertRaises(ExpansionLimitError) as cm:
            buffer.stage(0, 2, 2, 0.0, 1)
        self.assertIsInstance(cm.exception, MemoryError)
        self.assertIsInstance(cm.exception.__cause__, MemoryError)
        self.assertIsNone(cm.exception.limit)
        self.assertEqual(cm.exception.staged, 1)
        self.assertEqual(len(buffer), 0)
        self.assertEqual(list(buffer), [])


class TestDeleteOther(unittest.TestCase):

    def test_only_path_through_wildcard(self):
        fst = FST.from_arcs([(0, 1, 1, 1), (1, OID, OID, 2)], finals = [2])
        wildcard.delete_other_arcs(fst, OID, ONID)
        self.assertEqual(len(fst), 0)
        self.assertIsNone(fst.start)

    def test_wildcard_free_paths_kept(self):
        fst = FST.from_arcs([(0, 1, 1, 1), (1, OID, OID, 2), (1, 2, ONID, 2), (1, 2, 2, 3), (2, 3, 3, 3)],
                            finals = [3])
        wildcard.delete_other_arcs(fst, OID, ONID)
        self.assertEqual(len(fst), 3)
        self.assertEqual({tuple(p) for _, p in fst.words()}, {((1, 1), (2, 2))})
        self.assertFalse({OID, ONID} & fst.labels())

    def test_expand_then_delete_matches_wildcard_semantics(self):
        nets = [
            FST.from_arcs([(0, 1, 1, 1), (0, ONID, ONID, 1), (1, OID, OID, 2), (1, ONID, 2, 2),
                           (2, 1, ONID, 3), (2, EPSILON, 1, 3)], finals = [3]),
            FST.from_arcs([(0, ONID, EPSILON, 1), (1, EPSILON, ONID, 2), (0, OID, OID, 2), (2, 2, 2, 0)],
                          finals = [2]),
            FST.from_arcs([(0, ONID, ONID, 0), (0, OID, OID, 1), (1, 1, 2, 2)], finals = [1, 2]),
        ]
        sigma = [5, 6, 7]
        for net in nets:
            expected = direct_language(net, sigma, max_length = 4)
            result = net.copy()
            wildcard.expand_other_arcs(result, sigma, OID, ONID)
            wildcard.delete_other_arcs(result, OID, ONID)
            got = {tuple(p) for _, p in result.words(max_length = 4)}
            self.assertEqual(got, expected)


class TestProjection(unittest.TestCase):

    def setUp(self):
        self.fst = FST.from_arcs([(0, ONID, 1, 1), (0, 1, ONID, 1), (0, OID, OID, 1), (0, 2, 3, 1),
                                  (0, ONID, ONID, 1)], finals = [1])

    def test_input_projection(self):
        wildcard.input_projection_fix_other(self.fst, OID, ONID)
        self.assertEqual(label_pairs(self.fst), {(OID, OID), (1, 1), (2, 2)})
        self.assertTrue(self.fst.is_acceptor())

    def test_output_projection(self):
        wildcard.output_projection_fix_other(self.fst, OID, ONID)
        self.assertEqual(label_pairs(self.fst), {(OID, OID), (1, 1), (3, 3)})

    def test_idempotent(self):
        for fix in (wildcard.input_projection_fix_other, wildcard.output_projection_fix_other):
            fst = self.fst.copy()
            fix(fst, OID, ONID)
            once = arc_labels(fst)
            fix(fst, OID, ONID)
            self.assertEqual(arc_labels(fst), once)


class TestEpsilonSides(unittest.TestCase):

    def test_change_input_to_epsilon(self):
        fst = FST.from_arcs([(0, OID, OID, 1), (0, 1, 2, 1), (0, ONID, ONID, 1)], finals = [1])
        wildcard.change_input_to_epsilon(fst, OID, ONID)
        self.assertEqual(label_pairs(fst), {(EPSILON, ONID), (EPSILON, 2)})

    def test_change_output_to_epsilon(self):
        fst = FST.from_arcs([(0, OID, OID, 1), (0, 1, 2, 1)], finals = [1])
        wildcard.change_output_to_epsilon(fst, OID, ONID)
        self.assertEqual(label_pairs(fst), {(ONID, EPSILON), (1, EPSILON)})

    def test_is_semantic_acceptor(self):
        fst = FST.from_arcs([(0, 1, 1, 1), (1, OID, OID, 2)], finals = [2])
        self.assertTrue(wildcard.is_semantic_acceptor(fst, ONID))
        fst.add_arc(0, ONID, ONID, 2)
        self.assertFalse(wildcard.is_semantic_acceptor(fst, ONID))
        self.assertTrue(fst.is_acceptor())
        self.assertFalse(wildcard.is_semantic_acceptor(FST((1, 2)), ONID))


if __name__ == "__main__":
    unittest.main()
