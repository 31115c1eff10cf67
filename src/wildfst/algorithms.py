#!/usr/bin/env python

"""Wildcard-aware operations built from the generic FST algorithms and the
passes in wildfst.wildcard. These are what a rule compiler calls; the FST
methods of the same names know nothing about wildcards."""

import logging
from typing import Iterable, Literal

from wildfst.atomic import EPSILON
from wildfst.fst import FST
from wildfst import wildcard
from wildfst._private.exceptions import LabelConfigError

logger = logging.getLogger(__file__)


class Wildcards:
    """The label ids reserved for the two wildcards (and epsilon).

       Construction checks that the three ids are distinct non-negative
       integers and raises LabelConfigError otherwise."""
    __slots__ = ['other_id', 'other_nonid', 'epsilon']

    def __init__(self, other_id: int, other_nonid: int, epsilon: int = EPSILON):
        for name, value in (("other_id", other_id), ("other_nonid", other_nonid), ("epsilon", epsilon)):
            if not isinstance(value, int) or value < 0:
                raise LabelConfigError(f"{name} must be a non-negative integer, not {value!r}")
        if len({other_id, other_nonid, epsilon}) != 3:
            raise LabelConfigError(f"Label ids must be distinct: other_id={other_id}, "
                                   f"other_nonid={other_nonid}, epsilon={epsilon}")
        self.other_id = other_id
        self.other_nonid = other_nonid
        self.epsilon = epsilon

    def __repr__(self):
        return f"Wildcards(other_id={self.other_id}, other_nonid={self.other_nonid}, epsilon={self.epsilon})"

    def is_wildcard(self, label: int) -> bool:
        return label == self.other_id or label == self.other_nonid

    def concrete(self, labels: Iterable[int]) -> set:
        """The labels that are neither epsilon nor a wildcard."""
        return {l for l in labels if l != self.epsilon and not self.is_wildcard(l)}

    def check_alphabet(self, sigma: Iterable[int]) -> list:
        """Return sigma as a list, raising LabelConfigError if it repeats a
           symbol or contains epsilon or a wildcard."""
        sigma = list(sigma)
        bad = [c for c in sigma if c == self.epsilon or self.is_wildcard(c)]
        if bad:
            raise LabelConfigError(f"Alphabet contains reserved labels: {bad}")
        if len(set(sigma)) != len(sigma):
            raise LabelConfigError("Alphabet contains repeated symbols")
        return sigma


# ==================
# Basic networks
# ==================

def one_arc(ilabel: int, olabel: int, wildcards: Wildcards, weight=0.0) -> FST:
    """Two states and one ilabel:olabel arc; wildcards stay out of the alphabet."""
    newfst = FST((ilabel, olabel), weight = weight, alphabet = wildcards.concrete((ilabel, olabel)))
    return newfst


def sigma(wildcards: Wildcards) -> FST:
    """Any single symbol, i.e. '.'"""
    return one_arc(wildcards.other_id, wildcards.other_id, wildcards)


def sigma_sigma(wildcards: Wildcards) -> FST:
    """Any single symbol to any single symbol, i.e. '.:.'"""
    return sigma(wildcards).union(one_arc(wildcards.other_nonid, wildcards.other_nonid, wildcards))


def universal_language(wildcards: Wildcards) -> FST:
    """.* as a one-state network."""
    newfst = FST()
    newfst.set_start(newfst.add_state(finalweight = 0.0))
    newfst.add_arc(newfst.start, wildcards.other_id, wildcards.other_id, newfst.start)
    return newfst


def universal_relation(wildcards: Wildcards) -> FST:
    """(.:.)* as a one-state network."""
    newfst = universal_language(wildcards)
    newfst.add_arc(newfst.start, wildcards.other_nonid, wildcards.other_nonid, newfst.start)
    return newfst


# ==================
# Sigma bookkeeping
# ==================

def contains_other(fst: FST, wildcards: Wildcards) -> bool:
    return any(wildcards.is_wildcard(l) for l in fst.labels())


def correct_sigma_other(fst: FST, wildcards: Wildcards) -> FST:
    """Bring fst.alphabet in line with the labels on its arcs, in place.
       Without wildcard arcs the alphabet is exactly the concrete labels used.
       With them, symbols already in the alphabet stay: the wildcards must
       keep excluding them even if no arc mentions them any more."""
    seen = wildcards.concrete(fst.labels())
    if contains_other(fst, wildcards):
        fst.alphabet = fst.alphabet | seen
    else:
        fst.alphabet = seen
    return fst


def promote_sigma_other(fst: FST, other_sigma: Iterable[int], wildcards: Wildcards, copy=True) -> FST:
    """Make fst aware of the symbols in other_sigma before it meets a network
       that uses them. Symbols fst does not know yet are spelled out next to
       its wildcard arcs and added to its alphabet. Returns fst itself when
       nothing needs doing, otherwise the promoted network (a copy of fst if
       'copy' is True)."""
    if not contains_other(fst, wildcards):
        return fst
    new_symbols = wildcards.concrete(other_sigma) - fst.alphabet
    if not new_symbols:
        logger.debug("alphabet promotion: nothing new")
        return fst
    result = fst.__copy__() if copy else fst
    added = wildcard.expand_other_arcs(result, sorted(new_symbols), wildcards.other_id, wildcards.other_nonid)
    result.alphabet |= added
    return result


def expand_alphabet(fst: FST, sigma: Iterable[int], wildcards: Wildcards, limit = None) -> frozenset:
    """Checked front end to wildcard.expand_other_arcs(): raises
       LabelConfigError if sigma repeats a symbol or contains epsilon or a
       wildcard, otherwise expands fst in place and adds sigma to its alphabet."""
    added = wildcard.expand_other_arcs(fst, wildcards.check_alphabet(sigma),
                                       wildcards.other_id, wildcards.other_nonid, limit = limit)
    fst.alphabet |= added
    return added


# ==================
# Operations
# ==================

def compose(a: FST, b: FST, wildcards: Wildcards) -> FST:
    """A o B with wildcards treated correctly at the seam. Does not modify a or b."""
    a = promote_sigma_other(a.__copy__(), b.alphabet, wildcards, copy = False)
    b = promote_sigma_other(b.__copy__(), a.alphabet, wildcards, copy = False)
    wildcard.demote_output_other(a, wildcards.other_id, wildcards.other_nonid)
    wildcard.demote_input_other(b, wildcards.other_id, wildcards.other_nonid)
    result = a.compose(b)
    wildcard.fix_other_after_compose(result, wildcards.other_id, wildcards.other_nonid)
    result.alphabet = a.alphabet | b.alphabet
    correct_sigma_other(result, wildcards)
    return result.connect()


def project(fst: FST, wildcards: Wildcards, side: Literal['input', 'output'] = 'input') -> FST:
    """Input or output projection as an acceptor, wildcards reinterpreted."""
    if side == 'input':
        result = fst.project(dim = 0)
        wildcard.input_projection_fix_other(result, wildcards.other_id, wildcards.other_nonid)
    elif side == 'output':
        result = fst.project(dim = -1)
        wildcard.output_projection_fix_other(result, wildcards.other_id, wildcards.other_nonid)
    else:
        raise ValueError(f"side must be 'input' or 'output', not {side!r}")
    correct_sigma_other(result, wildcards)
    return result.connect()


def input_projection(fst: FST, wildcards: Wildcards) -> FST:
    return project(fst, wildcards, side = 'input')


def output_projection(fst: FST, wildcards: Wildcards) -> FST:
    return project(fst, wildcards, side = 'output')


def close_sigma(fst: FST, other_sigma: Iterable[int], wildcards: Wildcards) -> FST:
    """Finalize the alphabet of fst: the wildcards are spelled out over the
       symbols of other_sigma that fst does not know yet, and then removed,
       so the result only ever matches symbols it names explicitly."""
    result = promote_sigma_other(fst, other_sigma, wildcards)
    if result is fst:
        result = fst.__copy__()
    wildcard.delete_other_arcs(result, wildcards.other_id, wildcards.other_nonid)
    return result


def crossproduct(a: FST, b: FST, wildcards: Wildcards) -> FST:
    """a:b, computed as a o (.:.)* o b."""
    return compose(compose(a, universal_relation(wildcards), wildcards), b, wildcards)


def is_semantic_acceptor(fst: FST, wildcards: Wildcards) -> bool:
    return wildcard.is_semantic_acceptor(fst, wildcards.other_nonid)
