#!/usr/bin/env python

"""Flatten compiled two-level alternation rules.

An alternation rule ab -> cd comes out of rule compilation with every
changed symbol pair spelled as a three-arc chain around a separator marker:

    src --x--> int1 --SEP--> int2 --y--> dest

where x is the upper (input) symbol and y the lower (output) one. A
"hard epsilon" symbol stands in for epsilon inside the chain, so that
epsilon removal elsewhere cannot pull the chain apart. synchronize_alt_rule()
adds the direct arc src --x:y--> dest for every such chain and then removes
the separator arcs."""

import logging
from typing import TYPE_CHECKING

from wildfst.atomic import EPSILON
from wildfst._private.deferred import ArcBuffer, redirect_to_sink

if TYPE_CHECKING:
    from wildfst.fst import FST

logger = logging.getLogger(__file__)


def synchronize_alt_rule(fst: 'FST', separator: int, hard_epsilon: int, other_id: int, other_nonid: int):
    """Replace each x SEP y chain with a single x:y arc, in place.

       x is the input of an arc leaving src whose output is x itself (after
       output projection) or epsilon; y is the output label of any arc leaving
       int2. A hard epsilon counts as epsilon throughout. When only one of
       x, y is OTHER_ID it becomes OTHER_NONID. All combinations of matching
       arcs are added, with weight 0.0. Afterwards every arc whose input is
       the separator is removed, along with the states only they reached.
    """

    def _unharden(label):
        return EPSILON if label == hard_epsilon else label

    staged = ArcBuffer()
    index = {}  # state -> {ilabel: [arcs]}, built when first needed

    def _arcs_labeled(state, label):
        if state not in index:
            index[state] = fst.states[state].arcsin
        return index[state].get(label, ())

    # First pass: link x and y around the separator
    for src in range(len(fst.states)):
        for arc1 in fst.arcs(src):
            x = _unharden(arc1.ilabel)
            if _unharden(arc1.olabel) not in (x, EPSILON):
                continue
            for sep_arc in _arcs_labeled(arc1.nextstate, separator):
                for arc3 in fst.arcs(sep_arc.nextstate):
                    if arc3.ilabel == separator or arc3.olabel == separator:
                        continue
                    ilabel, olabel = x, _unharden(arc3.olabel)
                    if ilabel == other_id and olabel != other_id:
                        ilabel = other_nonid
                    elif olabel == other_id and ilabel != other_id:
                        olabel = other_nonid
                    staged.stage(src, ilabel, olabel, 0.0, arc3.nextstate)
    linked = staged.apply(fst)

    # Second pass: get rid of the separator arcs
    removed = redirect_to_sink(fst, lambda arc: arc.ilabel == separator)
    logger.debug("alternation rule: %d arcs linked, %d separator arcs removed", linked, removed)
