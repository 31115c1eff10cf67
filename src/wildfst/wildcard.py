#!/usr/bin/env python

"""In-place passes that keep the two wildcard labels meaningful.

Two labels stand for symbols outside a network's alphabet:

    OTHER_ID     any unknown symbol, mapped to itself (only ever OTHER_ID:OTHER_ID)
    OTHER_NONID  any unknown symbol, mapped freely (never paired with OTHER_ID)

Generic algorithms treat both as ordinary symbols, so they need help at
composition, projection and whenever the alphabet changes. Every pass takes
the label ids explicitly and mutates the network it is given. Passes that
add arcs or retarget them scan first and apply afterwards (see
wildfst._private.deferred)."""

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from tqdm import tqdm

from wildfst.atomic import Arc, EPSILON
from wildfst._private.deferred import ArcBuffer, redirect_to_sink

if TYPE_CHECKING:
    from wildfst.fst import FST

logger = logging.getLogger(__file__)


# ==================
# Composition
# ==================

def demote_input_other(fst: 'FST', other_id: int, other_nonid: int):
    """Change every input-side OTHER_ID to OTHER_NONID.

       Called on the right-hand network B before computing A o B. OTHER_ID
       binds its input to its output; matched literally against A's output
       it would fuse two unrelated bindings."""
    changed = 0
    for _, arc in fst.all_arcs():
        if arc.ilabel == other_id:
            arc.ilabel = other_nonid
            changed += 1
    logger.debug("demoted %d input-side OTHER_ID labels", changed)


def demote_output_other(fst: 'FST', other_id: int, other_nonid: int):
    """Change every output-side OTHER_ID to OTHER_NONID (the left-hand network A of A o B)."""
    changed = 0
    for _, arc in fst.all_arcs():
        if arc.olabel == other_id:
            arc.olabel = other_nonid
            changed += 1
    logger.debug("demoted %d output-side OTHER_ID labels", changed)


def fix_other_after_compose(fst: 'FST', other_id: int, other_nonid: int):
    """Restore the OTHER_ID/OTHER_NONID distinction on the result of composing
       two demoted networks. Rules are tried in order, first match wins:

         OTHER_ID:x, x != OTHER_ID           ->  OTHER_NONID:x
         OTHER_NONID:OTHER_ID                ->  OTHER_NONID:OTHER_NONID
         OTHER_NONID:OTHER_NONID             ->  kept, plus a parallel OTHER_ID:OTHER_ID
         c:OTHER_ID, c not a wildcard        ->  c:OTHER_NONID

       Two independent unknowns that happened to meet at the seam may be
       equal or not, hence the parallel identity arc in the third case."""
    staged = ArcBuffer()
    for src, arc in fst.all_arcs():
        if arc.ilabel == other_id:
            # N.B. do NOT join these two tests into one
            if arc.olabel != other_id:
                arc.ilabel = other_nonid
        elif arc.ilabel == other_nonid:
            if arc.olabel == other_id:
                arc.olabel = other_nonid
            elif arc.olabel == other_nonid:
                staged.stage(src, other_id, other_id, arc.weight, arc.nextstate)
        elif arc.olabel == other_id:
            arc.olabel = other_nonid
    added = staged.apply(fst)
    logger.debug("post-compose repair added %d OTHER_ID:OTHER_ID arcs", added)


def disallowed_pairs(fst: 'FST', other_id: int, other_nonid: int) -> List[Tuple[int, Arc]]:
    """Return the (state, arc) pairs carrying a label pair no finished network
       may contain: OTHER_ID:c, c:OTHER_ID (c != OTHER_ID), OTHER_ID:OTHER_NONID
       and OTHER_NONID:OTHER_ID."""
    return [(src, arc) for src, arc in fst.all_arcs()
            if (arc.ilabel == other_id) != (arc.olabel == other_id)]


# ==================
# Alphabet changes
# ==================

def expand_other_arcs(fst: 'FST', sigma: Iterable[int], other_id: int, other_nonid: int,
                      limit: Optional[int] = None, progress = False) -> frozenset:
    """Add explicit arcs for the symbols in 'sigma' next to every wildcard arc.

       Used when symbols in sigma become known to the network: from then on
       the wildcards no longer cover them, so each wildcard arc gets parallel
       arcs spelling out what it used to mean for them:

         OTHER_NONID:o             c:o for each c
         OTHER_NONID:OTHER_NONID   c:OTHER_NONID, OTHER_NONID:c, and c:d, d:c for each pair c != d
         i:OTHER_NONID             i:c for each c
         OTHER_ID:OTHER_ID         c:c for each c

       The wildcard arcs themselves are kept. 'sigma' must not contain
       epsilon or a wildcard id, and must not repeat symbols; this is not
       checked here.

       Keyword arguments:
       limit -- maximum number of arcs the whole pass may add; beyond it
                ExpansionLimitError is raised and fst is left untouched
       progress -- show a progress bar over the states

       Returns the symbols that now occur on arcs, i.e. frozenset(sigma).
    """
    sigma = list(sigma)
    staged = ArcBuffer(limit = limit)
    for src in tqdm(range(len(fst.states)), disable = not progress, desc = "expanding"):
        for arc in fst.arcs(src):
            ilabel, olabel, w, dest = arc.ilabel, arc.olabel, arc.weight, arc.nextstate
            if ilabel == other_nonid:
                if olabel != other_nonid:
                    for c in sigma:
                        staged.stage(src, c, olabel, w, dest)
                else:
                    for n, c in enumerate(sigma):
                        staged.stage(src, c, other_nonid, w, dest)
                        staged.stage(src, other_nonid, c, w, dest)
                        for d in sigma[n + 1:]:
                            staged.stage(src, c, d, w, dest)
                            staged.stage(src, d, c, w, dest)
            elif olabel == other_nonid:
                for c in sigma:
                    staged.stage(src, ilabel, c, w, dest)
            elif ilabel == other_id:
                for c in sigma:
                    staged.stage(src, c, c, w, dest)
    total = staged.apply(fst)
    logger.debug("expanded wildcard arcs over %d symbols: %d arcs added", len(sigma), total)
    return frozenset(sigma)


def delete_other_arcs(fst: 'FST', other_id: int, other_nonid: int):
    """Remove every arc with a wildcard on either side, and everything that
       was only reachable through them. The result may be the empty network
       (no states), which is a legitimate outcome."""
    wildcards = (other_id, other_nonid)
    removed = redirect_to_sink(fst, lambda arc: arc.ilabel in wildcards or arc.olabel in wildcards)
    if fst.start is None:
        logger.info("removing %d wildcard arcs left the empty language", removed)


# ==================
# Projection
# ==================

def input_projection_fix_other(fst: 'FST', other_id: int, other_nonid: int):
    """Turn an input projection into a proper acceptor. An OTHER_NONID left on
       the input side has lost its partner and is just as well an OTHER_ID;
       every other arc gets its output set to its input. Idempotent."""
    for _, arc in fst.all_arcs():
        if arc.ilabel == other_nonid:
            arc.ilabel = other_id
            arc.olabel = other_id
        else:
            arc.olabel = arc.ilabel


def output_projection_fix_other(fst: 'FST', other_id: int, other_nonid: int):
    """Mirror of input_projection_fix_other for the output side."""
    for _, arc in fst.all_arcs():
        if arc.olabel == other_nonid:
            arc.ilabel = other_id
            arc.olabel = other_id
        else:
            arc.ilabel = arc.olabel


def change_input_to_epsilon(fst: 'FST', other_id: int, other_nonid: int):
    # The output of an OTHER_ID arc can no longer copy its input
    for _, arc in fst.all_arcs():
        if arc.olabel == other_id:
            arc.olabel = other_nonid
        arc.ilabel = EPSILON


def change_output_to_epsilon(fst: 'FST', other_id: int, other_nonid: int):
    for _, arc in fst.all_arcs():
        if arc.ilabel == other_id:
            arc.ilabel = other_nonid
        arc.olabel = EPSILON


def is_semantic_acceptor(fst: 'FST', other_nonid: int) -> bool:
    """True if fst denotes an identity relation. An OTHER_NONID:OTHER_NONID
       arc looks like an acceptor arc but maps symbols to different ones."""
    if not fst.is_acceptor():
        return False
    return not any(arc.ilabel == other_nonid for _, arc in fst.all_arcs())
