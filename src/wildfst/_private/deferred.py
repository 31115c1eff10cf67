"""Two-phase mutation helpers: scan a network read-only, then apply what was collected.

Adding arcs to a state while its arc list is being iterated (or retargeting
arcs while walking the graph) is never done directly by the passes; they
stage the change here and apply it once the scan is over."""

import logging
from typing import TYPE_CHECKING, Callable, Iterator, List, NamedTuple, Optional

from wildfst._private.exceptions import ExpansionLimitError

if TYPE_CHECKING:
    from wildfst.atomic import Arc
    from wildfst.fst import FST

logger = logging.getLogger(__file__)


class ArcRecord(NamedTuple):
    src: int
    ilabel: int
    olabel: int
    weight: float
    nextstate: int


class ArcBuffer:
    """A growable list of ArcRecords waiting to be added to an FST.

       limit -- if given, the maximum number of records that may be staged
                before apply() is called; staging more raises ExpansionLimitError.
    """

    def __init__(self, limit: Optional[int] = None):
        self.records: List[ArcRecord] = []
        self.limit = limit

    def stage(self, src: int, ilabel: int, olabel: int, weight: float, nextstate: int):
        if self.limit is not None and len(self.records) >= self.limit:
            raise ExpansionLimitError(len(self.records), self.limit)
        try:
            self.records.append(ArcRecord(src, ilabel, olabel, weight, nextstate))
        except MemoryError as e:
            staged = len(self.records)
            self.records = []   # release what we have before reporting
            raise ExpansionLimitError(staged) from e

    def apply(self, fst: 'FST') -> int:
        """Add all staged arcs to fst and empty the buffer. Returns the number added."""
        added = len(self.records)
        for rec in self.records:
            fst.add_arc(rec.src, rec.ilabel, rec.olabel, rec.nextstate, rec.weight)
        self.records = []
        return added

    def __len__(self):
        return len(self.records)

    def __iter__(self) -> Iterator[ArcRecord]:
        return iter(self.records)


def redirect_to_sink(fst: 'FST', doomed: Callable[['Arc'], bool]) -> int:
    """Point every arc for which doomed(arc) is true at a fresh non-final
       sink state, then trim the network. The sink, the redirected arcs, and
       whatever is only reachable through them disappear with the trim.
       Returns the number of arcs redirected."""
    sink = fst.add_state()
    redirect = [arc for _, arc in fst.all_arcs() if doomed(arc)]
    for arc in redirect:
        arc.nextstate = sink
    fst.connect()
    logger.debug("redirected %d arcs to sink; %d states remain", len(redirect), len(fst))
    return len(redirect)
