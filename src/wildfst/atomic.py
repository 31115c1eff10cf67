from collections import defaultdict
from typing import Dict, List, Optional
from typing_extensions import Tuple

EPSILON = 0


class Arc:
    __slots__ = ['ilabel', 'olabel', 'weight', 'nextstate']
    def __init__(self, ilabel: int, olabel: int, weight: float, nextstate: int):
        self.ilabel = ilabel
        self.olabel = olabel
        self.weight = weight
        self.nextstate = nextstate

    @property
    def label(self) -> Tuple[int, int]:
        return (self.ilabel, self.olabel)

    def __repr__(self):
        return "Arc({}:{}/{} -> {})".format(self.ilabel, self.olabel, self.weight, self.nextstate)


class State:
    __slots__ = 'arcs', 'finalweight'

    def __init__(self, finalweight: Optional[float] = None):
        self.arcs: List[Arc] = []
        if finalweight is None:
            finalweight = float("inf")
        self.finalweight = finalweight

    @property
    def arcsin(self) -> Dict[int, List[Arc]]:
        """Returns a dictionary of the arcs leaving a state, indexed by the input label."""
        _arcsin = defaultdict(list)
        for arc in self.arcs:
            _arcsin[arc.ilabel].append(arc)
        return _arcsin

    @property
    def is_final(self) -> bool:
        return self.finalweight != float("inf")

    def add_arc(self, ilabel: int, olabel: int, nextstate: int, weight=0.0) -> Arc:
        """Add arc from self to state id nextstate with labels and weight."""
        newarc = Arc(ilabel, olabel, weight, nextstate)
        self.arcs.append(newarc)
        return newarc

    def all_targets(self) -> set:
        """Returns the set of state ids a state has arcs to."""
        return {arc.nextstate for arc in self.arcs}

