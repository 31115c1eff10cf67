import pickle
from collections import deque, defaultdict
from typing import Dict, Iterable, List, Optional, Tuple, Union, cast

from wildfst.atomic import Arc, State, EPSILON
from wildfst._private import util


class FST:
    # ==================
    # Initializers
    # ==================

    def __init__(self, label: Optional[Tuple] = None, weight=0.0, alphabet=None):
        """Creates an FST-structure with no states (the empty language).

        :param label: create a two-state FST that accepts label
        :param weight: add a weight to the final state
        :param alphabet: declare an alphabet explicitly

        If 'label' is given, a two-state automaton is created with label as the
        only arc from the start state to the final state. Labels are pairs of
        integers (input, output); a 1-tuple (i,) is shorthand for (i, i).

        If label is epsilon, i.e. (0,), the second state will not be created,
        but the start state will be made final with weight 'weight'.
        """

        self.alphabet = set() if alphabet is None else set(alphabet)
        """The concrete symbols known to the FST (no epsilon, no wildcards)"""
        self.states: List[State] = []
        """All states of the FST; a state id is its index in this list"""
        self.start: Optional[int] = None
        """The start state id, or None if the FST has no start state"""

        if label is None:
            return
        if len(label) == 1:
            label = (label[0], label[0])
        if alphabet is None:
            self.alphabet = {sym for sym in label if sym != EPSILON}
        self.start = self.add_state()
        if label == (EPSILON, EPSILON):
            self.set_final(self.start, weight)
        else:
            target = self.add_state(finalweight = weight)
            self.add_arc(self.start, label[0], label[1], target, 0.0)

    @classmethod
    def from_arcs(cls, arcs: Iterable[Tuple], finals: Union[Dict[int, float], Iterable[int]],
                  start: Optional[int] = 0, alphabet=None) -> 'FST':
        """Build an FST from arc tuples (src, ilabel, olabel, dest) or
           (src, ilabel, olabel, dest, weight). 'finals' is either a dict
           {state: finalweight} or an iterable of states (final weight 0.0).
           States are created as needed, up to the largest id mentioned."""
        arcs = [tuple(a) for a in arcs]
        if not isinstance(finals, dict):
            finals = {f: 0.0 for f in finals}
        newfst = cls(alphabet = alphabet)
        mentioned = [a[0] for a in arcs] + [a[3] for a in arcs] + list(finals)
        if start is not None:
            mentioned.append(start)
        for _ in range(max(mentioned) + 1 if mentioned else 0):
            newfst.add_state()
        newfst.start = start
        for a in arcs:
            newfst.add_arc(a[0], a[1], a[2], a[3], a[4] if len(a) > 4 else 0.0)
        for f, w in finals.items():
            newfst.set_final(f, w)
        if alphabet is None:
            newfst.alphabet = newfst.labels() - {EPSILON}
        return newfst

    # ==================
    # Construction and access
    # ==================

    def add_state(self, finalweight: Optional[float] = None) -> int:
        """Add a state (non-final unless finalweight is given); returns its id."""
        self.states.append(State(finalweight = finalweight))
        return len(self.states) - 1

    def set_start(self, state: int):
        self.start = state

    def set_final(self, state: int, weight=0.0):
        """Make state final with 'weight'. A weight of inf makes it non-final."""
        self.states[state].finalweight = weight

    def final(self, state: int) -> float:
        return self.states[state].finalweight

    def is_final(self, state: int) -> bool:
        return self.states[state].is_final

    @property
    def finalstates(self) -> set:
        """The set of ids of final states."""
        return {i for i, s in enumerate(self.states) if s.is_final}

    def add_arc(self, src: int, ilabel: int, olabel: int, nextstate: int, weight=0.0) -> Arc:
        return self.states[src].add_arc(ilabel, olabel, nextstate, weight)

    def arcs(self, state: int) -> List[Arc]:
        """The arcs leaving 'state'. The Arc objects are live: changing their
           fields changes the FST. Do not add to or remove from the list while
           iterating over it."""
        return self.states[state].arcs

    def all_arcs(self):
        """Generator for all (state id, Arc) pairs in the FST."""
        for i, state in enumerate(self.states):
            for arc in state.arcs:
                yield i, arc

    def labels(self) -> set:
        """All labels occurring on either side of any arc."""
        return {lbl for _, arc in self.all_arcs() for lbl in (arc.ilabel, arc.olabel)}

    def arccount(self) -> int:
        """Counts number of arcs in FST."""
        return sum(len(s.arcs) for s in self.states)

    def is_acceptor(self) -> bool:
        """True if every arc has the same input and output label."""
        return all(arc.ilabel == arc.olabel for _, arc in self.all_arcs())

    # ==================
    # Operations
    # ==================

    def connect(self) -> 'FST':
        """Trim in place: keep exactly the states and arcs that lie on some
           path from the start state to a final state. Surviving states keep
           their relative order and are renumbered densely. If no such path
           exists, the FST ends up with no states and no start state."""
        if self.start is None:
            self.states = []
            return self
        explored = {self.start}
        stack = deque([self.start])
        inverse = defaultdict(set)  # store all preceding states here
        while stack:
            source = stack.pop()
            for target in self.states[source].all_targets():
                inverse[target].add(source)
                if target not in explored:
                    explored.add(target)
                    stack.append(target)

        coaccessible = {s for s in explored if self.states[s].is_final}
        stack = deque(coaccessible)
        while stack:
            source = stack.pop()
            for previous in inverse[source]:
                if previous not in coaccessible:
                    coaccessible.add(previous)
                    stack.append(previous)

        if self.start not in coaccessible:
            self.states, self.start = [], None
            return self

        renumber = {old: new for new, old in enumerate(sorted(coaccessible))}
        newstates = []
        for old in sorted(coaccessible):
            s = self.states[old]
            s.arcs = [arc for arc in s.arcs if arc.nextstate in renumber]
            for arc in s.arcs:
                arc.nextstate = renumber[arc.nextstate]
            newstates.append(s)
        self.states = newstates
        self.start = renumber[self.start]
        return self

    def compose(self, fst2: 'FST') -> 'FST':
        """Composition of A,B. Output labels of A are matched against input
           labels of B by equality; nothing here knows about wildcards."""

        # Mode 0: allow A=x:0 B=0:y (>0), A=x:y B=y:z (>0), A=x:0 B=wait (>1) A=wait 0:y (>2)
        # Mode 1: x:0 B=wait (>1), x:y y:z (>0)
        # Mode 2: A=wait 0:y (>2), x:y y:z (>0)
        newfst = FST(alphabet = self.alphabet | fst2.alphabet)
        if self.start is None or fst2.start is None:
            return newfst
        Q = deque()
        S = {}

        def _state(key):
            if key not in S:
                S[key] = newfst.add_state()
                Q.append(key)
            return S[key]

        newfst.start = _state((self.start, fst2.start, 0))
        while Q:
            a, b, mode = Q.pop()
            currentstate = S[(a, b, mode)]
            A, B = self.states[a], fst2.states[b]
            if A.is_final and B.is_final:
                newfst.set_final(currentstate, A.finalweight + B.finalweight)
            Bin = B.arcsin
            for outarc in A.arcs:
                matchsym = outarc.olabel
                if mode == 0 or matchsym != EPSILON:  # A=x:y B=y:z, or x:0 0:y (only in mode 0)
                    for inarc in Bin.get(matchsym, ()):
                        target = _state((outarc.nextstate, inarc.nextstate, 0))
                        newfst.add_arc(currentstate, outarc.ilabel, inarc.olabel, target, outarc.weight + inarc.weight)
            if mode != 2:  # B waits
                for outarc in A.arcs:
                    if outarc.olabel == EPSILON:
                        target = _state((outarc.nextstate, b, 1))
                        newfst.add_arc(currentstate, outarc.ilabel, EPSILON, target, outarc.weight)
            if mode != 1:  # A waits
                for inarc in Bin.get(EPSILON, ()):
                    target = _state((a, inarc.nextstate, 2))
                    newfst.add_arc(currentstate, EPSILON, inarc.olabel, target, inarc.weight)
        return newfst

    def project(self, dim = 0) -> 'FST':
        """Project fst. dim = 0 keeps the input side, dim = -1 (or 1) the output side."""
        new_fst = self.__copy__()
        for _, arc in new_fst.all_arcs():
            if dim == 0:
                arc.olabel = arc.ilabel
            else:
                arc.ilabel = arc.olabel
        return new_fst

    def invert(self) -> 'FST':
        """Calculate the inverse of a transducer, i.e. swap input and output labels."""
        new_fst = self.__copy__()
        for _, arc in new_fst.all_arcs():
            arc.ilabel, arc.olabel = arc.olabel, arc.ilabel
        return new_fst

    def union(self, fst2: 'FST') -> 'FST':
        """Epsilon-free calculation of union of self and fst2."""
        if self.start is None or fst2.start is None:
            new_fst = (fst2 if self.start is None else self).__copy__()
            new_fst.alphabet = self.alphabet | fst2.alphabet
            return new_fst
        new_fst = self.__copy__()
        new_fst.alphabet |= fst2.alphabet
        offset = len(new_fst.states)
        new_fst._append_states(fst2)
        newstart = new_fst.add_state()
        # Copy all arcs from old start states to new start state
        for oldstart in (self.start, fst2.start + offset):
            for arc in list(new_fst.arcs(oldstart)):
                new_fst.add_arc(newstart, arc.ilabel, arc.olabel, arc.nextstate, arc.weight)
        # If either start state was final, make new start final w/ weight min(f1w, f2w)
        startweight = min(self.final(self.start), fst2.final(fst2.start))
        if startweight != float("inf"):
            new_fst.set_final(newstart, startweight)
        new_fst.start = newstart
        return new_fst

    def concatenate(self, fst2: 'FST') -> 'FST':
        """Concatenation of T1T2. No epsilons. May produce non-accessible states."""
        new_fst = self.__copy__()
        new_fst.alphabet |= fst2.alphabet
        if self.start is None or fst2.start is None:
            new_fst.states, new_fst.start = [], None
            return new_fst
        offset = len(new_fst.states)
        new_fst._append_states(fst2)
        start2 = fst2.start + offset
        for s in range(offset):
            finalweight = new_fst.final(s)
            if finalweight == float("inf"):
                continue
            for arc in list(new_fst.arcs(start2)):
                new_fst.add_arc(s, arc.ilabel, arc.olabel, arc.nextstate, arc.weight + finalweight)
            # s stays final only if fst2 accepts the empty string
            new_fst.set_final(s, finalweight + new_fst.final(start2))
        new_fst.start = self.start
        return new_fst

    def kleene_closure(self, mode = 'star') -> 'FST':
        """Apply self*. No epsilons here. If mode == 'plus', calculate self+."""
        new_fst = self.__copy__()
        newstart = new_fst.add_state()
        if self.start is not None:
            startarcs = list(new_fst.arcs(self.start))
            for arc in startarcs:
                new_fst.add_arc(newstart, arc.ilabel, arc.olabel, arc.nextstate, arc.weight)
            for s in range(len(self.states)):
                finalweight = new_fst.final(s)
                if finalweight == float("inf"):
                    continue
                for arc in startarcs:
                    new_fst.add_arc(s, arc.ilabel, arc.olabel, arc.nextstate, arc.weight + finalweight)
        if mode != 'plus':
            new_fst.set_final(newstart, 0.0)
        elif self.start is not None:
            new_fst.set_final(newstart, self.final(self.start))
        new_fst.start = newstart
        return new_fst

    def words(self, max_length: Optional[int] = None):
        """A generator to yield all (cost, [(ilabel, olabel), ...]) paths. Yay BFS!
           With max_length, paths with more arcs than that are not followed
           (needed for cyclic networks)."""
        if self.start is None:
            return
        Q = deque([(self.start, 0.0, [])])
        while Q:
            s, cost, seq = Q.popleft()
            state = self.states[s]
            if state.is_final:
                yield cost + state.finalweight, seq
            if max_length is not None and len(seq) >= max_length:
                continue
            for arc in state.arcs:
                Q.append((arc.nextstate, cost + arc.weight, seq + [arc.label]))

    # ==================
    # Rendering
    # ==================

    def view(self, symbols: Optional[Dict[int, str]] = None, show_weights=False, show_alphabet=True) -> 'graphviz.Digraph':
        """Creates a 'graphviz.Digraph' object to view the FST. Will automatically display the FST in Jupyter.

            :param symbols: optional mapping from label ids to printable strings
            :param show_weights: force display of weights even if 0.0
            :param show_alphabet: displays the alphabet below the FST
            :return: A Digraph object which will automatically display in Jupyter.

           If you would like to display the FST from a non-Jupyter environment, please use :code:`FST.render`
        """
        import graphviz
        if not util.check_graphviz_installed():
            raise EnvironmentError("Graphviz executable not found. Please install [Graphviz](https://www.graphviz.org/download/). On macOS, use `brew install graphviz`.")
        symbols = symbols or {}

        def _float_format(num):
            if not show_weights:
                return ""
            s = '{0:.2f}'.format(num).rstrip('0').rstrip('.')
            s = '0' if s == '-0' else s
            return "/" + s

        def _sym_fmt(sym):  # Use greek lunate epsilon symbol U+03F5
            return '&#x03f5;' if sym == EPSILON else symbols.get(sym, str(sym))

        def _label_fmt(arc):
            if arc.ilabel == arc.olabel:
                return _sym_fmt(arc.ilabel)
            return _sym_fmt(arc.ilabel) + ':' + _sym_fmt(arc.olabel)

        sigma = "&Sigma;: {" + ','.join(_sym_fmt(a) for a in sorted(self.alphabet)) + "}" \
            if show_alphabet else ""
        g = graphviz.Digraph('FST', graph_attr={"label": sigma, "rankdir": "LR"})
        if show_weights == False:
            if any(arc.weight != 0.0 for _, arc in self.all_arcs()) or \
                    any(s.finalweight not in (0.0, float("inf")) for s in self.states):
                show_weights = True

        def _name(i):
            s = self.states[i]
            return str(i) + (_float_format(s.finalweight) if s.is_final else "")

        g.attr(rankdir='LR', size='8,5')
        for i, s in enumerate(self.states):
            shape = 'doublecircle' if s.is_final else 'circle'
            style = 'filled, bold' if i == self.start else 'filled'
            g.node(_name(i), shape=shape, style=style)
        for i, s in enumerate(self.states):
            grouped_targets = defaultdict(list)
            for arc in s.arcs:
                grouped_targets[arc.nextstate].append(_label_fmt(arc) + _float_format(arc.weight))
            for target, labellist in grouped_targets.items():
                g.edge(_name(i), _name(target), label=graphviz.nohtml(', '.join(sorted(labellist))))
        return g

    def render(self, view=True, filename: str='FST', format='pdf', tight=True, symbols=None):
        """
        Renders the FST to a file and optionally opens the file.
        :param view: If True, the rendered file will be opened.
        :param format: The file format for the Digraph. Typically 'pdf', 'png', or 'svg'. View all formats: https://graphviz.org/docs/outputs/
        :param tight: If False, the rendered file will have whitespace margins around the graph.
        """
        import graphviz
        digraph = cast(graphviz.Digraph, self.view(symbols=symbols))
        digraph.format = format
        if tight:
            digraph.graph_attr['margin'] = '0' # Remove padding
        digraph.render(view=view, filename=filename, cleanup=True)

    # ==================
    # Saving and Loading
    # ==================

    def save(self, path: str):
        """Saves the current FST to a file.
        Args:
            path (str): The path to save to (without a file extension)
        """
        if not path.endswith('.fst'):
            path = path + '.fst'
        with open(path, 'wb') as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls, path: str) -> 'FST':
        """Loads an FST from a .fst file.
        Args:
            path (str): The path to load from. Must be a `.fst` file
        """
        if not path.endswith('.fst'):
            path = path + '.fst'
        try:
            with open(path, 'rb') as f:
                fst = pickle.load(f)
        except (pickle.UnpicklingError, EOFError) as e:
            raise IOError(f"Error reading file {path}: {str(e)}")
        return fst

    # ==================
    # Magic Methods
    # ==================

    def __copy__(self):
        """Copy an FST, states, arcs and alphabet included."""
        newfst = FST(alphabet = self.alphabet.copy())
        for s in self.states:
            newstate = State(finalweight = s.finalweight)
            newstate.arcs = [Arc(a.ilabel, a.olabel, a.weight, a.nextstate) for a in s.arcs]
            newfst.states.append(newstate)
        newfst.start = self.start
        return newfst

    copy = __copy__

    def __len__(self):
        """Return the number of states."""
        return len(self.states)

    def __str__(self):
        """Generate an AT&T string representing the FST."""
        st = ""
        order = list(range(len(self.states)))
        if self.start is not None:  # AT&T readers take the first source as the start
            order.remove(self.start)
            order.insert(0, self.start)
        for i in order:
            for arc in self.states[i].arcs:
                st += '{}\t{}\t{}\t{}\t{}\n'.format(i, arc.nextstate, arc.ilabel, arc.olabel, arc.weight)
        for i in order:
            if self.states[i].is_final:
                st += '{}\t{}\n'.format(i, self.states[i].finalweight)
        return st

    def __or__(self, other):
        """Union."""
        return self.union(other)

    def __mul__(self, other):
        """Concatenation."""
        return self.concatenate(other)

    def __matmul__(self, other):
        """Composition (plain, wildcard-unaware)."""
        return self.compose(other)

    # ==================
    # Utilities
    # ==================

    def _append_states(self, other: 'FST'):
        """Copy the states and arcs of other into self, shifting their ids past ours."""
        offset = len(self.states)
        for s in other.states:
            newstate = State(finalweight = s.finalweight)
            newstate.arcs = [Arc(a.ilabel, a.olabel, a.weight, a.nextstate + offset) for a in s.arcs]
            self.states.append(newstate)
        return offset


# ==================
# Global Functions
# ==================
def invert(fst: 'FST'):
    return fst.invert()

def project(fst: 'FST', dim = 0):
    return fst.project(dim = dim)

def union(fst1: 'FST', fst2: 'FST'):
    return fst1.union(fst2)

def concatenate(fst1: 'FST', fst2: 'FST'):
    return fst1.concatenate(fst2)
