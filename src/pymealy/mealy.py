import io
import subprocess
from collections import defaultdict
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, TextIO, cast

from pymealy.atomic import State, Transition


def _graphviz_installed() -> bool:
    try:
        subprocess.run(["dot", "-V"], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    return True


def _labelparsers(inputparser, outputparser, edgeparser):
    """A single edgeparser stands in for whichever of input/outputparser is not given."""
    if inputparser is None:
        inputparser = edgeparser if edgeparser is not None else str
    if outputparser is None:
        outputparser = edgeparser if edgeparser is not None else str
    return inputparser, outputparser


class MealyMachine:
    # ==================
    # Initializers
    # ==================

    def __init__(self, alphabet: Iterable = ()):
        """Creates an empty Mealy machine over an input alphabet.

        :param alphabet: the input symbols; the position of a symbol is its index

        States are added with add_state() and connected with add_transition();
        the initial state is set by assigning initialstate.
        """
        self.alphabet: List[Any] = list(alphabet)
        """The input alphabet, in symbol index order"""
        self.states: List[State] = []
        """All states, in the order they were added; the position is the state id"""
        self.initialstate: Optional[State] = None
        """The initial (start) state"""
        self._symbolindex = {symbol: idx for idx, symbol in enumerate(self.alphabet)}

    @classmethod
    def from_fsm(cls, stream: TextIO, semantics='direct', inputparser: Optional[Callable] = None,
                 outputparser: Optional[Callable] = None, edgeparser: Optional[Callable] = None,
                 name: str = '<fsm>') -> 'MealyMachine':
        """Read a Mealy machine from an FSM source. The stream is closed afterwards.
           Keyword arguments:
           semantics -- 'direct' if every transition line carries an input and an output
                        label, 'alternating' if lines carry one label whose role
                        alternates along paths from the initial state
           inputparser -- function converting input labels to symbols (default str)
           outputparser -- function converting output labels to symbols (default str)
           edgeparser -- used for both inputs and outputs where the above are not given
        """
        import pymealy._private.fsmparse as fsmparse
        inputparser, outputparser = _labelparsers(inputparser, outputparser, edgeparser)
        return fsmparse.FSMParse(stream, semantics, inputparser, outputparser, name).compiled

    @classmethod
    def from_fsmstring(cls, fsmstr: str, semantics='direct', inputparser=None, outputparser=None,
                       edgeparser=None) -> 'MealyMachine':
        """Read a Mealy machine from a string holding an FSM source."""
        return cls.from_fsm(io.StringIO(fsmstr), semantics, inputparser, outputparser, edgeparser, name='<string>')

    @classmethod
    def load_fsm(cls, path: str, semantics='direct', inputparser=None, outputparser=None,
                 edgeparser=None) -> 'MealyMachine':
        """Read a Mealy machine from an FSM file."""
        return cls.from_fsm(open(path, 'rt', encoding='utf-8'), semantics, inputparser, outputparser,
                            edgeparser, name=str(path))

    # ==================
    # Building
    # ==================

    def add_state(self, name: Optional[Hashable] = None) -> State:
        """Allocate a new state with no transitions and return it."""
        state = State(name=name)
        self.states.append(state)
        return state

    def add_transition(self, source: State, symbol, target: State, output) -> Transition:
        """Make source go to target on symbol while emitting output. Symbols not
           yet in the alphabet are appended to it."""
        if symbol not in self._symbolindex:
            self._symbolindex[symbol] = len(self.alphabet)
            self.alphabet.append(symbol)
        return source.add_transition(target, symbol, output)

    # ==================
    # Queries
    # ==================

    def symbol_index(self, symbol) -> int:
        return self._symbolindex[symbol]

    def transition(self, state: State, symbol) -> Optional[Transition]:
        return state.transitions.get(symbol)

    def successor(self, state: State, symbol) -> Optional[State]:
        t = self.transition(state, symbol)
        return None if t is None else t.targetstate

    def output(self, state: State, symbol):
        t = self.transition(state, symbol)
        return None if t is None else t.output

    @property
    def outputs(self) -> List[Any]:
        """The output alphabet, in the order outputs are met going through states and inputs."""
        seen = {}
        for state in self.states:
            for symbol in self.alphabet:
                t = state.transitions.get(symbol)
                if t is not None:
                    seen.setdefault(t.output)
        return list(seen)

    def apply(self, word: Iterable) -> Optional[list]:
        """Run word from the initial state and return the list of outputs, or None
           if some symbol has no transition on the way."""
        state, result = self.initialstate, []
        for symbol in word:
            t = state.transitions.get(symbol) if state is not None else None
            if t is None:
                return None
            result.append(t.output)
            state = t.targetstate
        return result

    def stateid(self, state: State) -> int:
        return self._statenums()[id(state)]

    def _statenums(self) -> Dict[int, int]:
        return {id(s): idx for idx, s in enumerate(self.states)}

    def arccount(self) -> int:
        """Counts number of transitions."""
        return sum(len(s.transitions) for s in self.states)

    def __len__(self):
        """Number of states."""
        return len(self.states)

    def __str__(self):
        """One tab-separated 'source target input output' line per transition."""
        statenums = self._statenums()
        lines = []
        for s in self.states:
            for symbol in self.alphabet:
                t = s.transitions.get(symbol)
                if t is not None:
                    lines.append(f"{statenums[id(s)]}\t{statenums[id(t.targetstate)]}\t{symbol}\t{t.output}")
        return "".join(line + "\n" for line in lines)

    # ==================
    # ETF output
    # ==================

    def to_etfstring(self) -> str:
        """Converts the machine to the tag-based ETF representation.

        The representation declares one state slot 'id' and two edge labels
        'input' and 'output', then lists the initial state, the state ids, the
        transitions as 'source/target inputindex outputindex' and finally the
        input and output alphabets in index order:

        begin state
        id:id
        end state
        begin edge
        input:input
        output:output
        end edge
        begin init
        0
        end init
        begin sort id
        "0"
        "1"
        end sort
        begin trans
        0/1 0 0
        1/0 1 1
        end trans
        begin sort input
        "a"
        "b"
        end sort
        begin sort output
        "x"
        "y"
        end sort

        ETF is an output format only; it is not read back by the FSM parser.
        """
        if self.initialstate is None:
            raise ValueError("Machine has no initial state.")
        statenums = self._statenums()
        outputindex: Dict[Any, int] = {}
        lines = ["begin state", "id:id", "end state",
                 "begin edge", "input:input", "output:output", "end edge",
                 "begin init", f"{statenums[id(self.initialstate)]}", "end init",
                 "begin sort id"]
        lines.extend(f"\"{idx}\"" for idx in range(len(self.states)))
        lines.extend(["end sort", "begin trans"])
        for s in self.states:
            for idx, symbol in enumerate(self.alphabet):
                t = s.transitions.get(symbol)
                if t is not None:
                    o = outputindex.setdefault(t.output, len(outputindex))
                    lines.append(f"{statenums[id(s)]}/{statenums[id(t.targetstate)]} {idx} {o}")
        lines.extend(["end trans", "begin sort input"])
        lines.extend(f"\"{symbol}\"" for symbol in self.alphabet)
        lines.extend(["end sort", "begin sort output"])
        lines.extend(f"\"{output}\"" for output in outputindex)
        lines.append("end sort")
        return "\n".join(lines) + "\n"

    def save_etf(self, path: str):
        """Saves the machine to a file in ETF format."""
        with open(path, 'wt', encoding='utf-8') as f:
            f.write(self.to_etfstring())

    # ==================
    # Rendering
    # ==================

    def view(self, show_alphabet=True) -> 'graphviz.Digraph':
        """Creates a 'graphviz.Digraph' object to view the machine. Will automatically display in Jupyter.

            :param show_alphabet: displays the input alphabet below the machine
            :return: A Digraph object which will automatically display in Jupyter.

           If you would like to display the machine from a non-Jupyter environment, please use :code:`MealyMachine.render`
        """
        import graphviz
        if not _graphviz_installed():
            raise EnvironmentError("Graphviz executable not found. Please install [Graphviz](https://www.graphviz.org/download/). On macOS, use `brew install graphviz`.")

        sigma = "&Sigma;: {" + ','.join(str(a) for a in self.alphabet) + "}" if show_alphabet else ""
        g = graphviz.Digraph('Mealy', graph_attr={"label": sigma, "rankdir": "LR"})
        statenums = self._statenums()
        g.attr(rankdir='LR', size='8,5')
        g.attr('node', shape='circle', style='filled')
        for s in self.states:
            if s is self.initialstate:
                g.node(str(statenums[id(s)]), style='filled, bold')
            else:
                g.node(str(statenums[id(s)]))
            grouped_targets = defaultdict(list)
            for symbol, t in s.all_transitions():
                grouped_targets[t.targetstate].append(f"{symbol}/{t.output}")
            for target, labellist in grouped_targets.items():
                g.edge(str(statenums[id(s)]), str(statenums[id(target)]),
                       label=graphviz.nohtml(', '.join(sorted(labellist))))
        return g

    def render(self, view=True, filename: str = 'Mealy', format='pdf', tight=True):
        """
        Renders the machine to a file and optionally opens the file.
        :param view: If True, the rendered file will be opened.
        :param format: The file format for the Digraph. Typically 'pdf', 'png', or 'svg'. View all formats: https://graphviz.org/docs/outputs/
        :param tight: If False, the rendered file will have whitespace margins around the graph.
        """
        import graphviz
        digraph = cast(graphviz.Digraph, self.view())
        digraph.format = format
        if tight:
            digraph.graph_attr['margin'] = '0'
        return digraph.render(view=view, filename=filename, cleanup=True)

    def _ipython_display_(self):
        from IPython.display import display
        display(self.view())


# ==================
# Global Functions
# ==================
def parse_fsm(stream: TextIO, semantics='direct', inputparser=None, outputparser=None, edgeparser=None):
    return MealyMachine.from_fsm(stream, semantics, inputparser, outputparser, edgeparser)
