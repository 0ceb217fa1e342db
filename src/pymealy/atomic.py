from typing import Any, Dict, Hashable, Iterator, Optional, Tuple


class Transition:
    __slots__ = ['targetstate', 'output']
    def __init__(self, targetstate: "State", output):
        self.targetstate = targetstate
        self.output = output

    def __repr__(self):
        return f"Transition({self.targetstate!r}, {self.output!r})"


class State:
    __slots__ = 'transitions', 'name'

    def __init__(self, name: Optional[Hashable] = None):
        # input:transition, at most one per input symbol
        self.transitions: Dict[Any, Transition] = dict()
        self.name = name

    def __repr__(self):
        return f"State({self.name!r})"

    def add_transition(self, other: 'State', symbol, output) -> Transition:
        """Add transition from self to other on input symbol, emitting output.
           An existing transition on the same symbol is replaced."""
        newtrans = Transition(other, output)
        self.transitions[symbol] = newtrans
        return newtrans

    def all_transitions(self) -> Iterator[Tuple[Any, Transition]]:
        """Generator for all (input, transition) pairs out from a given state."""
        yield from self.transitions.items()

    def all_targets(self) -> set:
        """Returns the set of states a state has transitions to."""
        return {t.targetstate for t in self.transitions.values()}
