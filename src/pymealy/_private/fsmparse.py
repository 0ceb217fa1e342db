#!/usr/bin/env python

import logging
import re as pyre
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, TextIO, Tuple

from pymealy.mealy import MealyMachine
from pymealy._private.exceptions import FSMLexicalError, UndefinedStateError, NonDeterminismError, \
    InitialStateError, PartialFSMError
from pymealy._private.fsmtokenize import FSMTokenizer, Token

logger = logging.getLogger(__file__)


class FSMParse:
    phases = ('DATA_DEFINITION', 'STATE_VECTORS', 'TRANSITIONS')
    semantics = ('direct', 'alternating')
    separator = '---'

    NO_SUCH_STATE = "state with number {} is undefined"
    NON_DETERMINISM_DETECTED = "non-determinism detected (previous value: {})"
    INITIAL_STATES = "multiple initial states found: {}"
    INITIAL_STATE = "no initial state found"
    EXPECT_NUMBER = "number expected"
    EXPECT_STRING = "expecting string"
    BAD_LABEL = "cannot convert label \"{}\": {}"
    PARTIAL_FSM = "FSM transition relation is incomplete: could not reach states {}, from initial state {}"

    def __init__(self, stream: TextIO, semantics: str = 'direct', inputparser: Callable = str,
                 outputparser: Callable = str, name: str = '<fsm>'):
        """Tokenize and parse an FSM source, then build the Mealy machine it describes.

           The source has three parts separated by '---' lines: data definitions
           (ignored), state vectors (one state per line, numbered from 0) and
           transitions. With 'direct' semantics a transition line reads
               <from> <to> "<input>" "<output>"
           and with 'alternating' semantics
               <from> <to> "<label>"
           where labels leaving the initial state are inputs, labels leaving the
           states reached by those are outputs, and so on in turn.

           The stream belongs to the parser and is closed when parsing ends, whether
           or not it succeeded. The result is available as self.compiled.
           Keyword arguments:
           semantics -- 'direct' or 'alternating'
           inputparser -- converts an input label string to an input symbol
           outputparser -- converts an output label string to an output symbol
           name -- source name used in error reports
        """
        self.name = name
        self.inputparser = inputparser
        self.outputparser = outputparser
        self.states: Set[int] = set()                           # Declared by state vectors
        self.mentioned: Dict[int, None] = {}                    # Named by transitions, in order
        self.inputs: Dict[Any, None] = {}                       # Input alphabet, in first-seen order
        self.transitions: Dict[Tuple[int, Any], Tuple[Any, int]] = {}  # (from, input):(output, to)
        self.edges: Dict[int, Dict[str, int]] = {}              # Raw alternating edges, from:{label:to}
        self.initialstate: Optional[int] = None
        self.partlinenumber = 0
        self.tokenizer = FSMTokenizer(stream, name)
        try:
            if semantics not in self.semantics:
                raise ValueError(f"Unknown semantics \"{semantics}\", expected one of {', '.join(self.semantics)}.")
            self.hooks = self._hooks(semantics)
            self.parse()
        finally:
            stream.close()
        self.compiled = self.build()

    def _hooks(self, semantics: str) -> dict:
        """The (line hook, check hook) pair of each phase. Only transitions differ between semantics."""
        transitionhooks = {'direct': (self.parse_transition_direct, self.check_transitions_direct),
                           'alternating': (self.parse_transition_alternating, self.check_transitions_alternating)}
        return {'DATA_DEFINITION': (self.parse_data_definition, self.check_data_definitions),
                'STATE_VECTORS': (self.parse_state_vector, self.check_state_vectors),
                'TRANSITIONS': transitionhooks[semantics]}

    def parse(self):
        """Feed the source line by line to the hooks of the current phase.
           A line starting with '---' ends the data definitions or the state vectors;
           the transitions run until end of input. Every line is read up to its end
           after its hook returns, so trailing tokens are ignored."""
        tok = self.tokenizer
        phase = 0
        self.partlinenumber = 0
        while tok.next_token()[0] != 'EOF':
            kind, value = tok.current[0], tok.current[1]
            if self.phases[phase] != 'TRANSITIONS' and kind == 'WORD' and value == self.separator:
                self.hooks[self.phases[phase]][1]()
                logger.debug(f"{self.phases[phase]} ended after {self.partlinenumber} lines")
                phase += 1
                self.partlinenumber = 0
                tok.skip_line()
                continue
            tok.push_back()
            self.hooks[self.phases[phase]][0]()
            tok.skip_line()
            self.partlinenumber += 1
        self.hooks['TRANSITIONS'][1]()

    def build(self) -> MealyMachine:
        """Create a state for every FSM state the first time it is mentioned, starting
           with the initial state, and add the resolved transitions between them."""
        machine = MealyMachine(alphabet=self.inputs)
        statemap = {}

        def _state(number):
            if number not in statemap:
                statemap[number] = machine.add_state(name=number)
            return statemap[number]

        machine.initialstate = _state(self.initialstate)
        for (source, inputsymbol), (output, target) in self.transitions.items():
            machine.add_transition(_state(source), inputsymbol, _state(target), output)
        logger.info(f"Parsed {self.name}: {len(machine)} states, {machine.arccount()} transitions")
        return machine

    # ==================
    # Shared hooks
    # ==================

    def parse_data_definition(self):
        """Data definitions do not matter for transducers."""

    def check_data_definitions(self):
        pass

    def parse_state_vector(self):
        """Each state vector line declares one state, numbered by its line in the part."""
        self.states.add(self.partlinenumber)

    def check_state_vectors(self):
        pass

    # ==================
    # Direct semantics
    # ==================

    def parse_transition_direct(self):
        """<from> <to> "<input>" "<output>" """
        source, target = self._read_state(), self._read_state()
        inputsymbol = self._read_label(self.inputparser)
        self.inputs.setdefault(inputsymbol)
        output = self._read_label(self.outputparser)
        self._record((source, inputsymbol), (output, target))

    def check_transitions_direct(self):
        self._infer_initial_state({target for _, target in self.transitions.values()})

    # ==================
    # Alternating semantics
    # ==================

    def parse_transition_alternating(self):
        """<from> <to> "<label>", kept as a raw edge until the roles are known."""
        source, target = self._read_state(), self._read_state()
        label = self._read_label()
        outgoing = self.edges.setdefault(source, {})
        if label in outgoing:
            self._error_report(NonDeterminismError, self.NON_DETERMINISM_DETECTED.format(outgoing[label]))
        outgoing[label] = target

    def check_transitions_alternating(self):
        self._infer_initial_state({target for outgoing in self.edges.values() for target in outgoing.values()})
        unvisited = set(self._universe())
        self._resolve_alternating(unvisited)
        if unvisited:
            self._error_report(PartialFSMError, self.PARTIAL_FSM.format(sorted(unvisited), self.initialstate))

    def _resolve_alternating(self, unvisited: Set[int]):
        """Walk the raw edges depth-first from the initial state. The edges leaving a
           state entered as an input state are inputs; each leads to a state whose edges
           are outputs, completing (origin, input):(output, target). Targets of outputs
           are entered as input states again unless already visited.
           A stack frame is (state, pending, edges) where pending is None for an input
           state and the (origin, input) pair waiting for its output otherwise.
           States are removed from unvisited as they are entered, in either role."""
        unvisited.discard(self.initialstate)
        stack = [(self.initialstate, None, self._outgoing(self.initialstate))]
        while stack:
            state, pending, edges = stack[-1]
            edge = next(edges, None)
            if edge is None:
                stack.pop()
                continue
            label, target = edge
            if pending is None:
                inputsymbol = self._convert(self.inputparser, label)
                self.inputs.setdefault(inputsymbol)
                unvisited.discard(target)
                stack.append((target, (state, inputsymbol), self._outgoing(target)))
            else:
                self._record(pending, (self._convert(self.outputparser, label), target))
                if target in unvisited:  # Cycle guard
                    unvisited.discard(target)
                    stack.append((target, None, self._outgoing(target)))
        logger.debug(f"Resolved {len(self.transitions)} transitions from initial state {self.initialstate}")

    def _outgoing(self, state: int) -> Iterator[Tuple[str, int]]:
        return iter(list(self.edges.get(state, {}).items()))

    # ==================
    # Helpers
    # ==================

    def _error_report(self, errortype, errorstring, token: Optional[Token] = None):
        _, _, line_num, column = token if token is not None else self.tokenizer.current
        raise errortype(errorstring, (self.name, line_num, column + 1, self.tokenizer.line))

    def _read_state(self) -> int:
        token = self.tokenizer.next_token()
        kind, value = token[0], token[1]
        if kind != 'WORD' or not pyre.fullmatch(r"[0-9]+", value):
            self._error_report(FSMLexicalError, self.EXPECT_NUMBER, token)
        state = int(value)
        if self.states and state not in self.states:
            self._error_report(UndefinedStateError, self.NO_SUCH_STATE.format(state), token)
        self.mentioned.setdefault(state)
        return state

    def _read_label(self, labelparser: Optional[Callable] = None):
        token = self.tokenizer.next_token()
        if token[0] != 'QUOTED':
            self._error_report(FSMLexicalError, self.EXPECT_STRING, token)
        if labelparser is None:
            return token[1]
        return self._convert(labelparser, token[1], token)

    def _convert(self, labelparser: Callable, label: str, token: Optional[Token] = None):
        try:
            return labelparser(label)
        except ValueError as e:
            self._error_report(FSMLexicalError, self.BAD_LABEL.format(label, e), token)

    def _record(self, key: Tuple[int, Any], value: Tuple[Any, int]):
        """Add (from, input):(output, to), refusing to redefine (from, input)."""
        if key in self.transitions:
            previous = self.transitions[key]
            self._error_report(NonDeterminismError,
                               self.NON_DETERMINISM_DETECTED.format(f"({previous[0]}, {previous[1]})"))
        self.transitions[key] = value

    def _universe(self) -> List[int]:
        """Declared states, or, when the source declares none, those named by transitions."""
        return sorted(self.states) if self.states else list(self.mentioned)

    def _infer_initial_state(self, targets: Set[int]):
        candidates = [s for s in self._universe() if s not in targets]
        if len(candidates) > 1:
            self._error_report(InitialStateError, self.INITIAL_STATES.format(sorted(candidates)))
        if not candidates:
            self._error_report(InitialStateError, self.INITIAL_STATE)
        self.initialstate = candidates[0]
        logger.debug(f"Initial state is {self.initialstate}")
