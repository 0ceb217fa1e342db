"""Errors raised while reading FSM sources.

All of them are SyntaxErrors so that the usual (filename, line, column, text)
detail tuple is available as `e.filename`, `e.lineno`, `e.offset` and `e.text`."""


class FSMParseError(SyntaxError):
    """Base class for all errors in an FSM source."""


class FSMLexicalError(FSMParseError):
    """A token of the wrong kind, e.g. a word where a quoted label was expected."""


class UndefinedStateError(FSMParseError):
    """A transition mentions a state that was not declared as a state vector."""


class NonDeterminismError(FSMParseError):
    """The same (state, input) or (state, label) pair was defined twice."""


class InitialStateError(FSMParseError):
    """No initial state, or more than one, could be inferred."""


class PartialFSMError(FSMParseError):
    """Some states cannot be reached from the initial state."""
