from pymealy.mealy import MealyMachine, parse_fsm
from pymealy.atomic import State, Transition
from pymealy._private.exceptions import FSMParseError, FSMLexicalError, UndefinedStateError, \
    NonDeterminismError, InitialStateError, PartialFSMError

__author__     = "Mans Hulden"
__copyright__  = "Copyright 2022"
__credits__    = ["Mans Hulden"]
__license__    = "Apache"
__version__    = "0.1"
__status__     = "Prototype"

load_fsm = MealyMachine.load_fsm
