from .config_loader import (
    Action,
    Direction,
    MachineConfig,
    Transition,
    TransitionTable,
    load_description,
    load_specification,
    load_yaml_description,
    parse_description,
    parse_yaml_description,
)
from .errors import (
    DuplicateTransitionRule,
    InvalidTapeSymbol,
    MalformedDescription,
    TapeOverflow,
    TuringMachineError,
)
from .machine import InstantaneousDescription, MachineResult, Tape, TuringMachine

__all__ = [
    "Action",
    "Direction",
    "MachineConfig",
    "Transition",
    "TransitionTable",
    "load_description",
    "load_specification",
    "load_yaml_description",
    "parse_description",
    "parse_yaml_description",
    "DuplicateTransitionRule",
    "InvalidTapeSymbol",
    "MalformedDescription",
    "TapeOverflow",
    "TuringMachineError",
    "InstantaneousDescription",
    "MachineResult",
    "Tape",
    "TuringMachine",
]
