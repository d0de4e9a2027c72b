"""BASIC Interpreter - Executes the program tree."""

from .console import Console
from .interpreter import Interpreter, ExecutionState, RunResult
from .state import RuntimeState, Address, DimArray, DataQueue, LoopContext

__all__ = [
    'Console', 'Interpreter', 'ExecutionState', 'RunResult',
    'RuntimeState', 'Address', 'DimArray', 'DataQueue', 'LoopContext',
]
