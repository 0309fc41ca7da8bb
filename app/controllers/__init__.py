"""
Controllers for the schematic engine.

This package contains Qt-free controller classes that orchestrate
operations between models and views using an observer pattern.
"""

from .circuit_controller import CircuitController
from .debounce import Debouncer
from .engine_context import EngineContext
from .file_controller import FileController, validate_circuit_data
from .highlight_controller import HighlightController, HighlightTargetSet, MergedHighlight, merge
from .simulation_controller import RunResult, SimulationController

__all__ = [
    "CircuitController",
    "Debouncer",
    "EngineContext",
    "FileController",
    "validate_circuit_data",
    "HighlightController",
    "HighlightTargetSet",
    "MergedHighlight",
    "merge",
    "SimulationController",
    "RunResult",
]
