from .circuit_validator import validate_circuit
from .errors import EngineError, MissingCollaboratorError
from .netlist_generator import CompileResult, LineMapEntry, NetlistGenerator, compile_netlist
from .probe_resolver import resolve_probes
from .result_parser import ResultParser, SimulationResult
from .trace_link_index import TraceLinkIndex

__all__ = [
    'NetlistGenerator',
    'CompileResult',
    'LineMapEntry',
    'compile_netlist',
    'resolve_probes',
    'TraceLinkIndex',
    'ResultParser',
    'SimulationResult',
    'validate_circuit',
    'EngineError',
    'MissingCollaboratorError',
]
